"""
Centralized error embeds for consistent error handling across the scoreboard bot.
"""

import discord
from typing import Optional

from scorebot.utils.leaderboard_exceptions import DatabaseError, LeaderboardException


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def participant_not_found(name: Optional[str] = None) -> discord.Embed:
        """Create embed for when a participant is not registered."""
        if name:
            description = f"**{name}** is not registered in the competition.\n\nAn organiser can add them with `/participant-add`."
        else:
            description = "This participant is not registered in the competition."

        return discord.Embed(
            title="Participant Not Found",
            description=description,
            color=discord.Color.red()
        )

    @staticmethod
    def game_not_found(name: Optional[str] = None) -> discord.Embed:
        """Create embed for when a game does not exist."""
        return discord.Embed(
            title="Game Not Found",
            description=f"The game **{name}** does not exist." if name else "The specified game could not be found.",
            color=discord.Color.red()
        )

    @staticmethod
    def no_scores(name: Optional[str] = None) -> discord.Embed:
        """Create embed for a participant without any recorded scores."""
        who = f"**{name}**" if name else "This participant"
        return discord.Embed(
            title="No Scores Yet",
            description=f"{who} has no recorded scores yet.",
            color=discord.Color.orange()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        """Create embed for invalid user input."""
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_scoring_config(message: str) -> discord.Embed:
        """Create embed for rejected scoring settings."""
        return discord.Embed(
            title="Invalid Scoring Settings",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def from_exception(error: LeaderboardException) -> discord.Embed:
        """Create embed showing a domain exception's user message."""
        if isinstance(error, DatabaseError):
            return ErrorEmbeds.database_error()
        return discord.Embed(
            title="Request Failed",
            description=error.user_message,
            color=discord.Color.red()
        )

    @staticmethod
    def database_error() -> discord.Embed:
        """Create embed for database-related errors."""
        return discord.Embed(
            title="Database Error",
            description="A database error occurred. Please try again later or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied(message: Optional[str] = None) -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description=message or "You don't have permission to perform this action.",
            color=discord.Color.red()
        )
