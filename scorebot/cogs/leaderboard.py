import discord
from discord import app_commands
from discord.ext import commands
from typing import List

from scorebot.constants import PaginationConstants
from scorebot.views.leaderboard import LeaderboardView
from scorebot.services.rate_limiter import rate_limit
from scorebot.utils.embeds import build_entry_embed, build_leaderboard_embed, build_stats_embed
from scorebot.utils.error_embeds import ErrorEmbeds
from scorebot.utils.leaderboard_exceptions import LeaderboardException
import logging

logger = logging.getLogger(__name__)

SORT_CHOICES = [
    app_commands.Choice(name="Rank", value="rank"),
    app_commands.Choice(name="Name", value="name"),
    app_commands.Choice(name="Year", value="year"),
    app_commands.Choice(name="Physical", value="physical"),
    app_commands.Choice(name="Mental", value="mental"),
    app_commands.Choice(name="Extras", value="extras"),
    app_commands.Choice(name="Total", value="total"),
]


async def participant_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    """Suggest registered participant names."""
    participants = await interaction.client.db.get_all_participants()
    current = current.lower()
    return [
        app_commands.Choice(name=participant.name, value=participant.name)
        for participant in participants
        if current in participant.name.lower()
    ][:25]


class LeaderboardCog(commands.Cog):
    """Leaderboard, participant breakdown and statistics commands"""

    def __init__(self, bot):
        self.bot = bot
        self.leaderboard_service = bot.leaderboard_service

    @app_commands.command(name="leaderboard", description="View the competition leaderboard")
    @app_commands.describe(sort_by="Column to order by (ranks never change)", descending="Largest first")
    @app_commands.choices(sort_by=SORT_CHOICES)
    @rate_limit("leaderboard", limit=5, window=60)
    async def leaderboard(
        self,
        interaction: discord.Interaction,
        sort_by: str = "rank",
        descending: bool = False
    ):
        """Display the paginated leaderboard."""
        await interaction.response.defer()

        try:
            page_data = await self.leaderboard_service.get_page(
                page=1,
                page_size=PaginationConstants.DEFAULT_PAGE_SIZE,
                sort_by=sort_by,
                descending=descending
            )

            view = LeaderboardView(
                leaderboard_service=self.leaderboard_service,
                sort_by=sort_by,
                descending=descending,
                current_page=1,
                total_pages=page_data.total_pages
            )

            await interaction.followup.send(embed=build_leaderboard_embed(page_data), view=view)

        except ValueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
        except LeaderboardException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching leaderboard data. Please try again later."))

    @app_commands.command(name="leaderboard-entry", description="Show how a participant's score is calculated")
    @app_commands.describe(participant="Participant name")
    @app_commands.autocomplete(participant=participant_autocomplete)
    @rate_limit("leaderboard-entry", limit=5, window=60)
    async def leaderboard_entry(self, interaction: discord.Interaction, participant: str):
        """Display one participant's rank and calculation breakdown."""
        await interaction.response.defer()

        try:
            row = await self.bot.db.get_participant_by_name(participant)
            if row is None:
                await interaction.followup.send(embed=ErrorEmbeds.participant_not_found(participant))
                return

            entry = await self.leaderboard_service.get_participant_entry(row.id)
            trend = await self.leaderboard_service.get_participant_trend(row.id)
            game_names = {str(game.id): game.name for game in await self.bot.db.get_all_games()}

            await interaction.followup.send(embed=build_entry_embed(entry, game_names, trend))

        except LeaderboardException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in leaderboard-entry command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not load this participant's scores."))

    @app_commands.command(name="leaderboard-stats", description="Competition-wide statistics")
    @rate_limit("leaderboard-stats", limit=3, window=60)
    async def leaderboard_stats(self, interaction: discord.Interaction):
        """Display averages, point distribution and category leaders."""
        await interaction.response.defer()

        try:
            statistics = await self.leaderboard_service.get_statistics(PaginationConstants.TOP_PER_CATEGORY)
            await interaction.followup.send(embed=build_stats_embed(statistics))
        except LeaderboardException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in leaderboard-stats command: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while computing statistics."))


async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
