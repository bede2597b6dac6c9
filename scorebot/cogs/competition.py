import discord
from discord import app_commands
from discord.ext import commands
from typing import Dict, Optional

from scorebot.config import Config
from scorebot.cogs.leaderboard import participant_autocomplete
from scorebot.data_models.competition import ChallengeCategory
from scorebot.utils.assignment_parser import match_games, parse_game_times, parse_status_assignments
from scorebot.utils.error_embeds import ErrorEmbeds
from scorebot.utils.leaderboard_exceptions import LeaderboardException
from scorebot.utils.logger import setup_logger
from scorebot.utils.time_parser import format_minutes, parse_time_to_minutes

logger = setup_logger(__name__)

TIMED_CATEGORIES = (ChallengeCategory.PHYSICAL, ChallengeCategory.MENTAL)
EXTRA_CATEGORIES = (ChallengeCategory.EXTRA,)

CATEGORY_CHOICES = [
    app_commands.Choice(name="Physical", value="physical"),
    app_commands.Choice(name="Mental", value="mental"),
    app_commands.Choice(name="Extra", value="extra"),
]

EXTRA_KIND_CHOICES = [
    app_commands.Choice(name="Optional", value="optional"),
    app_commands.Choice(name="Mandatory", value="mandatory"),
]


def is_organiser(interaction: discord.Interaction) -> bool:
    """Bot owner, or a member allowed to manage the server."""
    if interaction.user.id == Config.OWNER_DISCORD_ID:
        return True
    permissions = getattr(interaction.user, 'guild_permissions', None)
    return bool(permissions and permissions.manage_guild)


async def game_autocomplete(interaction: discord.Interaction, current: str):
    games = await interaction.client.db.get_all_games()
    current = current.lower()
    return [
        app_commands.Choice(name=f"{game.name} ({game.category})", value=game.name)
        for game in games
        if current in game.name.lower()
    ][:25]


class CompetitionCog(commands.Cog):
    """Organiser commands for participants, games and scores"""

    def __init__(self, bot):
        self.bot = bot
        self.db = bot.db

    # ============================================================================
    # Participants
    # ============================================================================

    @app_commands.command(name="participant-add", description="Register a participant")
    @app_commands.describe(name="Display name", year="School year (1-3)", photo_url="Optional picture")
    @app_commands.check(is_organiser)
    async def participant_add(
        self,
        interaction: discord.Interaction,
        name: str,
        year: app_commands.Range[int, 1, 3],
        photo_url: Optional[str] = None
    ):
        try:
            if await self.db.get_participant_by_name(name):
                await interaction.response.send_message(
                    embed=ErrorEmbeds.invalid_input(f"**{name}** is already registered."), ephemeral=True
                )
                return

            participant = await self.db.add_participant(name, year, photo_url)
            logger.info(f"{interaction.user} registered participant {participant.id} ({participant.name})")
            await interaction.response.send_message(
                embed=discord.Embed(
                    title="✅ Participant Registered",
                    description=f"**{participant.name}** (Year {participant.year}) joined the competition.",
                    color=discord.Color.green()
                )
            )
        except ValueError as e:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input(str(e)), ephemeral=True)
        except LeaderboardException as e:
            await interaction.response.send_message(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="participant-edit", description="Rename a participant or change their year or picture")
    @app_commands.describe(participant="Participant name", name="New display name", year="New school year (1-3)", photo_url="New picture")
    @app_commands.autocomplete(participant=participant_autocomplete)
    @app_commands.check(is_organiser)
    async def participant_edit(
        self,
        interaction: discord.Interaction,
        participant: str,
        name: Optional[str] = None,
        year: Optional[app_commands.Range[int, 1, 3]] = None,
        photo_url: Optional[str] = None
    ):
        changes = {key: value for key, value in (('name', name), ('year', year), ('photo_url', photo_url)) if value is not None}
        if not changes:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input("Nothing to change."), ephemeral=True)
            return

        try:
            row = await self.db.get_participant_by_name(participant)
            if row is None:
                await interaction.response.send_message(embed=ErrorEmbeds.participant_not_found(participant), ephemeral=True)
                return
            if name:
                clash = await self.db.get_participant_by_name(name)
                if clash is not None and clash.id != row.id:
                    await interaction.response.send_message(
                        embed=ErrorEmbeds.invalid_input(f"**{name}** is already registered."), ephemeral=True
                    )
                    return

            updated = await self.db.update_participant(row.id, **changes)
            logger.info(f"{interaction.user} edited participant {row.id}: {', '.join(changes)}")
            await interaction.response.send_message(f"✏️ Updated **{updated.name}** (Year {updated.year}).")
        except ValueError as e:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input(str(e)), ephemeral=True)
        except LeaderboardException as e:
            await interaction.response.send_message(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="participant-remove", description="Remove a participant and all their scores")
    @app_commands.describe(participant="Participant name")
    @app_commands.autocomplete(participant=participant_autocomplete)
    @app_commands.check(is_organiser)
    async def participant_remove(self, interaction: discord.Interaction, participant: str):
        try:
            row = await self.db.get_participant_by_name(participant)
            if row is None:
                await interaction.response.send_message(embed=ErrorEmbeds.participant_not_found(participant), ephemeral=True)
                return

            await self.db.delete_participant(row.id)
            logger.info(f"{interaction.user} removed participant {row.id} ({row.name})")
            await interaction.response.send_message(f"🗑️ Removed **{row.name}** and their scores.")
        except LeaderboardException as e:
            await interaction.response.send_message(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    # ============================================================================
    # Games
    # ============================================================================

    @app_commands.command(name="game-add", description="Add a competition game")
    @app_commands.describe(
        name="Game name",
        category="Which part of the score it feeds",
        extra_kind="Extra games only: optional bonus or mandatory",
        description="Short description"
    )
    @app_commands.choices(category=CATEGORY_CHOICES, extra_kind=EXTRA_KIND_CHOICES)
    @app_commands.check(is_organiser)
    async def game_add(
        self,
        interaction: discord.Interaction,
        name: str,
        category: str,
        extra_kind: Optional[str] = None,
        description: str = ""
    ):
        try:
            if await self.db.get_game_by_name(name):
                await interaction.response.send_message(
                    embed=ErrorEmbeds.invalid_input(f"A game called **{name}** already exists."), ephemeral=True
                )
                return

            game = await self.db.add_game(name, category, description, extra_kind)
            kind = f" ({game.extra_kind})" if game.extra_kind else ""
            await interaction.response.send_message(f"✅ Added {game.category} game **{game.name}**{kind}.")
        except ValueError as e:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input(str(e)), ephemeral=True)
        except LeaderboardException as e:
            await interaction.response.send_message(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="game-edit", description="Rename a game or change its category, kind or description")
    @app_commands.describe(
        game="Game to change",
        name="New name",
        category="New category",
        extra_kind="New extra kind (needed when switching to extra)",
        description="New description"
    )
    @app_commands.choices(category=CATEGORY_CHOICES, extra_kind=EXTRA_KIND_CHOICES)
    @app_commands.autocomplete(game=game_autocomplete)
    @app_commands.check(is_organiser)
    async def game_edit(
        self,
        interaction: discord.Interaction,
        game: str,
        name: Optional[str] = None,
        category: Optional[str] = None,
        extra_kind: Optional[str] = None,
        description: Optional[str] = None
    ):
        changes = {
            key: value
            for key, value in (('name', name), ('category', category), ('extra_kind', extra_kind), ('description', description))
            if value is not None
        }
        if not changes:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input("Nothing to change."), ephemeral=True)
            return

        try:
            row = await self.db.get_game_by_name(game)
            if row is None:
                await interaction.response.send_message(embed=ErrorEmbeds.game_not_found(game), ephemeral=True)
                return
            if name:
                clash = await self.db.get_game_by_name(name)
                if clash is not None and clash.id != row.id:
                    await interaction.response.send_message(
                        embed=ErrorEmbeds.invalid_input(f"A game called **{name}** already exists."), ephemeral=True
                    )
                    return

            updated = await self.db.update_game(row.id, **changes)
            logger.info(f"{interaction.user} edited game {row.id}: {', '.join(changes)}")
            kind = f" ({updated.extra_kind})" if updated.extra_kind else ""
            await interaction.response.send_message(f"✏️ **{updated.name}** is now a {updated.category} game{kind}.")
        except ValueError as e:
            await interaction.response.send_message(embed=ErrorEmbeds.invalid_input(str(e)), ephemeral=True)
        except LeaderboardException as e:
            await interaction.response.send_message(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="game-remove", description="Remove a game")
    @app_commands.autocomplete(game=game_autocomplete)
    @app_commands.check(is_organiser)
    async def game_remove(self, interaction: discord.Interaction, game: str):
        try:
            row = await self.db.get_game_by_name(game)
            if row is None:
                await interaction.response.send_message(embed=ErrorEmbeds.game_not_found(game), ephemeral=True)
                return

            await self.db.delete_game(row.id)
            logger.info(f"{interaction.user} removed game {row.id} ({row.name})")
            await interaction.response.send_message(
                f"🗑️ Removed **{row.name}**. Statuses recorded for it no longer count."
            )
        except LeaderboardException as e:
            await interaction.response.send_message(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    # ============================================================================
    # Scores
    # ============================================================================

    async def _resolve_games(self, extras: Optional[str], game_times: Optional[str]):
        """Parse extras and per-game times and key them by game id."""
        challenges = [game.to_domain() for game in await self.db.get_all_games()]
        statuses = match_games(parse_status_assignments(extras or ""), challenges, EXTRA_CATEGORIES)
        times = match_games(parse_game_times(game_times or ""), challenges, TIMED_CATEGORIES)
        return {game_id: status.value for game_id, status in statuses.items()}, times

    async def _latest_score(self, participant_id: int):
        """The record currently counting for a participant, or None."""
        scores = await self.db.get_all_scores(participant_id)
        return scores[0] if scores else None

    async def _score_embed(self, title: str, row, score) -> discord.Embed:
        entry = await self.bot.leaderboard_service.get_participant_entry(row.id)
        embed = discord.Embed(
            title=title,
            description=f"**{row.name}** is now **#{entry.rank}** with **{entry.total_score}** points.",
            color=discord.Color.green()
        )
        embed.add_field(name="Physical", value=f"{format_minutes(score.physical_time)} → {entry.physical_score}", inline=True)
        embed.add_field(name="Mental", value=f"{format_minutes(score.mental_time)} → {entry.mental_score}", inline=True)
        embed.add_field(name="Extras", value=f"{len(score.extra_statuses or {})} game(s) → {entry.extra_score_final}", inline=True)
        return embed

    @app_commands.command(name="score-submit", description="Record a participant's latest results")
    @app_commands.describe(
        participant="Participant name",
        physical_time="Total physical time (MM:SS, H:MM:SS or minutes)",
        mental_time="Total mental time (MM:SS, H:MM:SS or minutes)",
        extras="Extra games as game=status pairs, e.g. Quiz=excellent, Relay=not-done",
        game_times="Physical/mental game times as game=time pairs, e.g. Sprint=4:30, Puzzle=12"
    )
    @app_commands.autocomplete(participant=participant_autocomplete)
    @app_commands.check(is_organiser)
    async def score_submit(
        self,
        interaction: discord.Interaction,
        participant: str,
        physical_time: str,
        mental_time: str,
        extras: Optional[str] = None,
        game_times: Optional[str] = None
    ):
        await interaction.response.defer()

        try:
            row = await self.db.get_participant_by_name(participant)
            if row is None:
                await interaction.followup.send(embed=ErrorEmbeds.participant_not_found(participant))
                return

            try:
                physical_minutes = parse_time_to_minutes(physical_time)
                mental_minutes = parse_time_to_minutes(mental_time)
                statuses, times = await self._resolve_games(extras, game_times)
            except ValueError as e:
                await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
                return

            score = await self.db.add_score(
                row.id, physical_minutes, mental_minutes, extra_statuses=statuses, game_times=times
            )
            logger.info(f"{interaction.user} recorded score {score.id} for {row.name}")
            await interaction.followup.send(embed=await self._score_embed("✅ Score Recorded", row, score))

        except LeaderboardException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in score-submit command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not record the score."))

    @app_commands.command(name="score-edit", description="Correct a participant's latest recorded results")
    @app_commands.describe(
        participant="Participant name",
        physical_time="Corrected physical time",
        mental_time="Corrected mental time",
        extras="game=status pairs to change; other extra games keep their status",
        game_times="game=time pairs to change; other game times are kept"
    )
    @app_commands.autocomplete(participant=participant_autocomplete)
    @app_commands.check(is_organiser)
    async def score_edit(
        self,
        interaction: discord.Interaction,
        participant: str,
        physical_time: Optional[str] = None,
        mental_time: Optional[str] = None,
        extras: Optional[str] = None,
        game_times: Optional[str] = None
    ):
        await interaction.response.defer()

        try:
            row = await self.db.get_participant_by_name(participant)
            if row is None:
                await interaction.followup.send(embed=ErrorEmbeds.participant_not_found(participant))
                return

            score = await self._latest_score(row.id)
            if score is None:
                await interaction.followup.send(embed=ErrorEmbeds.no_scores(row.name))
                return

            try:
                changes: Dict[str, object] = {}
                if physical_time is not None:
                    changes['physical_time'] = parse_time_to_minutes(physical_time)
                if mental_time is not None:
                    changes['mental_time'] = parse_time_to_minutes(mental_time)
                statuses, times = await self._resolve_games(extras, game_times)
            except ValueError as e:
                await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
                return

            if statuses:
                changes['extra_statuses'] = {**(score.extra_statuses or {}), **statuses}
            if times:
                changes['game_times'] = {**(score.game_times or {}), **times}
            if not changes:
                await interaction.followup.send(embed=ErrorEmbeds.invalid_input("Nothing to change."))
                return

            updated = await self.db.update_score(score.id, **changes)
            logger.info(f"{interaction.user} edited score {score.id} of {row.name}: {', '.join(changes)}")
            await interaction.followup.send(embed=await self._score_embed("✏️ Score Corrected", row, updated))

        except LeaderboardException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in score-edit command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not correct the score."))

    @app_commands.command(name="score-delete", description="Delete a participant's latest recorded results")
    @app_commands.describe(participant="Participant name")
    @app_commands.autocomplete(participant=participant_autocomplete)
    @app_commands.check(is_organiser)
    async def score_delete(self, interaction: discord.Interaction, participant: str):
        await interaction.response.defer()

        try:
            row = await self.db.get_participant_by_name(participant)
            if row is None:
                await interaction.followup.send(embed=ErrorEmbeds.participant_not_found(participant))
                return

            score = await self._latest_score(row.id)
            if score is None:
                await interaction.followup.send(embed=ErrorEmbeds.no_scores(row.name))
                return

            await self.db.delete_score(score.id)
            logger.info(f"{interaction.user} deleted score {score.id} of {row.name}")

            previous = await self._latest_score(row.id)
            if previous is None:
                await interaction.followup.send(f"🗑️ Deleted the only score of **{row.name}**.")
            else:
                await interaction.followup.send(
                    embed=await self._score_embed("🗑️ Latest Score Deleted", row, previous)
                )
        except LeaderboardException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))


async def setup(bot):
    await bot.add_cog(CompetitionCog(bot))
