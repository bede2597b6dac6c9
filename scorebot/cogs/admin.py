import discord
from discord.ext import commands
from discord import app_commands
from scorebot.config import Config
from scorebot.cogs.competition import is_organiser
from scorebot.utils.embeds import build_scoring_config_embed
from scorebot.utils.error_embeds import ErrorEmbeds
from scorebot.utils.leaderboard_exceptions import ScoringConfigError
from scorebot.utils.logger import setup_logger

logger = setup_logger(__name__)


async def setting_path_autocomplete(interaction: discord.Interaction, current: str):
    paths = interaction.client.scoring_settings.get().flatten()
    return [
        app_commands.Choice(name=f"{path} (now {value})", value=path)
        for path, value in paths.items()
        if current.lower() in path
    ][:25]


class AdminCog(commands.Cog):
    """Scoring settings and bot management commands"""

    def __init__(self, bot):
        self.bot = bot
        self.scoring_settings = bot.scoring_settings
        self.logger = logger

    def cog_check(self, ctx):
        """Text commands are for the bot owner"""
        return ctx.author.id == Config.OWNER_DISCORD_ID

    @commands.command(name='shutdown')
    async def shutdown_bot(self, ctx):
        """Shutdown the bot (Owner only)"""
        await ctx.send("🔴 Shutting down Scoreboard Bot...")
        await self.bot.close()

    @commands.command(name='reload')
    async def reload_cog(self, ctx, cog_name: str):
        """Reload a specific cog (Owner only)"""
        try:
            await self.bot.reload_extension(f'scorebot.cogs.{cog_name}')
            await ctx.send(f"✅ Reloaded `{cog_name}` cog successfully.")
        except commands.ExtensionError as e:
            await ctx.send(f"❌ Failed to reload `{cog_name}`: {e}")

    # ============================================================================
    # Scoring settings
    # ============================================================================

    @app_commands.command(name="scoring-show", description="Show the current scoring rules")
    async def scoring_show(self, interaction: discord.Interaction):
        await interaction.response.send_message(embed=build_scoring_config_embed(self.scoring_settings.get()))

    @app_commands.command(name="scoring-set", description="Change one scoring setting")
    @app_commands.describe(path="Setting, e.g. physical.t1 or extras.points.mandatory.not_done", value="New number")
    @app_commands.autocomplete(path=setting_path_autocomplete)
    @app_commands.check(is_organiser)
    async def scoring_set(self, interaction: discord.Interaction, path: str, value: float):
        try:
            config = await self.scoring_settings.set_value(path, value, user_id=interaction.user.id)
        except ScoringConfigError as e:
            await interaction.response.send_message(
                embed=ErrorEmbeds.invalid_scoring_config(e.user_message), ephemeral=True
            )
            return

        embed = build_scoring_config_embed(config)
        embed.title = f"✅ Updated {path}"
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="scoring-reset", description="Restore the default scoring rules")
    @app_commands.check(is_organiser)
    async def scoring_reset(self, interaction: discord.Interaction):
        config = await self.scoring_settings.reset(user_id=interaction.user.id)
        embed = build_scoring_config_embed(config)
        embed.title = "♻️ Scoring rules reset to defaults"
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="scoring-reload", description="Reload scoring rules from the database")
    @app_commands.check(is_organiser)
    async def scoring_reload(self, interaction: discord.Interaction):
        config = await self.scoring_settings.load()
        await interaction.response.send_message(embed=build_scoring_config_embed(config), ephemeral=True)


async def setup(bot):
    await bot.add_cog(AdminCog(bot))
