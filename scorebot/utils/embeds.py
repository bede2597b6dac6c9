"""
Shared embed utilities for the scoreboard bot.

Embed builders used by the cogs and the leaderboard view.
"""

import discord
from typing import List, Mapping, Optional

from scorebot.constants import UIConstants
from scorebot.data_models.leaderboard import LeaderboardEntry, LeaderboardPage, TrendPoint
from scorebot.data_models.scoring_config import ScoringConfig
from scorebot.utils.error_embeds import ErrorEmbeds
from scorebot.utils.time_parser import format_minutes

SORT_LABELS = {
    'rank': 'Rank',
    'name': 'Name',
    'year': 'Year',
    'physical': 'Physical',
    'mental': 'Mental',
    'extras': 'Extras',
    'total': 'Total',
}


def format_points(value: float) -> str:
    """Whole numbers without decimals, everything else to one decimal."""
    if float(value).is_integer():
        return f"{int(value)}"
    return f"{value:.1f}"


def build_leaderboard_embed(page_data: LeaderboardPage) -> discord.Embed:
    """
    Build the leaderboard table embed for one page.

    Args:
        page_data: Page returned by LeaderboardService.get_page

    Returns:
        Embed with a fixed-width table of the page's entries
    """
    direction = "descending" if page_data.descending else "ascending"
    embed = discord.Embed(
        title=f"{UIConstants.TROPHY_EMOJI} Competition Leaderboard",
        description=f"Sorted by: **{SORT_LABELS.get(page_data.sort_by, page_data.sort_by)}** ({direction})",
        color=UIConstants.GOLD_RANK_COLOR
    )

    if not page_data.entries:
        embed.description += "\n\nNo participants registered yet."
        return embed

    width = UIConstants.NAME_WIDTH
    lines = ["```"]
    lines.append(f"{'#':<4} {'Name':<{width}} {'Yr':<3} {'Phy':>4} {'Men':>4} {'Ext':>4} {'Total':>6}")
    lines.append("-" * (width + 32))

    for entry in page_data.entries:
        name = entry.name[:width - 2]
        lines.append(
            f"{entry.rank:<4} {name:<{width}} {entry.year:<3} "
            f"{format_points(entry.physical_score):>4} {format_points(entry.mental_score):>4} "
            f"{format_points(entry.extra_score_final):>4} {format_points(entry.total_score):>6}"
        )

    lines.append("```")
    embed.description += "\n" + "\n".join(lines)

    embed.set_footer(
        text=f"Page {page_data.current_page}/{page_data.total_pages} | Total Participants: {page_data.total_participants}"
    )
    return embed


def build_entry_embed(
    entry: LeaderboardEntry,
    game_names: Optional[Mapping[str, str]] = None,
    trend: Optional[List[TrendPoint]] = None
) -> discord.Embed:
    """
    Build the calculation breakdown for one participant.

    Args:
        entry: Ranked leaderboard entry
        game_names: Game id to display name, for the extras breakdown
        trend: Optional score history, oldest first
    """
    if not entry.has_score:
        embed = ErrorEmbeds.no_scores(entry.name)
        embed.add_field(name="Rank", value=f"#{entry.rank} (Year {entry.year})", inline=False)
        if entry.photo_url:
            embed.set_thumbnail(url=entry.photo_url)
        return embed

    game_names = game_names or {}
    color = UIConstants.GOLD_RANK_COLOR if entry.rank == 1 else UIConstants.DEFAULT_EMBED_COLOR
    embed = discord.Embed(
        title=f"{entry.name} (Year {entry.year})",
        description=f"**Rank #{entry.rank}** with **{format_points(entry.total_score)}** points",
        color=color
    )
    if entry.photo_url:
        embed.set_thumbnail(url=entry.photo_url)

    embed.add_field(
        name=f"{UIConstants.PHYSICAL_EMOJI} Physical",
        value=f"{format_minutes(entry.physical_time)} → **{format_points(entry.physical_score)}** pts",
        inline=True
    )
    embed.add_field(
        name=f"{UIConstants.MENTAL_EMOJI} Mental",
        value=f"{format_minutes(entry.mental_time)} → **{format_points(entry.mental_score)}** pts",
        inline=True
    )

    if entry.game_times:
        times = [
            f"{game_names.get(game_id, f'Game {game_id}')}: {format_minutes(minutes)}"
            for game_id, minutes in entry.game_times.items()
        ]
        embed.add_field(name="⏱️ Game times", value="\n".join(times)[:1024], inline=False)

    if entry.extra_breakdown:
        lines = []
        for game_id, points in entry.extra_breakdown.items():
            status = entry.extra_statuses.get(game_id)
            label = status.value if status else "?"
            lines.append(f"{game_names.get(game_id, f'Game {game_id}')}: {label} ({format_points(points)})")
        if entry.extra_score_raw != entry.extra_score_final:
            lines.append(f"Capped {format_points(entry.extra_score_raw)} → {format_points(entry.extra_score_final)}")
        extras_value = "\n".join(lines)
    else:
        extras_value = "No extra games recorded."
    embed.add_field(
        name=f"{UIConstants.EXTRAS_EMOJI} Extras: {format_points(entry.extra_score_final)} pts",
        value=extras_value[:1024],
        inline=False
    )

    if trend and len(trend) > 1:
        history = " → ".join(format_points(point.total_score) for point in trend[-10:])
        embed.add_field(name="📈 Total over time", value=history, inline=False)

    embed.set_footer(text=f"Last recorded {entry.recorded_at:%Y-%m-%d %H:%M} UTC")
    return embed


def build_stats_embed(statistics) -> discord.Embed:
    """Build the statistics embed from LeaderboardService.get_statistics."""
    summary = statistics.summary
    embed = discord.Embed(
        title="📊 Competition Statistics",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    embed.add_field(
        name="Participants",
        value=f"**Registered:** {summary.total_participants}\n**With scores:** {summary.scored_participants}",
        inline=True
    )
    embed.add_field(
        name="Averages",
        value=(
            f"**Physical:** {summary.avg_physical:.1f}\n"
            f"**Mental:** {summary.avg_mental:.1f}\n"
            f"**Extras:** {summary.avg_extra:.1f}\n"
            f"**Best total:** {format_points(summary.max_total)}"
        ),
        inline=True
    )

    distribution = statistics.distribution
    embed.add_field(
        name="Points by category",
        value="\n".join(f"**{key.title()}:** {format_points(value)}" for key, value in distribution.items()),
        inline=True
    )

    emoji = {
        'physical': UIConstants.PHYSICAL_EMOJI,
        'mental': UIConstants.MENTAL_EMOJI,
        'extras': UIConstants.EXTRAS_EMOJI,
    }
    for category, top in statistics.top.items():
        value = "\n".join(
            f"{index}. {name}: {format_points(points)}" for index, (name, points) in enumerate(top, start=1)
        ) or "No data"
        embed.add_field(name=f"{emoji.get(category, '')} Top {category.title()}", value=value, inline=True)

    return embed


def build_scoring_config_embed(config: ScoringConfig) -> discord.Embed:
    """Show the current scoring rules."""
    embed = discord.Embed(
        title="⚙️ Scoring Settings",
        description="Change a value with `/scoring-set path value`, e.g. `physical.t1 15`.",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    for label, threshold in (("Physical", config.physical), ("Mental", config.mental)):
        embed.add_field(
            name=label,
            value=(
                f"Full points up to **{format_points(threshold.t1)}** min: {format_points(threshold.max_points)}\n"
                f"Floor from **{format_points(threshold.t2)}** min: {format_points(threshold.min_points)}"
            ),
            inline=True
        )

    points = config.extras.points
    rows = {
        'Optional': points.optional,
        'Mandatory': points.mandatory,
    }
    embed.add_field(
        name="Extras",
        value="\n".join(
            [f"Cap: {format_points(config.extras.cap_min)} to {format_points(config.extras.cap_max)}"] + [
                f"{label}: {format_points(values.excellent)} / {format_points(values.fair)} / {format_points(values.not_done)}"
                for label, values in rows.items()
            ]
        ),
        inline=False
    )
    embed.set_footer(text="Extras points: excellent / fair / not done")
    return embed
