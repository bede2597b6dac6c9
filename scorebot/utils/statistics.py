"""
Leaderboard statistics

Aggregations consumers draw from a built leaderboard: category averages,
point distribution, per-category top lists and a participant's score trend.
"""

from typing import Dict, Iterable, List, Tuple

from scorebot.data_models.competition import Challenge, Participant, ScoreRecord
from scorebot.data_models.leaderboard import LeaderboardEntry, LeaderboardSummary, TrendPoint
from scorebot.data_models.scoring_config import ScoringConfig
from scorebot.utils.leaderboard_builder import LeaderboardBuilder, accept_config
from scorebot.utils.ranking import parse_timestamp

CATEGORY_ATTRIBUTES = {
    'physical': 'physical_score',
    'mental': 'mental_score',
    'extras': 'extra_score_final',
    'total': 'total_score',
}


def summarize(entries: Iterable[LeaderboardEntry]) -> LeaderboardSummary:
    """Averages per category and the best total; zeros for an empty board."""
    entries = list(entries)
    count = len(entries)
    if count == 0:
        return LeaderboardSummary(0, 0, 0.0, 0.0, 0.0, 0.0)

    return LeaderboardSummary(
        total_participants=count,
        scored_participants=sum(1 for entry in entries if entry.has_score),
        avg_physical=sum(entry.physical_score for entry in entries) / count,
        avg_mental=sum(entry.mental_score for entry in entries) / count,
        avg_extra=sum(entry.extra_score_final for entry in entries) / count,
        max_total=max(entry.total_score for entry in entries),
    )


def category_distribution(entries: Iterable[LeaderboardEntry]) -> Dict[str, float]:
    """Points summed per category across all entries."""
    totals = {'physical': 0, 'mental': 0, 'extras': 0}
    for entry in entries:
        totals['physical'] += entry.physical_score
        totals['mental'] += entry.mental_score
        totals['extras'] += entry.extra_score_final
    return totals


def top_by_category(entries: Iterable[LeaderboardEntry], category: str, limit: int = 8) -> List[Tuple[str, float]]:
    """
    Best (name, points) pairs for one category.

    Args:
        entries: Leaderboard entries
        category: 'physical', 'mental', 'extras' or 'total'
        limit: Maximum number of pairs

    Raises:
        ValueError: for an unknown category or a negative limit
    """
    if category not in CATEGORY_ATTRIBUTES:
        raise ValueError(f"Unknown category: {category}")
    if limit < 0:
        raise ValueError("limit must not be negative")

    attribute = CATEGORY_ATTRIBUTES[category]
    ranked = sorted(entries, key=lambda entry: getattr(entry, attribute), reverse=True)
    return [(entry.name, getattr(entry, attribute)) for entry in ranked[:limit]]


def participant_trend(
    participant: Participant,
    records: Iterable[ScoreRecord],
    challenges: Iterable[Challenge],
    config: ScoringConfig,
) -> List[TrendPoint]:
    """
    Score every record of one participant, oldest first.

    Each point is computed with the current rules as if that record were the
    participant's latest one.
    """
    config = accept_config(config)
    games = {challenge.id: challenge for challenge in challenges}
    own = [record for record in records if record.participant_id == participant.id]
    own.sort(key=lambda record: parse_timestamp(record.recorded_at))

    points = []
    for record in own:
        entry = LeaderboardBuilder.score_record(participant, record, games, config)
        points.append(TrendPoint(
            score_id=record.id,
            recorded_at=entry.recorded_at,
            physical_score=entry.physical_score,
            mental_score=entry.mental_score,
            extra_score=entry.extra_score_final,
            total_score=entry.total_score,
        ))
    return points
