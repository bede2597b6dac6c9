"""
Shared ranking utilities

Latest-record selection, rank assignment and display ordering used by the
leaderboard builder and the leaderboard service.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union

from scorebot.data_models.competition import ScoreRecord
from scorebot.data_models.leaderboard import LeaderboardEntry

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Display sort keys → entry attribute
SORT_COLUMNS = {
    'rank': 'rank',
    'name': 'name',
    'year': 'year',
    'physical': 'physical_score',
    'mental': 'mental_score',
    'extras': 'extra_score_final',
    'total': 'total_score',
}


def parse_timestamp(value: Union[datetime, str, None]) -> datetime:
    """
    Convert a record timestamp into a timezone-aware instant.

    Naive datetimes are taken as UTC. ISO-8601 strings in any form
    `datetime.fromisoformat` accepts (trailing 'Z', fractional seconds, the
    basic `20240501T100000Z` form) are parsed. Anything unparseable is logged
    and treated as the epoch so it never wins a latest-record comparison.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('z'):
            text = text[:-1] + 'Z'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable timestamp {value!r}, treating as epoch")
            return EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return EPOCH


class LatestRecordSelector:
    """Picks the most recently recorded score per participant."""

    @staticmethod
    def select_latest(records: Iterable[ScoreRecord], participant_id: str) -> Optional[ScoreRecord]:
        """
        Latest record for one participant, or None when they have none.

        Explicit fold over the input: on an exact timestamp tie the record
        appearing later in the input wins, so repeated calls on the same
        input always return the same record.
        """
        latest = None
        latest_at = None
        for record in records:
            if record.participant_id != participant_id:
                continue
            recorded_at = parse_timestamp(record.recorded_at)
            if latest is None or recorded_at >= latest_at:
                latest, latest_at = record, recorded_at
        return latest

    @staticmethod
    def latest_by_participant(records: Iterable[ScoreRecord]) -> Dict[str, ScoreRecord]:
        """Latest record of every participant in one pass (same tie rule)."""
        latest: Dict[str, ScoreRecord] = {}
        latest_at: Dict[str, datetime] = {}
        for record in records:
            recorded_at = parse_timestamp(record.recorded_at)
            current = latest_at.get(record.participant_id)
            if current is None or recorded_at >= current:
                latest[record.participant_id] = record
                latest_at[record.participant_id] = recorded_at
        return latest


def assign_ranks(entries: Iterable[LeaderboardEntry]) -> List[LeaderboardEntry]:
    """
    Order entries by total score (descending) and number them 1..n.

    `sorted` is stable, so equal totals keep their input order and still get
    distinct consecutive ranks.
    """
    ordered = sorted(entries, key=lambda entry: entry.total_score, reverse=True)
    return [replace(entry, rank=index + 1) for index, entry in enumerate(ordered)]


def validate_sort_by(sort_by: str) -> bool:
    """Validate sort_by parameter against allowed values."""
    return sort_by in SORT_COLUMNS


def sort_entries(entries: Iterable[LeaderboardEntry], sort_by: str = 'rank', descending: bool = False) -> List[LeaderboardEntry]:
    """
    Reorder ranked entries for display without touching their ranks.

    Names compare case-insensitively; ties fall back to rank.
    """
    if not validate_sort_by(sort_by):
        raise ValueError(f"Invalid sort_by value: {sort_by}")

    attribute = SORT_COLUMNS[sort_by]

    def key(entry: LeaderboardEntry):
        value = getattr(entry, attribute)
        return value.casefold() if isinstance(value, str) else value

    # Two stable passes: rank first, then the requested column
    by_rank = sorted(entries, key=lambda entry: entry.rank)
    return sorted(by_rank, key=key, reverse=descending)
