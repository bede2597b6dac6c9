"""
Leaderboard data models

Immutable data transfer objects produced by the leaderboard builder. Entries
are derived on every build and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from scorebot.data_models.competition import ExtraStatus


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row: a participant and the scores of their latest record."""
    rank: int
    participant_id: str
    name: str
    year: int
    physical_score: float
    mental_score: float
    extra_score_raw: float
    extra_score_final: float
    total_score: float
    physical_time: float
    mental_time: float
    recorded_at: datetime
    photo_url: Optional[str] = None
    score_id: Optional[str] = None
    extra_statuses: Dict[str, ExtraStatus] = field(default_factory=dict)
    extra_breakdown: Dict[str, float] = field(default_factory=dict)
    game_times: Dict[str, float] = field(default_factory=dict)

    @property
    def has_score(self) -> bool:
        return self.score_id is not None


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated leaderboard data."""
    entries: List[LeaderboardEntry]
    current_page: int
    total_pages: int
    total_participants: int
    sort_by: str
    descending: bool


@dataclass(frozen=True)
class LeaderboardSummary:
    """Aggregate figures over a leaderboard."""
    total_participants: int
    scored_participants: int
    avg_physical: float
    avg_mental: float
    avg_extra: float
    max_total: float


@dataclass(frozen=True)
class TrendPoint:
    """A participant's total as of one of their records."""
    score_id: str
    recorded_at: datetime
    physical_score: float
    mental_score: float
    extra_score: float
    total_score: float
