"""
Competition data models

Immutable data transfer objects consumed by the scoring core: participants,
games (challenges) and the score records submitted for them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Union


class ChallengeCategory(Enum):
    PHYSICAL = "physical"
    MENTAL = "mental"
    EXTRA = "extra"

    @classmethod
    def from_raw(cls, value) -> Optional["ChallengeCategory"]:
        """Decode a stored category ('Physical', 'mental', ...). None if unknown."""
        return _decode(cls, value, {})


class ExtraKind(Enum):
    OPTIONAL = "optional"
    MANDATORY = "mandatory"

    @classmethod
    def from_raw(cls, value) -> Optional["ExtraKind"]:
        """Decode a stored extra game kind. Accepts 'opcional'/'obligatoria'."""
        return _decode(cls, value, _KIND_ALIASES)


class ExtraStatus(Enum):
    EXCELLENT = "excellent"
    FAIR = "fair"
    NOT_DONE = "not-done"

    @classmethod
    def from_raw(cls, value) -> Optional["ExtraStatus"]:
        """Decode a stored extra game status. Accepts 'muy_bien'/'regular'/'no_hecho'."""
        return _decode(cls, value, _STATUS_ALIASES)


_KIND_ALIASES = {
    "opcional": ExtraKind.OPTIONAL,
    "obligatoria": ExtraKind.MANDATORY,
}

_STATUS_ALIASES = {
    "muy_bien": ExtraStatus.EXCELLENT,
    "regular": ExtraStatus.FAIR,
    "no_hecho": ExtraStatus.NOT_DONE,
    "not_done": ExtraStatus.NOT_DONE,
}


def _decode(enum_cls, value, aliases):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        return None


@dataclass(frozen=True)
class Participant:
    """A competitor. Year is the school year (1-3)."""
    id: str
    name: str
    year: int
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class Challenge:
    """A game of the competition; extra games carry a kind."""
    id: str
    name: str
    category: ChallengeCategory
    description: str = ""
    extra_kind: Optional[ExtraKind] = None

    @property
    def is_extra(self) -> bool:
        return self.category == ChallengeCategory.EXTRA


@dataclass(frozen=True)
class ScoreRecord:
    """
    One submitted measurement for a participant.

    Times are in minutes. `recorded_at` may be a datetime or an ISO-8601
    string; it is parsed before any comparison. `game_times` is informational
    and never used for totals.
    """
    id: str
    participant_id: str
    physical_time: float
    mental_time: float
    recorded_at: Union[datetime, str]
    extra_statuses: Dict[str, Union[ExtraStatus, str]] = field(default_factory=dict)
    game_times: Dict[str, float] = field(default_factory=dict)
