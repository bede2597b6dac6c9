"""
Extra game scoring

Sums the points of every extra game status in a score record and clamps the
sum into the configured cap range. Statuses referring to unknown games, to
non-extra games, or carrying an unrecognized kind/status contribute nothing;
incomplete data is normal while a competition is running.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Union

from scorebot.data_models.competition import Challenge, ExtraKind, ExtraStatus
from scorebot.data_models.scoring_config import ExtraScoringConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtraScoreResult:
    """Result of scoring a record's extra games"""
    raw: float  # Sum before capping
    final: float  # Sum clamped into [cap_min, cap_max]
    breakdown: Dict[str, float] = field(default_factory=dict)  # Per-game points, pre-cap


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


class ExtraScorer:
    """Scores extra (bonus/penalty) games from their discrete statuses"""

    @staticmethod
    def score(
        statuses: Mapping[str, Union[ExtraStatus, str]],
        challenges: Union[Mapping[str, Challenge], Iterable[Challenge]],
        config: ExtraScoringConfig,
    ) -> ExtraScoreResult:
        """
        Calculate the capped extra score.

        Args:
            statuses: Game id → status (enum, or a raw stored string)
            challenges: All games, as a list or an id → game mapping
            config: Extra scoring configuration

        Returns:
            ExtraScoreResult with raw sum, capped final value and breakdown
        """
        games = challenges if isinstance(challenges, Mapping) else {c.id: c for c in challenges}

        raw = 0
        breakdown: Dict[str, float] = {}
        for game_id, raw_status in (statuses or {}).items():
            game = games.get(game_id)
            if game is None or not game.is_extra:
                logger.debug(f"Skipping status for game {game_id}: unknown or not an extra game")
                continue

            kind = ExtraKind.from_raw(game.extra_kind)
            status = ExtraStatus.from_raw(raw_status)
            if kind is None or status is None:
                logger.debug(f"Game {game_id}: unrecognized kind {game.extra_kind!r} or status {raw_status!r}, scoring 0")
                points = 0
            else:
                points = config.points.lookup(kind, status)

            breakdown[game_id] = points
            raw += points

        final = clamp(raw, config.cap_min, config.cap_max)
        return ExtraScoreResult(raw=raw, final=final, breakdown=breakdown)
