"""
Leaderboard builder

Turns participants, their score records, the games and the scoring rules into
ranked leaderboard entries. Every call recomputes from its arguments; nothing
is cached or mutated, so concurrent callers need no coordination.

For each participant the latest record is scored:
    physical = ThresholdScorer(physical_time, config.physical)
    mental   = ThresholdScorer(mental_time, config.mental)
    extras   = ExtraScorer(extra_statuses, games, config.extras).final
    total    = physical + mental + extras
Participants without records get an all-zero entry. Entries are then sorted by
total (descending, stable) and ranked 1..n.
"""

import logging
from typing import Any, Iterable, List, Mapping, Union

from scorebot.data_models.competition import Challenge, ExtraStatus, Participant, ScoreRecord
from scorebot.data_models.leaderboard import LeaderboardEntry
from scorebot.data_models.scoring_config import ScoringConfig
from scorebot.utils.extras import ExtraScorer
from scorebot.utils.ranking import EPOCH, LatestRecordSelector, assign_ranks, parse_timestamp
from scorebot.utils.thresholds import ThresholdScorer

logger = logging.getLogger(__name__)


def accept_config(config: Union[ScoringConfig, Mapping[str, Any]]) -> ScoringConfig:
    """Validate a config once at the boundary; plain documents are parsed strictly."""
    if isinstance(config, ScoringConfig):
        return config
    return ScoringConfig.from_dict(config)


class LeaderboardBuilder:
    """Builds ranked leaderboards from in-memory competition data."""

    @staticmethod
    def score_record(
        participant: Participant,
        record: ScoreRecord,
        games: Mapping[str, Challenge],
        config: ScoringConfig,
    ) -> LeaderboardEntry:
        """Score one record for a participant (rank left at 0)."""
        physical = ThresholdScorer.score_with(record.physical_time, config.physical)
        mental = ThresholdScorer.score_with(record.mental_time, config.mental)
        extras = ExtraScorer.score(record.extra_statuses, games, config.extras)

        statuses = {}
        for game_id, raw_status in (record.extra_statuses or {}).items():
            status = ExtraStatus.from_raw(raw_status)
            if status is not None:
                statuses[game_id] = status

        return LeaderboardEntry(
            rank=0,
            participant_id=participant.id,
            name=participant.name,
            year=participant.year,
            photo_url=participant.photo_url,
            physical_score=physical,
            mental_score=mental,
            extra_score_raw=extras.raw,
            extra_score_final=extras.final,
            total_score=physical + mental + extras.final,
            physical_time=record.physical_time,
            mental_time=record.mental_time,
            recorded_at=parse_timestamp(record.recorded_at),
            score_id=record.id,
            extra_statuses=statuses,
            extra_breakdown=dict(extras.breakdown),
            game_times=dict(record.game_times or {}),
        )

    @staticmethod
    def empty_entry(participant: Participant) -> LeaderboardEntry:
        """Zero-valued entry for a participant with no records."""
        return LeaderboardEntry(
            rank=0,
            participant_id=participant.id,
            name=participant.name,
            year=participant.year,
            photo_url=participant.photo_url,
            physical_score=0,
            mental_score=0,
            extra_score_raw=0,
            extra_score_final=0,
            total_score=0,
            physical_time=0,
            mental_time=0,
            recorded_at=EPOCH,
        )

    @staticmethod
    def build(
        participants: Iterable[Participant],
        records: Iterable[ScoreRecord],
        challenges: Iterable[Challenge],
        config: Union[ScoringConfig, Mapping[str, Any]],
    ) -> List[LeaderboardEntry]:
        """
        Build the ranked leaderboard.

        Args:
            participants: Everyone to rank, in the order ties should keep
            records: All score records, any order
            challenges: All games
            config: Validated ScoringConfig, or a plain document to validate

        Returns:
            Entries sorted by total score (descending) with ranks 1..n

        Raises:
            ScoringConfigError: if the config is structurally incomplete
        """
        config = accept_config(config)
        participants = list(participants)
        games = {challenge.id: challenge for challenge in challenges}
        latest = LatestRecordSelector.latest_by_participant(records)

        entries = []
        for participant in participants:
            record = latest.get(participant.id)
            if record is None:
                entries.append(LeaderboardBuilder.empty_entry(participant))
            else:
                entries.append(LeaderboardBuilder.score_record(participant, record, games, config))

        ranked = assign_ranks(entries)
        logger.info(f"Built leaderboard: {len(ranked)} participants, {sum(1 for entry in ranked if entry.has_score)} with scores")
        return ranked
