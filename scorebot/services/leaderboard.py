"""
Leaderboard service for the scoreboard bot.

Loads participants, scores and games from the database and hands them to the
pure LeaderboardBuilder. Results are recomputed on every call.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import select
from scorebot.services.base import BaseService
from scorebot.data_models.competition import Challenge, Participant, ScoreRecord
from scorebot.data_models.leaderboard import LeaderboardEntry, LeaderboardPage, LeaderboardSummary, TrendPoint
from scorebot.database.models import Game, Participant as ParticipantRow, Score
from scorebot.utils.leaderboard_builder import LeaderboardBuilder
from scorebot.utils.leaderboard_exceptions import ParticipantNotFoundError
from scorebot.utils.ranking import sort_entries, validate_sort_by
from scorebot.utils.statistics import category_distribution, participant_trend, summarize, top_by_category

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompetitionSnapshot:
    """Everything the builder needs, read in one session."""
    participants: List[Participant]
    records: List[ScoreRecord]
    challenges: List[Challenge]


@dataclass(frozen=True)
class LeaderboardStatistics:
    summary: LeaderboardSummary
    distribution: Dict[str, float]
    top: Dict[str, List[Tuple[str, float]]]


class LeaderboardService(BaseService):
    """Service for leaderboard queries, pagination and statistics."""

    def __init__(self, session_factory, settings_service):
        super().__init__(session_factory)
        self.settings_service = settings_service

    async def load_snapshot(self) -> CompetitionSnapshot:
        """
        Read participants, scores and games.

        Scores come oldest first with insertion order breaking timestamp ties,
        so the latest-record fold picks the most recent submission.
        """
        async def read():
            async with self.get_session() as session:
                participants = (await session.execute(
                    select(ParticipantRow).order_by(ParticipantRow.id)
                )).scalars().all()
                scores = (await session.execute(
                    select(Score).order_by(Score.recorded_at, Score.id)
                )).scalars().all()
                games = (await session.execute(select(Game).order_by(Game.id))).scalars().all()

                return CompetitionSnapshot(
                    participants=[row.to_domain() for row in participants],
                    records=[row.to_domain() for row in scores],
                    challenges=[row.to_domain() for row in games],
                )

        return await self.execute_with_retry(read)

    async def get_leaderboard(self) -> List[LeaderboardEntry]:
        """Full ranked leaderboard under the current scoring rules."""
        snapshot = await self.load_snapshot()
        return LeaderboardBuilder.build(
            snapshot.participants,
            snapshot.records,
            snapshot.challenges,
            self.settings_service.get()
        )

    async def get_page(
        self,
        page: int = 1,
        page_size: int = 10,
        sort_by: str = "rank",
        descending: bool = False
    ) -> LeaderboardPage:
        """Get one page of the leaderboard in the requested display order."""
        if not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer")
        if not isinstance(page_size, int) or page_size < 1 or page_size > 50:
            raise ValueError("page_size must be between 1 and 50")
        if not validate_sort_by(sort_by):
            raise ValueError(f"Invalid sort_by value: {sort_by}")

        entries = sort_entries(await self.get_leaderboard(), sort_by, descending)
        total_count = len(entries)
        offset = (page - 1) * page_size

        return LeaderboardPage(
            entries=entries[offset:offset + page_size],
            current_page=page,
            total_pages=(total_count + page_size - 1) // page_size if total_count > 0 else 1,
            total_participants=total_count,
            sort_by=sort_by,
            descending=descending
        )

    async def get_participant_entry(self, participant_id) -> LeaderboardEntry:
        """Ranked entry for one participant."""
        participant_id = str(participant_id)
        for entry in await self.get_leaderboard():
            if entry.participant_id == participant_id:
                return entry
        raise ParticipantNotFoundError(participant_id)

    async def get_statistics(self, top_limit: int = 8) -> LeaderboardStatistics:
        entries = await self.get_leaderboard()
        return LeaderboardStatistics(
            summary=summarize(entries),
            distribution=category_distribution(entries),
            top={
                category: top_by_category(entries, category, top_limit)
                for category in ('physical', 'mental', 'extras')
            }
        )

    async def get_participant_trend(self, participant_id) -> List[TrendPoint]:
        """Score history of one participant, oldest first."""
        participant_id = str(participant_id)
        snapshot = await self.load_snapshot()
        participant: Optional[Participant] = next(
            (p for p in snapshot.participants if p.id == participant_id), None
        )
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return participant_trend(participant, snapshot.records, snapshot.challenges, self.settings_service.get())
