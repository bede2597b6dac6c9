from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Float, JSON,
    ForeignKey, CheckConstraint
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from datetime import timezone
import logging

from scorebot.data_models.competition import (
    Challenge as ChallengeData, ChallengeCategory, ExtraKind, ExtraStatus,
    Participant as ParticipantData, ScoreRecord
)

Base = declarative_base()
logger = logging.getLogger(__name__)


def _as_utc(value):
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Participant(Base):
    __tablename__ = 'participants'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    photo_url = Column(String(500), nullable=True)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (CheckConstraint('year BETWEEN 1 AND 3', name='ck_participant_year'),)

    def to_domain(self) -> ParticipantData:
        return ParticipantData(
            id=str(self.id),
            name=self.name,
            year=self.year,
            photo_url=self.photo_url
        )

    def __repr__(self):
        return f"<Participant(id={self.id}, name='{self.name}', year={self.year})>"

class Game(Base):
    __tablename__ = 'games'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text, default="")

    # Scoring classification
    category = Column(String(20), nullable=False)  # physical, mental, extra
    extra_kind = Column(String(20), nullable=True)  # optional, mandatory - extra games only

    # Metadata
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def to_domain(self) -> ChallengeData:
        category = ChallengeCategory.from_raw(self.category)
        if category is None:
            # Unknown categories never score as extras
            logger.warning(f"Game {self.id} has unknown category {self.category!r}")
            category = ChallengeCategory.PHYSICAL
        return ChallengeData(
            id=str(self.id),
            name=self.name,
            description=self.description or "",
            category=category,
            extra_kind=ExtraKind.from_raw(self.extra_kind) if category == ChallengeCategory.EXTRA else None
        )

    def __repr__(self):
        return f"<Game(name='{self.name}', category='{self.category}')>"

class Score(Base):
    __tablename__ = 'scores'

    id = Column(Integer, primary_key=True)
    participant_id = Column(Integer, ForeignKey('participants.id', ondelete='CASCADE'), nullable=False, index=True)

    # Raw times in minutes across all physical / mental games
    physical_time = Column(Float, nullable=False, default=0.0)
    mental_time = Column(Float, nullable=False, default=0.0)

    # {game_id: status} for extra games, {game_id: minutes} for timed games
    extra_statuses = Column(JSON, nullable=False, default=dict)
    game_times = Column(JSON, nullable=False, default=dict)

    recorded_at = Column(DateTime, nullable=False, default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint('physical_time >= 0', name='ck_score_physical_time'),
        CheckConstraint('mental_time >= 0', name='ck_score_mental_time'),
    )

    def to_domain(self) -> ScoreRecord:
        """Convert to a ScoreRecord, dropping statuses that cannot be decoded."""
        statuses = {}
        for game_id, raw_status in (self.extra_statuses or {}).items():
            status = ExtraStatus.from_raw(raw_status)
            if status is None:
                logger.warning(f"Score {self.id}: dropping unknown status {raw_status!r} for game {game_id}")
                continue
            statuses[str(game_id)] = status

        return ScoreRecord(
            id=str(self.id),
            participant_id=str(self.participant_id),
            physical_time=self.physical_time or 0.0,
            mental_time=self.mental_time or 0.0,
            recorded_at=_as_utc(self.recorded_at),
            extra_statuses=statuses,
            game_times={str(k): v for k, v in (self.game_times or {}).items()}
        )

    def __repr__(self):
        return f"<Score(id={self.id}, participant_id={self.participant_id}, recorded_at={self.recorded_at})>"

class Setting(Base):
    __tablename__ = 'settings'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)  # JSON document
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Setting(key='{self.key}')>"
