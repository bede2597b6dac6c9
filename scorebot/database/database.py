import json
from datetime import datetime, timezone
from typing import Optional, List, Any, Dict
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager

from scorebot.config import Config
from scorebot.data_models.competition import ChallengeCategory, ExtraKind, ExtraStatus
from scorebot.data_models.scoring_config import DEFAULT_SCORING_CONFIG
from scorebot.database.models import Base, Participant, Game, Score, Setting
from scorebot.utils.leaderboard_exceptions import (
    ChallengeNotFoundError, DatabaseError, ParticipantNotFoundError,
    ScoreNotFoundError, ScoreValidationError
)
from scorebot.utils.logger import setup_logger

PARTICIPANT_FIELDS = {'name', 'year', 'photo_url'}
GAME_FIELDS = {'name', 'description', 'category', 'extra_kind'}
SCORE_FIELDS = {'physical_time', 'mental_time', 'extra_statuses', 'game_times', 'recorded_at'}


class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None

    @property
    def session_factory(self):
        return self.async_session

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        database_url = self.database_url or Config.get_async_database_url()

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        await self._seed_scoring_settings()

        self.logger.info("Database initialized successfully")

    async def _seed_scoring_settings(self):
        """Store the default scoring rules the first time the database is created"""
        if await self.get_setting(Config.SCORING_SETTINGS_KEY) is None:
            await self.set_setting(Config.SCORING_SETTINGS_KEY, DEFAULT_SCORING_CONFIG.to_dict())
            self.logger.info("Seeded default scoring settings")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("session", str(e)) from e
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # Participant operations
    async def get_all_participants(self) -> List[Participant]:
        """Get all participants ordered by name"""
        async with self.get_session() as session:
            result = await session.execute(select(Participant).order_by(Participant.name, Participant.id))
            return list(result.scalars().all())

    async def get_participant(self, participant_id: int) -> Optional[Participant]:
        """Get a participant by ID"""
        async with self.get_session() as session:
            return await session.get(Participant, participant_id)

    async def get_participant_by_name(self, name: str) -> Optional[Participant]:
        """Get a participant by name (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Participant).where(func.lower(Participant.name) == name.strip().lower())
            )
            return result.scalars().first()

    async def add_participant(self, name: str, year: int, photo_url: Optional[str] = None) -> Participant:
        """Create a new participant"""
        self._validate_participant(name=name, year=year)
        async with self.get_session() as session:
            participant = Participant(name=name.strip(), year=year, photo_url=photo_url)
            session.add(participant)
            await session.commit()
            await session.refresh(participant)
            self.logger.info(f"Added participant {participant.id} ({participant.name})")
            return participant

    async def update_participant(self, participant_id: int, **fields) -> Participant:
        """Update selected participant fields"""
        changes = self._pick(fields, PARTICIPANT_FIELDS)
        self._validate_participant(**changes)
        async with self.get_session() as session:
            participant = await session.get(Participant, participant_id)
            if participant is None:
                raise ParticipantNotFoundError(participant_id)
            for key, value in changes.items():
                setattr(participant, key, value)
            await session.commit()
            await session.refresh(participant)
            return participant

    async def delete_participant(self, participant_id: int) -> bool:
        """Delete a participant together with their scores"""
        async with self.get_session() as session:
            participant = await session.get(Participant, participant_id)
            if participant is None:
                return False
            await session.execute(delete(Score).where(Score.participant_id == participant_id))
            await session.delete(participant)
            await session.commit()
            self.logger.info(f"Deleted participant {participant_id}")
            return True

    # Game operations
    async def get_all_games(self, category: Optional[str] = None) -> List[Game]:
        """Get all games, optionally limited to one category"""
        async with self.get_session() as session:
            query = select(Game)
            if category:
                query = query.where(Game.category == self._category(category).value)
            result = await session.execute(query.order_by(Game.name))
            return list(result.scalars().all())

    async def get_game(self, game_id: int) -> Optional[Game]:
        """Get a game by ID"""
        async with self.get_session() as session:
            return await session.get(Game, game_id)

    async def get_game_by_name(self, name: str) -> Optional[Game]:
        """Get a game by name (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Game).where(func.lower(Game.name) == name.strip().lower())
            )
            return result.scalar_one_or_none()

    async def add_game(self, name: str, category: str, description: str = "",
                       extra_kind: Optional[str] = None) -> Game:
        """Create a new game"""
        values = self._game_values(name=name, category=category, description=description, extra_kind=extra_kind)
        async with self.get_session() as session:
            game = Game(**values)
            session.add(game)
            await session.commit()
            await session.refresh(game)
            self.logger.info(f"Added game {game.id} ({game.name}, {game.category})")
            return game

    async def update_game(self, game_id: int, **fields) -> Game:
        """Update selected game fields"""
        changes = self._pick(fields, GAME_FIELDS)
        async with self.get_session() as session:
            game = await session.get(Game, game_id)
            if game is None:
                raise ChallengeNotFoundError(game_id)
            merged = {
                'name': game.name,
                'category': game.category,
                'description': game.description,
                'extra_kind': game.extra_kind,
            }
            merged.update(changes)
            for key, value in self._game_values(**merged).items():
                setattr(game, key, value)
            await session.commit()
            await session.refresh(game)
            return game

    async def delete_game(self, game_id: int) -> bool:
        """Delete a game; statuses referring to it stop scoring"""
        async with self.get_session() as session:
            game = await session.get(Game, game_id)
            if game is None:
                return False
            await session.delete(game)
            await session.commit()
            self.logger.info(f"Deleted game {game_id}")
            return True

    # Score operations
    async def get_all_scores(self, participant_id: Optional[int] = None) -> List[Score]:
        """Get scores, newest first"""
        async with self.get_session() as session:
            query = select(Score)
            if participant_id is not None:
                query = query.where(Score.participant_id == participant_id)
            result = await session.execute(query.order_by(Score.recorded_at.desc(), Score.id.desc()))
            return list(result.scalars().all())

    async def get_score(self, score_id: int) -> Optional[Score]:
        """Get a score by ID"""
        async with self.get_session() as session:
            return await session.get(Score, score_id)

    async def add_score(self, participant_id: int, physical_time: float, mental_time: float,
                        extra_statuses: Optional[Dict[Any, Any]] = None,
                        game_times: Optional[Dict[Any, float]] = None,
                        recorded_at: Optional[datetime] = None) -> Score:
        """Record a new score for a participant; recorded_at defaults to now (UTC)"""
        values = self._score_values(
            physical_time=physical_time,
            mental_time=mental_time,
            extra_statuses=extra_statuses or {},
            game_times=game_times or {},
            recorded_at=recorded_at or datetime.now(timezone.utc),
        )
        async with self.get_session() as session:
            if await session.get(Participant, participant_id) is None:
                raise ParticipantNotFoundError(participant_id)
            score = Score(participant_id=participant_id, **values)
            session.add(score)
            await session.commit()
            await session.refresh(score)
            self.logger.info(f"Recorded score {score.id} for participant {participant_id}")
            return score

    async def update_score(self, score_id: int, **fields) -> Score:
        """Update selected score fields"""
        changes = self._score_values(**self._pick(fields, SCORE_FIELDS))
        async with self.get_session() as session:
            score = await session.get(Score, score_id)
            if score is None:
                raise ScoreNotFoundError(score_id)
            for key, value in changes.items():
                setattr(score, key, value)
            await session.commit()
            await session.refresh(score)
            return score

    async def delete_score(self, score_id: int) -> bool:
        """Delete a score"""
        async with self.get_session() as session:
            score = await session.get(Score, score_id)
            if score is None:
                return False
            await session.delete(score)
            await session.commit()
            return True

    # Settings operations
    async def get_setting(self, key: str) -> Optional[Any]:
        """Get a decoded JSON setting, None when absent or unreadable"""
        async with self.get_session() as session:
            setting = await session.get(Setting, key)
            if setting is None:
                return None
            try:
                return json.loads(setting.value)
            except json.JSONDecodeError:
                self.logger.warning(f"Invalid JSON for setting '{key}', ignoring")
                return None

    async def set_setting(self, key: str, value: Any):
        """Store a JSON setting, replacing any previous value"""
        async with self.get_session() as session:
            setting = await session.get(Setting, key)
            if setting is None:
                session.add(Setting(key=key, value=json.dumps(value)))
            else:
                setting.value = json.dumps(value)
            await session.commit()

    # Validation helpers
    @staticmethod
    def _pick(fields: Dict[str, Any], allowed: set) -> Dict[str, Any]:
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
        return dict(fields)

    @staticmethod
    def _validate_participant(**fields):
        if 'name' in fields and not (fields['name'] or '').strip():
            raise ValueError("Participant name cannot be empty")
        if 'year' in fields:
            year = fields['year']
            if isinstance(year, bool) or not isinstance(year, int) or not Config.MIN_YEAR <= year <= Config.MAX_YEAR:
                raise ValueError(f"Year must be between {Config.MIN_YEAR} and {Config.MAX_YEAR}")

    @staticmethod
    def _category(value: str) -> ChallengeCategory:
        category = ChallengeCategory.from_raw(value)
        if category is None:
            raise ValueError(f"Unknown game category: {value}")
        return category

    @classmethod
    def _game_values(cls, name: str, category: str, description: str = "",
                     extra_kind: Optional[str] = None) -> Dict[str, Any]:
        if not (name or '').strip():
            raise ValueError("Game name cannot be empty")
        category = cls._category(category)
        kind = None
        if category == ChallengeCategory.EXTRA:
            kind = ExtraKind.from_raw(extra_kind)
            if kind is None:
                raise ValueError("Extra games need a kind: optional or mandatory")
        return {
            'name': name.strip(),
            'category': category.value,
            'description': description or "",
            'extra_kind': kind.value if kind else None,
        }

    @staticmethod
    def _score_values(**fields) -> Dict[str, Any]:
        values = {}
        for key in ('physical_time', 'mental_time'):
            if key in fields:
                value = fields[key]
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                    raise ScoreValidationError(value, f"{key.replace('_', ' ')} must be a non-negative number of minutes")
                values[key] = float(value)
        if 'extra_statuses' in fields:
            statuses = {}
            for game_id, raw_status in (fields['extra_statuses'] or {}).items():
                status = ExtraStatus.from_raw(raw_status)
                if status is None:
                    raise ScoreValidationError(raw_status, f"Unknown status '{raw_status}' for game {game_id}")
                statuses[str(game_id)] = status.value
            values['extra_statuses'] = statuses
        if 'game_times' in fields:
            values['game_times'] = {str(k): float(v) for k, v in (fields['game_times'] or {}).items()}
        if 'recorded_at' in fields:
            recorded_at = fields['recorded_at']
            if not isinstance(recorded_at, datetime):
                raise ScoreValidationError(recorded_at, "recorded_at must be a datetime")
            # Stored as naive UTC
            if recorded_at.tzinfo is not None:
                recorded_at = recorded_at.astimezone(timezone.utc).replace(tzinfo=None)
            values['recorded_at'] = recorded_at
        return values
