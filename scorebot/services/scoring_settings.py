"""
Scoring settings service for the scoreboard bot.

Keeps the scoring rules as one JSON document in the settings table, with an
in-memory copy of the validated ScoringConfig for the leaderboard.
"""

import json
import logging
from typing import Any, Mapping, Optional
from sqlalchemy import select

from scorebot.config import Config
from scorebot.data_models.scoring_config import DEFAULT_SCORING_CONFIG, ScoringConfig
from scorebot.database.models import Setting
from scorebot.services.base import BaseService
from scorebot.utils.leaderboard_exceptions import ScoringConfigError

logger = logging.getLogger(__name__)


class ScoringSettingsService(BaseService):
    """Manages the scoring rules with simple caching."""

    def __init__(self, session_factory, key: str = Config.SCORING_SETTINGS_KEY):
        """
        Initialize scoring settings service with session factory.

        Args:
            session_factory: Async session factory from Database class
            key: Settings table key holding the scoring document
        """
        super().__init__(session_factory)
        self.key = key
        self._config: Optional[ScoringConfig] = None

    async def load(self) -> ScoringConfig:
        """
        Load the stored document into memory.

        Missing fields are filled from DEFAULT_SCORING_CONFIG one by one. A
        document that cannot be used at all leaves the defaults in place.
        """
        document = await self._read_document()
        if document is None:
            config = DEFAULT_SCORING_CONFIG
            logger.info("No stored scoring settings, using defaults")
        else:
            try:
                config = ScoringConfig.from_dict(document, defaults=DEFAULT_SCORING_CONFIG)
            except ScoringConfigError as e:
                logger.warning(f"Stored scoring settings rejected ({e}), using defaults")
                config = DEFAULT_SCORING_CONFIG

        self._config = config
        logger.info("Loaded scoring settings")
        return config

    def get(self) -> ScoringConfig:
        """Current scoring rules; defaults until load() has run."""
        return self._config or DEFAULT_SCORING_CONFIG

    async def update(self, data: Mapping[str, Any], user_id: Optional[int] = None) -> ScoringConfig:
        """
        Replace the scoring rules with a complete document.

        Args:
            data: Full scoring document, validated strictly
            user_id: Discord user ID recorded in the log

        Raises:
            ScoringConfigError: if the document is incomplete or invalid
        """
        config = ScoringConfig.from_dict(data)
        await self._store(config, user_id, action='update')
        return config

    async def set_value(self, path: str, value: Any, user_id: Optional[int] = None) -> ScoringConfig:
        """
        Change one dotted setting (e.g. 'physical.t1') and persist.

        Raises:
            ScoringConfigError: unknown path, or the change breaks a rule
        """
        config = self.get().with_value(path, value)
        await self._store(config, user_id, action=f'set {path}={value!r}')
        return config

    async def reset(self, user_id: Optional[int] = None) -> ScoringConfig:
        """Restore the default scoring rules."""
        await self._store(DEFAULT_SCORING_CONFIG, user_id, action='reset')
        return DEFAULT_SCORING_CONFIG

    async def _read_document(self) -> Optional[Any]:
        async with self.get_session() as session:
            setting = await session.get(Setting, self.key)
            if setting is None:
                return None
            try:
                return json.loads(setting.value)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON for setting '{self.key}', ignoring")
                return None

    async def _store(self, config: ScoringConfig, user_id: Optional[int], action: str):
        async with self.get_session() as session:
            result = await session.execute(select(Setting).where(Setting.key == self.key))
            setting = result.scalar_one_or_none()
            value = json.dumps(config.to_dict())

            if setting:
                setting.value = value
            else:
                session.add(Setting(key=self.key, value=value))

            # Commit happens automatically on context exit

        self._config = config
        logger.info(f"Scoring settings {action} by user {user_id}")
