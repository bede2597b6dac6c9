"""
Rate limiting for Discord slash commands.

In-memory sliding windows, one deque of timestamps per user and command.
"""

import time
import asyncio
from functools import wraps
from collections import defaultdict, deque
import logging

from scorebot.config import Config

logger = logging.getLogger(__name__)


class SimpleRateLimiter:
    """In-memory rate limiter for Discord commands.

    History lives in process memory; empty windows are dropped when checked.
    """

    def __init__(self, clock=time.monotonic):
        self._requests = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock

    async def is_allowed(self, user_id: int, command: str, limit: int, window: int) -> bool:
        """Check if user can execute command within rate limit."""
        if limit <= 0 or window <= 0:
            return False

        key = f"{user_id}:{command}"
        now = self._clock()

        async with self._lock:
            requests = self._requests[key]
            while requests and requests[0] <= now - window:
                requests.popleft()

            if len(requests) < limit:
                requests.append(now)
                return True

            logger.debug(f"Rate limit hit for {key}")
            return False


def rate_limit(command: str, limit: int = 1, window: int = 60):
    """Decorator for rate limiting Discord commands."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            rate_limiter = self.bot.rate_limiter

            # Bot owner bypasses rate limits
            if interaction.user.id == Config.OWNER_DISCORD_ID:
                return await func(self, interaction, *args, **kwargs)

            if not await rate_limiter.is_allowed(interaction.user.id, command, limit, window):
                await interaction.response.send_message(
                    f"⏰ Rate limit exceeded. Please wait before using `/{command}` again.",
                    ephemeral=True
                )
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
