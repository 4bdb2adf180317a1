"""Redis-backed throttle for password-reset requests."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

from bizmanager.core.config import settings
from bizmanager.core.database import database_manager
from bizmanager.core.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


class PasswordResetThrottle:
    """Allow at most ``max_attempts`` reset requests per address per window.

    The counter is keyed on the address whether or not an account exists, so
    a refusal says nothing about registration. Without Redis nothing is
    throttled.
    """

    def __init__(
        self,
        redis: Optional[Any] = None,
        *,
        max_attempts: int | None = None,
        window_seconds: int | None = None,
    ) -> None:
        self._redis = redis
        self.max_attempts = max_attempts or settings.PASSWORD_RESET_MAX_ATTEMPTS
        self.window_seconds = window_seconds or settings.PASSWORD_RESET_WINDOW_HOURS * 3600

    @property
    def redis(self) -> Optional[Any]:
        return self._redis if self._redis is not None else database_manager.redis

    async def hit(self, email: str) -> None:
        client = self.redis
        if client is None:
            return

        bucket = f"password-reset:{hashlib.sha256(email.strip().lower().encode('utf-8')).hexdigest()}"
        try:
            attempts = await client.incr(bucket)
            if attempts == 1:
                await client.expire(bucket, self.window_seconds)
            if attempts <= self.max_attempts:
                return
            ttl = await client.ttl(bucket)
        except RedisError:
            logger.warning("Reset throttle unavailable; allowing request", exc_info=True)
            return

        raise RateLimitedError(retry_after=ttl if ttl and ttl > 0 else self.window_seconds)
