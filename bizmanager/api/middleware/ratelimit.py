"""Simple Redis-backed rate limiting middleware."""

from __future__ import annotations

import hashlib
import logging
from typing import Callable, Optional

from fastapi import Request, status
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from bizmanager.core.config import settings
from bizmanager.core.database import database_manager
from bizmanager.core.exceptions import UnauthorizedError
from bizmanager.core.security import verify_access_token

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforce a fixed-window request limit per user or client IP."""

    def __init__(self, app, *, requests: Optional[int] = None, window_seconds: int = 60) -> None:
        super().__init__(app)
        self.requests = requests or settings.RATE_LIMIT_PER_MINUTE
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        redis = database_manager.redis
        if redis is None:
            return await call_next(request)

        identifier = self._derive_identifier(request)
        bucket = f"ratelimit:{identifier}"

        try:
            current = await redis.incr(bucket)
            if current == 1:
                await redis.expire(bucket, self.window_seconds)
            ttl = await redis.ttl(bucket)
        except RedisError:
            logger.warning("Rate limiter unavailable; passing request through", exc_info=True)
            return await call_next(request)

        if current > self.requests:
            retry_after = ttl if ttl > 0 else self.window_seconds
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded", "code": "rate_limited"},
                headers={"Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.requests)
        response.headers["X-RateLimit-Remaining"] = str(max(self.requests - current, 0))
        return response

    def _derive_identifier(self, request: Request) -> str:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.split(" ", 1)[1]
            try:
                return f"user:{verify_access_token(token).user_id}"
            except UnauthorizedError:
                return f"token:{hashlib.sha256(token.encode('utf-8')).hexdigest()[:16]}"

        client_ip = request.client.host if request.client else "anonymous"
        return f"ip:{client_ip}"
