"""Administrative endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.engine import make_url

from bizmanager.api.dependencies import get_db
from bizmanager.api.security import require_admin
from bizmanager.core.config import settings
from bizmanager.core.database import DatabaseManager
from bizmanager.core.security import TokenClaims

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health")
async def healthcheck(db: DatabaseManager = Depends(get_db)) -> Dict[str, str]:
    """Readiness probe: checks the relational store and, when configured, Redis."""

    report = {"status": "ok", "environment": settings.ENVIRONMENT, "database": "ok"}
    try:
        async with db.session() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        report.update(status="degraded", database="unavailable")

    if db.redis is not None:
        try:
            await db.redis.ping()
            report["redis"] = "ok"
        except Exception:
            logger.warning("Redis health check failed", exc_info=True)
            report.update(status="degraded", redis="unavailable")
    return report


@router.get("/config")
async def configuration_snapshot(_: TokenClaims = Depends(require_admin)) -> Dict[str, Any]:
    """Return a limited configuration snapshot for admins."""

    return {
        "api_title": settings.API_TITLE,
        "environment": settings.ENVIRONMENT,
        "database_backend": make_url(settings.DATABASE_URL).get_backend_name(),
        "redis_enabled": settings.REDIS_URL is not None,
        "smtp_enabled": settings.SMTP_HOST is not None,
        "access_token_expire_minutes": settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        "password_reset_expire_minutes": settings.PASSWORD_RESET_EXPIRE_MINUTES,
    }
