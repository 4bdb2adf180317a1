from __future__ import annotations

from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.api.security import authenticate_user
from bizmanager.core.database import DatabaseManager, database_manager
from bizmanager.core.security import TokenClaims
from bizmanager.services.auth import AuthService
from bizmanager.services.interactions import InteractionService
from bizmanager.services.notifications import Mailer, build_mailer
from bizmanager.services.people import PersonRepository
from bizmanager.services.tags import TagService
from bizmanager.utils.throttle import PasswordResetThrottle


async def get_db() -> DatabaseManager:
    return database_manager


async def get_session(db: DatabaseManager = Depends(get_db)) -> AsyncIterator[AsyncSession]:
    async with db.session() as session:
        yield session


@lru_cache()
def get_mailer() -> Mailer:
    return build_mailer()


async def get_throttle(db: DatabaseManager = Depends(get_db)) -> PasswordResetThrottle:
    return PasswordResetThrottle(db.redis)


async def get_auth_service(
    session: AsyncSession = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
    throttle: PasswordResetThrottle = Depends(get_throttle),
) -> AuthService:
    return AuthService(session, mailer=mailer, throttle=throttle)


async def get_person_repository(session: AsyncSession = Depends(get_session)) -> PersonRepository:
    return PersonRepository(session)


async def get_interaction_service(session: AsyncSession = Depends(get_session)) -> InteractionService:
    return InteractionService(session)


async def get_tag_service(session: AsyncSession = Depends(get_session)) -> TagService:
    return TagService(session)


async def get_current_user(claims: TokenClaims = Depends(authenticate_user)) -> TokenClaims:
    return claims
