"""Persistence of user accounts and password-reset tokens."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.exceptions import ConflictError
from bizmanager.core.security import utcnow
from bizmanager.models.enums import UserRole
from bizmanager.storage.tables import PasswordResetTokenRecord, UserRecord

logger = logging.getLogger(__name__)


class CredentialStore:
    """Reads and writes users and reset tokens within the caller's session.

    The store flushes but never commits; the owning service decides the
    transaction boundary.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return await self.session.get(UserRecord, user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self.session.execute(select(UserRecord).where(UserRecord.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def add_user(
        self,
        *,
        email: str,
        password_hash: str,
        name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> UserRecord:
        user = UserRecord(email=normalize_email(email), password_hash=password_hash, name=name, role=role)
        self.session.add(user)
        await self._flush("A user with this email already exists")
        return user

    async def update_user(self, user: UserRecord, **changes: object) -> UserRecord:
        for key, value in changes.items():
            if key == "email" and isinstance(value, str):
                value = normalize_email(value)
            setattr(user, key, value)
        user.updated_at = utcnow()
        await self._flush("A user with this email already exists")
        return user

    async def add_reset_token(self, user: UserRecord, token_hash: str, expires_at: datetime) -> PasswordResetTokenRecord:
        record = PasswordResetTokenRecord(user_id=user.id, token_hash=token_hash, expires_at=expires_at)
        self.session.add(record)
        await self._flush("Reset token collision")
        return record

    async def get_reset_token(self, token_hash: str) -> Optional[PasswordResetTokenRecord]:
        result = await self.session.execute(
            select(PasswordResetTokenRecord).where(PasswordResetTokenRecord.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def claim_reset_token(self, record: PasswordResetTokenRecord) -> bool:
        """Flip ``used`` from false to true; only one concurrent caller can win."""

        result = await self.session.execute(
            update(PasswordResetTokenRecord)
            .where(PasswordResetTokenRecord.id == record.id, PasswordResetTokenRecord.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def invalidate_reset_tokens(self, user_id: str) -> int:
        """Mark every outstanding token of ``user_id`` as used."""

        result = await self.session.execute(
            update(PasswordResetTokenRecord)
            .where(PasswordResetTokenRecord.user_id == user_id, PasswordResetTokenRecord.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def _flush(self, conflict_message: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Uniqueness violation", extra={"reason": conflict_message})
            raise ConflictError(conflict_message) from exc


def normalize_email(email: str) -> str:
    return email.strip().lower()
