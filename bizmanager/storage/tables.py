"""SQLAlchemy ORM tables for users, reset tokens, people and their records."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, String, Table, Text, func, select
from sqlalchemy.orm import DeclarativeBase, Mapped, column_property, mapped_column, relationship

from bizmanager.core.security import utcnow
from bizmanager.models.enums import FieldType, InteractionType, PersonStatus, UserRole


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


# Which value column holds the payload of each field type.
VALUE_COLUMNS: Dict[FieldType, str] = {
    FieldType.STRING: "string_value",
    FieldType.URL: "string_value",
    FieldType.EMAIL: "string_value",
    FieldType.PHONE: "string_value",
    FieldType.NUMBER: "number_value",
    FieldType.BOOLEAN: "boolean_value",
    FieldType.DATE: "date_value",
}


class UserRecord(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole, name="user_role"), default=UserRole.USER, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    reset_tokens: Mapped[List["PasswordResetTokenRecord"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PasswordResetTokenRecord(Base):
    __tablename__ = "password_reset_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user: Mapped[UserRecord] = relationship(back_populates="reset_tokens")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at


class PersonRecord(Base):
    __tablename__ = "people"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320))
    phone: Mapped[Optional[str]] = mapped_column(String(64))
    role: Mapped[Optional[str]] = mapped_column(String(255))
    company: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[PersonStatus] = mapped_column(
        Enum(PersonStatus, name="person_status"), default=PersonStatus.ACTIVE, index=True, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    created_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    dynamic_fields: Mapped[List["DynamicFieldRecord"]] = relationship(
        back_populates="person",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="DynamicFieldRecord.created_at",
    )
    interactions: Mapped[List["InteractionRecord"]] = relationship(
        back_populates="person",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class DynamicFieldRecord(Base):
    __tablename__ = "dynamic_fields"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    person_id: Mapped[str] = mapped_column(ForeignKey("people.id", ondelete="CASCADE"), index=True, nullable=False)
    field_name: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[FieldType] = mapped_column(Enum(FieldType, name="field_type"), nullable=False)
    string_value: Mapped[Optional[str]] = mapped_column(Text)
    number_value: Mapped[Optional[float]] = mapped_column(Float)
    boolean_value: Mapped[Optional[bool]] = mapped_column(Boolean)
    date_value: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    person: Mapped[PersonRecord] = relationship(back_populates="dynamic_fields")

    @property
    def value(self) -> Any:
        return getattr(self, VALUE_COLUMNS[self.field_type])

    def assign(self, field_type: FieldType, value: Any) -> None:
        """Store ``value`` in the column of ``field_type`` and clear the other three."""

        self.field_type = field_type
        target = VALUE_COLUMNS[field_type]
        for column in set(VALUE_COLUMNS.values()):
            setattr(self, column, value if column == target else None)


interaction_tags = Table(
    "interaction_tags",
    Base.metadata,
    Column("interaction_id", ForeignKey("interactions.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("assigned_at", DateTime, default=utcnow, nullable=False),
)


class InteractionRecord(Base):
    __tablename__ = "interactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    person_id: Mapped[str] = mapped_column(ForeignKey("people.id", ondelete="CASCADE"), index=True, nullable=False)
    type: Mapped[InteractionType] = mapped_column(Enum(InteractionType, name="interaction_type"), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True, nullable=False)
    created_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    person: Mapped[PersonRecord] = relationship(back_populates="interactions")
    tags: Mapped[List["TagRecord"]] = relationship(
        secondary=interaction_tags,
        back_populates="interactions",
        lazy="selectin",
        order_by="TagRecord.name",
    )


class TagRecord(Base):
    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(32))
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    interactions: Mapped[List[InteractionRecord]] = relationship(
        secondary=interaction_tags,
        back_populates="tags",
        passive_deletes=True,
    )


PersonRecord.last_interaction = column_property(
    select(func.max(InteractionRecord.date))
    .where(InteractionRecord.person_id == PersonRecord.id)
    .correlate_except(InteractionRecord)
    .scalar_subquery()
)
