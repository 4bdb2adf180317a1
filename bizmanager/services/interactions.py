"""Interaction logs recorded against people, with tag assignment."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.exceptions import NotFoundError, ValidationError
from bizmanager.core.security import as_naive_utc, utcnow
from bizmanager.models import InteractionCreate, InteractionType, InteractionUpdate
from bizmanager.storage.tables import InteractionRecord, PersonRecord, TagRecord

logger = logging.getLogger(__name__)


class InteractionService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: InteractionCreate, *, created_by_id: Optional[str] = None) -> InteractionRecord:
        if await self.session.get(PersonRecord, data.person_id) is None:
            raise NotFoundError(f"Person with ID {data.person_id} not found")
        tags = await self._resolve_tags(data.tag_ids)

        now = utcnow()
        record = InteractionRecord(
            person_id=data.person_id,
            type=data.type,
            notes=data.notes,
            date=as_naive_utc(data.date) if data.date else now,
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now,
        )
        record.tags = tags
        self.session.add(record)
        await self.session.commit()

        logger.info("interaction.created", extra={"interaction_id": record.id, "person_id": record.person_id})
        return await self.get(record.id)

    async def get(self, interaction_id: str) -> InteractionRecord:
        result = await self.session.execute(
            select(InteractionRecord)
            .where(InteractionRecord.id == interaction_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"Interaction with ID {interaction_id} not found")
        return record

    async def list(
        self,
        *,
        person_id: Optional[str] = None,
        type: Optional[InteractionType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        tag_id: Optional[str] = None,
    ) -> List[InteractionRecord]:
        """Interactions matching every given filter, newest first."""

        query = select(InteractionRecord)
        if person_id:
            query = query.where(InteractionRecord.person_id == person_id)
        if type is not None:
            query = query.where(InteractionRecord.type == type)
        if start is not None:
            query = query.where(InteractionRecord.date >= as_naive_utc(start))
        if end is not None:
            query = query.where(InteractionRecord.date <= as_naive_utc(end))
        if tag_id:
            query = query.where(InteractionRecord.tags.any(TagRecord.id == tag_id))

        result = await self.session.execute(
            query.order_by(InteractionRecord.date.desc(), InteractionRecord.id).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update(self, interaction_id: str, patch: InteractionUpdate) -> InteractionRecord:
        record = await self.get(interaction_id)
        touched = patch.model_fields_set

        if "type" in touched:
            if patch.type is None:
                raise ValidationError("Invalid interaction data", errors=["type cannot be null"])
            record.type = patch.type
        if "notes" in touched:
            record.notes = patch.notes
        if "date" in touched and patch.date is not None:
            record.date = as_naive_utc(patch.date)
        if "tag_ids" in touched:
            record.tags = await self._resolve_tags(patch.tag_ids or [])
        record.updated_at = utcnow()
        await self.session.commit()

        logger.info("interaction.updated", extra={"interaction_id": interaction_id, "changed": sorted(touched)})
        return await self.get(interaction_id)

    async def delete(self, interaction_id: str) -> None:
        record = await self.get(interaction_id)
        await self.session.delete(record)
        await self.session.commit()
        logger.info("interaction.deleted", extra={"interaction_id": interaction_id})

    async def add_tags(self, interaction_id: str, tag_ids: Iterable[str]) -> InteractionRecord:
        record = await self.get(interaction_id)
        assigned = {tag.id for tag in record.tags}
        for tag in await self._resolve_tags(tag_ids):
            if tag.id not in assigned:
                record.tags.append(tag)
                assigned.add(tag.id)
        record.updated_at = utcnow()
        await self.session.commit()
        return await self.get(interaction_id)

    async def remove_tags(self, interaction_id: str, tag_ids: Iterable[str]) -> InteractionRecord:
        record = await self.get(interaction_id)
        dropped = set(tag_ids)
        record.tags = [tag for tag in record.tags if tag.id not in dropped]
        record.updated_at = utcnow()
        await self.session.commit()
        return await self.get(interaction_id)

    async def _resolve_tags(self, tag_ids: Iterable[str]) -> List[TagRecord]:
        wanted = list(dict.fromkeys(tag_ids))
        if not wanted:
            return []
        result = await self.session.execute(select(TagRecord).where(TagRecord.id.in_(wanted)))
        found = {tag.id: tag for tag in result.scalars().all()}
        missing = [tag_id for tag_id in wanted if tag_id not in found]
        if missing:
            raise ValidationError("Unknown tags", errors=[f"tag {tag_id} does not exist" for tag_id in missing])
        return [found[tag_id] for tag_id in wanted]
