from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.exceptions import ConflictError, NotFoundError, ValidationError
from bizmanager.core.security import utcnow
from bizmanager.models import TagCreate, TagUpdate
from bizmanager.storage.tables import TagRecord, interaction_tags

logger = logging.getLogger(__name__)


class TagService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: TagCreate) -> TagRecord:
        now = utcnow()
        tag = TagRecord(
            name=_clean_name(data.name),
            color=data.color,
            description=data.description,
            created_at=now,
            updated_at=now,
        )
        self.session.add(tag)
        await self._commit(tag.name)
        logger.info("tag.created", extra={"tag_id": tag.id})
        return tag

    async def get(self, tag_id: str) -> TagRecord:
        tag = await self.session.get(TagRecord, tag_id)
        if tag is None:
            raise NotFoundError(f"Tag with ID {tag_id} not found")
        return tag

    async def list(self, search: Optional[str] = None) -> List[TagRecord]:
        query = select(TagRecord).order_by(TagRecord.name)
        if search and search.strip():
            query = query.where(TagRecord.name.icontains(search.strip(), autoescape=True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, tag_id: str, patch: TagUpdate) -> TagRecord:
        tag = await self.get(tag_id)
        touched = patch.model_fields_set
        if "name" in touched and patch.name is not None:
            tag.name = _clean_name(patch.name)
        if "color" in touched:
            tag.color = patch.color
        if "description" in touched:
            tag.description = patch.description
        tag.updated_at = utcnow()
        await self._commit(tag.name)
        return tag

    async def delete(self, tag_id: str) -> None:
        tag = await self.get(tag_id)
        await self.session.delete(tag)
        await self.session.commit()
        logger.info("tag.deleted", extra={"tag_id": tag_id})

    async def usage(self, limit: int = 10) -> List[Tuple[TagRecord, int]]:
        """Tags with the number of interactions carrying them, most used first."""

        usage_count = func.count(interaction_tags.c.interaction_id).label("usage_count")
        result = await self.session.execute(
            select(TagRecord, usage_count)
            .outerjoin(interaction_tags, interaction_tags.c.tag_id == TagRecord.id)
            .group_by(TagRecord.id)
            .order_by(usage_count.desc(), TagRecord.name)
            .limit(limit)
        )
        return [(tag, int(count)) for tag, count in result.all()]

    async def _commit(self, name: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(f"A tag named '{name}' already exists") from exc


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("Invalid tag", errors=["name is required"])
    return cleaned
