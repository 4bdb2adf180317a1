"""Tag endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from bizmanager.api.dependencies import get_current_user, get_tag_service
from bizmanager.models import Tag, TagCreate, TagUpdate, TagUsage
from bizmanager.services.tags import TagService

router = APIRouter(prefix="/tags", tags=["tags"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Tag])
async def list_tags(search: Optional[str] = None, tags: TagService = Depends(get_tag_service)) -> List[Tag]:
    return [Tag.model_validate(tag) for tag in await tags.list(search)]


@router.post("", response_model=Tag, status_code=status.HTTP_201_CREATED)
async def create_tag(payload: TagCreate, tags: TagService = Depends(get_tag_service)) -> Tag:
    return Tag.model_validate(await tags.create(payload))


@router.get("/top", response_model=List[TagUsage])
async def top_tags(
    limit: int = Query(10, ge=1, le=100),
    tags: TagService = Depends(get_tag_service),
) -> List[TagUsage]:
    """Most used tags first."""

    usage = await tags.usage(limit)
    return [TagUsage(**Tag.model_validate(tag).model_dump(), usage_count=count) for tag, count in usage]


@router.get("/{tag_id}", response_model=Tag)
async def get_tag(tag_id: str, tags: TagService = Depends(get_tag_service)) -> Tag:
    return Tag.model_validate(await tags.get(tag_id))


@router.patch("/{tag_id}", response_model=Tag)
async def update_tag(tag_id: str, payload: TagUpdate, tags: TagService = Depends(get_tag_service)) -> Tag:
    return Tag.model_validate(await tags.update(tag_id, payload))


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: str, tags: TagService = Depends(get_tag_service)) -> None:
    await tags.delete(tag_id)
