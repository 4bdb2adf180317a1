"""Interaction log endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from bizmanager.api.dependencies import get_current_user, get_interaction_service
from bizmanager.core.security import TokenClaims
from bizmanager.models import Interaction, InteractionCreate, InteractionType, InteractionUpdate, TagIds
from bizmanager.services.interactions import InteractionService

router = APIRouter(prefix="/interactions", tags=["interactions"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Interaction])
async def list_interactions(
    person_id: Optional[str] = Query(None, alias="personId"),
    type: Optional[InteractionType] = None,
    start: Optional[datetime] = Query(None, alias="startDate"),
    end: Optional[datetime] = Query(None, alias="endDate"),
    tag_id: Optional[str] = Query(None, alias="tagId"),
    interactions: InteractionService = Depends(get_interaction_service),
) -> List[Interaction]:
    records = await interactions.list(person_id=person_id, type=type, start=start, end=end, tag_id=tag_id)
    return [Interaction.model_validate(record) for record in records]


@router.post("", response_model=Interaction, status_code=status.HTTP_201_CREATED)
async def create_interaction(
    payload: InteractionCreate,
    current_user: TokenClaims = Depends(get_current_user),
    interactions: InteractionService = Depends(get_interaction_service),
) -> Interaction:
    record = await interactions.create(payload, created_by_id=current_user.user_id)
    return Interaction.model_validate(record)


@router.get("/{interaction_id}", response_model=Interaction)
async def get_interaction(
    interaction_id: str,
    interactions: InteractionService = Depends(get_interaction_service),
) -> Interaction:
    return Interaction.model_validate(await interactions.get(interaction_id))


@router.patch("/{interaction_id}", response_model=Interaction)
async def update_interaction(
    interaction_id: str,
    payload: InteractionUpdate,
    interactions: InteractionService = Depends(get_interaction_service),
) -> Interaction:
    return Interaction.model_validate(await interactions.update(interaction_id, payload))


@router.delete("/{interaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interaction(
    interaction_id: str,
    interactions: InteractionService = Depends(get_interaction_service),
) -> None:
    await interactions.delete(interaction_id)


@router.post("/{interaction_id}/tags", response_model=Interaction)
async def add_tags(
    interaction_id: str,
    payload: TagIds,
    interactions: InteractionService = Depends(get_interaction_service),
) -> Interaction:
    return Interaction.model_validate(await interactions.add_tags(interaction_id, payload.tag_ids))


@router.delete("/{interaction_id}/tags", response_model=Interaction)
async def remove_tags(
    interaction_id: str,
    tag_ids: List[str] = Query(..., alias="tagIds", min_length=1),
    interactions: InteractionService = Depends(get_interaction_service),
) -> Interaction:
    return Interaction.model_validate(await interactions.remove_tags(interaction_id, tag_ids))
