from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel
from .enums import InteractionType


class Tag(CamelModel):
    id: str
    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TagUsage(Tag):
    usage_count: int = 0


class TagCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=32)
    description: Optional[str] = None


class TagUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=32)
    description: Optional[str] = None


class InteractionCreate(CamelModel):
    person_id: str
    type: InteractionType
    notes: Optional[str] = None
    date: Optional[datetime] = None
    tag_ids: List[str] = Field(default_factory=list)


class InteractionUpdate(CamelModel):
    type: Optional[InteractionType] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None
    tag_ids: Optional[List[str]] = None


class TagIds(CamelModel):
    tag_ids: List[str] = Field(..., min_length=1)


class Interaction(CamelModel):
    id: str
    person_id: str
    type: InteractionType
    notes: Optional[str] = None
    date: datetime
    created_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    tags: List[Tag] = Field(default_factory=list)
