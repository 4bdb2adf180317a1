"""Person and dynamic field wire models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from .base import CamelModel
from .enums import FieldType, PersonStatus


class DynamicFieldInput(CamelModel):
    """A typed custom attribute as submitted by a client.

    The payload may come as ``value`` or in the column matching the type
    (``stringValue``, ``numberValue``, ``booleanValue``, ``dateValue``). Types
    are checked by the repository so that every violation is reported together.
    """

    field_name: Optional[str] = Field(None, max_length=255)
    field_type: Optional[str] = None
    value: Any = None
    string_value: Any = None
    number_value: Any = None
    boolean_value: Any = None
    date_value: Any = None

    def submitted_value(self) -> Any:
        if "value" in self.model_fields_set:
            return self.value
        for column in ("string_value", "number_value", "boolean_value", "date_value"):
            if column in self.model_fields_set and getattr(self, column) is not None:
                return getattr(self, column)
        return None


class DynamicField(CamelModel):
    id: str
    person_id: str
    field_name: str
    field_type: FieldType
    value: Any = None
    string_value: Optional[str] = None
    number_value: Optional[float] = None
    boolean_value: Optional[bool] = None
    date_value: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PersonCreate(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=64)
    role: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None
    dynamic_fields: List[DynamicFieldInput] = Field(default_factory=list)


class PersonUpdate(CamelModel):
    """Partial update; only keys present in the payload are touched."""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=64)
    role: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None
    dynamic_fields: Optional[List[DynamicFieldInput]] = None


class Person(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    company: Optional[str] = None
    status: PersonStatus
    notes: Optional[str] = None
    address: Optional[str] = None
    created_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    last_interaction: Optional[datetime] = None
    dynamic_fields: List[DynamicField] = Field(default_factory=list)
