"""Person repository: CRUD over people and their typed dynamic fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.exceptions import ConflictError, NotFoundError, ValidationError
from bizmanager.core.security import as_naive_utc, utcnow
from bizmanager.models import (
    BUSINESS_STATUSES,
    PERSONAL_STATUSES,
    DynamicFieldInput,
    FieldType,
    PersonCreate,
    PersonStatus,
    PersonUpdate,
    StatusCategory,
)
from bizmanager.storage.tables import DynamicFieldRecord, PersonRecord
from bizmanager.utils import validators

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "phone", "role", "company", "status", "notes", "address")
SEARCH_COLUMNS = ("name", "email", "phone", "role", "company", "notes", "address")
SORT_COLUMNS = ("name", "created_at", "updated_at")
MAX_PAGE_SIZE = 500

ValidatedField = Tuple[str, FieldType, Any]


@dataclass
class PersonPage:
    items: List[PersonRecord]
    total: int


class PersonRepository:
    """Data access for people, bound to one request-scoped session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_person(self, data: PersonCreate, *, created_by_id: Optional[str] = None) -> PersonRecord:
        errors: List[str] = []
        values = _validate_contact({key: getattr(data, key) for key in CONTACT_FIELDS}, errors, creating=True)
        fields = _validate_fields(data.dynamic_fields, errors)
        if errors:
            raise ValidationError("Invalid person data", errors=errors)

        values.setdefault("status", PersonStatus.ACTIVE)
        now = utcnow()
        person = PersonRecord(**values, created_by_id=created_by_id, created_at=now, updated_at=now)
        person.dynamic_fields = [_new_field(name, field_type, value, now) for name, field_type, value in fields]
        self.session.add(person)
        await self._commit()

        logger.info("person.created", extra={"person_id": person.id, "fields": len(fields)})
        return await self.get_person(person.id)

    async def get_person(self, person_id: str) -> PersonRecord:
        result = await self.session.execute(
            select(PersonRecord).where(PersonRecord.id == person_id).execution_options(populate_existing=True)
        )
        person = result.scalar_one_or_none()
        if person is None:
            raise NotFoundError(f"Person with ID {person_id} not found")
        return person

    async def list_people(
        self,
        status_filter: str = StatusCategory.ALL.value,
        *,
        search: Optional[str] = None,
        sort: str = "created_at",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> PersonPage:
        """List people matching a status, a meta-category (BUSINESS/PERSONAL) or ALL.

        ``sort`` names a column (name, created_at, updated_at); a leading ``-``
        reverses it. Without ``limit`` every match is returned.
        """

        statuses = resolve_status_filter(status_filter)
        errors: List[str] = []
        descending = sort.startswith("-")
        sort_key = sort.lstrip("-")
        if sort_key not in SORT_COLUMNS:
            errors.append(f"sort must be one of {', '.join(SORT_COLUMNS)}")
        if page < 1:
            errors.append("page must be at least 1")
        if limit is not None and not 1 <= limit <= MAX_PAGE_SIZE:
            errors.append(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if errors:
            raise ValidationError("Invalid listing parameters", errors=errors)

        conditions = []
        if statuses is not None:
            conditions.append(PersonRecord.status.in_(statuses))
        if search and search.strip():
            term = search.strip()
            conditions.append(
                or_(*(getattr(PersonRecord, column).icontains(term, autoescape=True) for column in SEARCH_COLUMNS))
            )

        total = await self.session.scalar(select(func.count()).select_from(PersonRecord).where(*conditions))

        column = getattr(PersonRecord, sort_key)
        query = (
            select(PersonRecord)
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc(), PersonRecord.id)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            query = query.offset((page - 1) * limit).limit(limit)

        result = await self.session.execute(query)
        return PersonPage(items=list(result.scalars().all()), total=int(total or 0))

    async def update_person(self, person_id: str, patch: PersonUpdate) -> PersonRecord:
        person = await self.get_person(person_id)

        errors: List[str] = []
        touched = patch.model_fields_set
        values = _validate_contact(
            {key: getattr(patch, key) for key in CONTACT_FIELDS if key in touched},
            errors,
            creating=False,
        )
        fields: Optional[List[ValidatedField]] = None
        # null leaves fields alone; [] clears them
        if "dynamic_fields" in touched and patch.dynamic_fields is not None:
            fields = _validate_fields(patch.dynamic_fields, errors)
        if errors:
            raise ValidationError("Invalid person data", errors=errors)

        now = utcnow()
        for key, value in values.items():
            setattr(person, key, value)
        if fields is not None:
            self._sync_fields(person, fields, now)
        person.updated_at = now
        await self._commit()

        logger.info("person.updated", extra={"person_id": person_id, "changed": sorted(touched)})
        return await self.get_person(person_id)

    async def delete_person(self, person_id: str) -> None:
        person = await self.get_person(person_id)
        await self.session.delete(person)
        await self._commit()
        logger.info("person.deleted", extra={"person_id": person_id})

    async def add_dynamic_field(self, person_id: str, field: DynamicFieldInput) -> DynamicFieldRecord:
        person = await self.get_person(person_id)

        errors: List[str] = []
        validated = _validate_fields([field], errors)
        if not errors and any(existing.field_name == validated[0][0] for existing in person.dynamic_fields):
            errors.append(f"dynamicFields[0]: a field named '{validated[0][0]}' already exists")
        if errors:
            raise ValidationError("Invalid dynamic field", errors=errors)

        now = utcnow()
        name, field_type, value = validated[0]
        record = _new_field(name, field_type, value, now)
        person.dynamic_fields.append(record)
        person.updated_at = now
        await self._commit()

        logger.info("person.field_added", extra={"person_id": person_id, "field_id": record.id})
        return record

    async def remove_dynamic_field(self, field_id: str) -> None:
        record = await self.session.get(DynamicFieldRecord, field_id)
        if record is None:
            raise NotFoundError(f"Dynamic field with ID {field_id} not found")
        person = await self.get_person(record.person_id)
        person.dynamic_fields.remove(record)
        person.updated_at = utcnow()
        await self._commit()
        logger.info("person.field_removed", extra={"person_id": person.id, "field_id": field_id})

    def _sync_fields(self, person: PersonRecord, fields: Sequence[ValidatedField], now) -> None:
        """Match submitted fields to existing ones by name; unmatched existing fields are dropped."""

        existing: Dict[str, DynamicFieldRecord] = {field.field_name: field for field in person.dynamic_fields}
        synced: List[DynamicFieldRecord] = []
        for name, field_type, value in fields:
            record = existing.pop(name, None)
            if record is None:
                record = _new_field(name, field_type, value, now)
            else:
                record.assign(field_type, value)
                record.updated_at = now
            synced.append(record)
        person.dynamic_fields = synced

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("The change conflicts with existing data") from exc


def resolve_status_filter(value: Optional[str]) -> Optional[List[PersonStatus]]:
    """Map a listing filter to the statuses it selects; ``None`` means no restriction."""

    key = (value or StatusCategory.ALL.value).strip().upper()
    if key == StatusCategory.ALL.value:
        return None
    if key == StatusCategory.BUSINESS.value:
        return sorted(BUSINESS_STATUSES, key=lambda status: status.value)
    if key == StatusCategory.PERSONAL.value:
        return sorted(PERSONAL_STATUSES, key=lambda status: status.value)
    try:
        return [PersonStatus(key)]
    except ValueError:
        allowed = [category.value for category in StatusCategory] + [status.value for status in PersonStatus]
        raise ValidationError(
            "Invalid status filter", errors=[f"status must be one of {', '.join(allowed)}"]
        ) from None


def _validate_contact(raw: Dict[str, Any], errors: List[str], *, creating: bool) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(value, str):
            value = value.strip()
        if key == "name":
            try:
                values["name"] = validators.require_non_empty(value or "")
            except ValueError:
                errors.append("name is required")
            continue
        if key == "status":
            if value is None and not creating:
                errors.append("status cannot be null")
            elif value is not None:
                try:
                    values["status"] = PersonStatus(str(value).upper())
                except ValueError:
                    errors.append(f"status must be one of {', '.join(status.value for status in PersonStatus)}")
            continue
        value = value or None
        if key == "email" and value is not None and not validators.is_valid_email(value):
            errors.append("email has an invalid format")
        elif key == "phone" and value is not None and not validators.is_valid_phone(value):
            errors.append("phone has an invalid format")
        values[key] = value
    if creating and "name" not in raw:
        errors.append("name is required")
    return values


def _validate_fields(fields: Sequence[DynamicFieldInput], errors: List[str]) -> List[ValidatedField]:
    """Check every field against its declared type, collecting all violations."""

    validated: List[ValidatedField] = []
    seen: set = set()
    for index, field in enumerate(fields):
        prefix = f"dynamicFields[{index}]"
        name = (field.field_name or "").strip()
        if not name:
            errors.append(f"{prefix}: fieldName is required")
        elif name in seen:
            errors.append(f"{prefix}: duplicate fieldName '{name}'")
        seen.add(name)
        if name:
            prefix = f"{prefix} ({name})"

        try:
            field_type = FieldType(str(field.field_type or "").upper())
        except ValueError:
            errors.append(f"{prefix}: fieldType must be one of {', '.join(kind.value for kind in FieldType)}")
            continue

        raw = field.submitted_value()
        if raw is None:
            errors.append(f"{prefix}: a value is required for {field_type.value} fields")
            continue
        try:
            value = _coerce_field_value(field_type, raw)
        except ValueError as exc:
            errors.append(f"{prefix}: {field_type.value} value {exc}")
            continue
        if name:
            validated.append((name, field_type, value))
    return validated


def _coerce_field_value(field_type: FieldType, raw: Any) -> Any:
    if field_type is FieldType.NUMBER:
        return validators.coerce_number(raw)
    if field_type is FieldType.BOOLEAN:
        return validators.coerce_boolean(raw)
    if field_type is FieldType.DATE:
        return as_naive_utc(validators.coerce_datetime(raw))

    if not isinstance(raw, str):
        raise ValueError("must be a string")
    value = raw.strip()
    if field_type is FieldType.EMAIL and not validators.is_valid_email(value):
        raise ValueError("must be a valid email address")
    if field_type is FieldType.URL and not validators.is_valid_url(value):
        raise ValueError("must be a valid URL")
    if field_type is FieldType.PHONE and not validators.is_valid_phone(value):
        raise ValueError("must be a valid phone number")
    return value


def _new_field(name: str, field_type: FieldType, value: Any, now) -> DynamicFieldRecord:
    record = DynamicFieldRecord(field_name=name, created_at=now, updated_at=now)
    record.assign(field_type, value)
    return record
