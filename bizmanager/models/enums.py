from __future__ import annotations

from enum import Enum
from typing import FrozenSet


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class PersonStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LEAD = "LEAD"
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    PARTNER = "PARTNER"
    FRIEND = "FRIEND"
    FAMILY = "FAMILY"
    ACQUAINTANCE = "ACQUAINTANCE"


class StatusCategory(str, Enum):
    """Meta-filters accepted by the people listing next to the plain statuses."""

    ALL = "ALL"
    BUSINESS = "BUSINESS"
    PERSONAL = "PERSONAL"


BUSINESS_STATUSES: FrozenSet[PersonStatus] = frozenset(
    {
        PersonStatus.ACTIVE,
        PersonStatus.INACTIVE,
        PersonStatus.LEAD,
        PersonStatus.CUSTOMER,
        PersonStatus.VENDOR,
        PersonStatus.PARTNER,
    }
)

PERSONAL_STATUSES: FrozenSet[PersonStatus] = frozenset(
    {PersonStatus.FRIEND, PersonStatus.FAMILY, PersonStatus.ACQUAINTANCE}
)


class FieldType(str, Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    URL = "URL"
    EMAIL = "EMAIL"
    PHONE = "PHONE"


class InteractionType(str, Enum):
    CALL = "CALL"
    EMAIL = "EMAIL"
    MEETING = "MEETING"
    NOTE = "NOTE"
    TASK = "TASK"
    OTHER = "OTHER"
