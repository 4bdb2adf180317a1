from .base import CamelModel, MessageResponse
from .enums import (
    BUSINESS_STATUSES,
    PERSONAL_STATUSES,
    FieldType,
    InteractionType,
    PersonStatus,
    StatusCategory,
    UserRole,
)
from .interaction import Interaction, InteractionCreate, InteractionUpdate, Tag, TagCreate, TagIds, TagUpdate, TagUsage
from .person import DynamicField, DynamicFieldInput, Person, PersonCreate, PersonUpdate
from .user import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    User,
)

__all__ = [
    "BUSINESS_STATUSES",
    "CamelModel",
    "DynamicField",
    "DynamicFieldInput",
    "FieldType",
    "Interaction",
    "InteractionCreate",
    "InteractionType",
    "InteractionUpdate",
    "LoginRequest",
    "MessageResponse",
    "PERSONAL_STATUSES",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "Person",
    "PersonCreate",
    "PersonStatus",
    "PersonUpdate",
    "ProfileUpdate",
    "RegisterRequest",
    "StatusCategory",
    "Tag",
    "TagCreate",
    "TagIds",
    "TagUpdate",
    "TagUsage",
    "TokenResponse",
    "User",
    "UserRole",
]
