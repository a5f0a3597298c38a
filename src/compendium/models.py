"""
Data models for Compendium.

Entities are stored with snake_case attributes and serialized with the
camelCase keys used by the local cache and the remote row payload.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENTITY_CONFIG = ConfigDict(populate_by_name=True, validate_assignment=True)
PATCH_CONFIG = ConfigDict(populate_by_name=True)


class Note(BaseModel):
    """A short free-form note."""

    model_config = ENTITY_CONFIG

    id: str
    title: str
    content: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Appointment(BaseModel):
    """A scheduled appointment. Dates are YYYY-MM-DD, times HH:MM."""

    model_config = ENTITY_CONFIG

    id: str
    title: str
    date: str
    time: str
    description: str | None = None
    created_at: str = Field(alias="createdAt")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Goal(BaseModel):
    """A goal with percentage progress."""

    model_config = ENTITY_CONFIG

    id: str
    title: str
    description: str
    progress: int = Field(ge=0, le=100)
    target_date: str | None = Field(default=None, alias="targetDate")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("field cannot be null")
    return value


class NotePatch(BaseModel):
    """Partial note update. Only fields that were set are applied."""

    model_config = PATCH_CONFIG

    title: str | None = None
    content: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")

    not_null = field_validator("title", "content", "created_at")(_reject_null)


class AppointmentPatch(BaseModel):
    """Partial appointment update. Only fields that were set are applied."""

    model_config = PATCH_CONFIG

    title: str | None = None
    date: str | None = None
    time: str | None = None
    description: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")

    not_null = field_validator("title", "date", "time", "created_at")(_reject_null)


class GoalPatch(BaseModel):
    """Partial goal update. Only fields that were set are applied."""

    model_config = PATCH_CONFIG

    title: str | None = None
    description: str | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    target_date: str | None = Field(default=None, alias="targetDate")
    created_at: str | None = Field(default=None, alias="createdAt")

    not_null = field_validator(
        "title", "description", "progress", "created_at"
    )(_reject_null)


class Snapshot(BaseModel):
    """
    The {notes, appointments, goals} payload.

    A collection left as None is "not present": loading such a snapshot
    keeps the existing collection.
    """

    notes: list[Note] | None = None
    appointments: list[Appointment] | None = None
    goals: list[Goal] | None = None

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(notes=[], appointments=[], goals=[])

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class User(BaseModel):
    """Authenticated user identity. Unknown backend fields are kept."""

    model_config = ConfigDict(extra="allow")

    id: str
    email: str | None = None


class ErrorKind(str, Enum):
    """Why a sync operation failed."""

    NO_IDENTITY = "no_identity"
    BACKEND_READ = "backend_read"
    BACKEND_WRITE = "backend_write"
    LOCAL_STORAGE = "local_storage"
    MALFORMED_DATA = "malformed_data"
    SIGN_OUT = "sign_out"


@dataclass
class SyncResult:
    """
    Outcome of a sync operation.

    Truthy on success. A successful load with ``value`` None means
    the user has no remote data yet.
    """

    success: bool
    value: Any = None
    error: ErrorKind | None = None
    message: str | None = None

    def __bool__(self) -> bool:
        return self.success

    @property
    def is_empty(self) -> bool:
        return self.success and self.value is None

    @classmethod
    def ok(cls, value: Any = None) -> "SyncResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ErrorKind, message: str | None = None) -> "SyncResult":
        return cls(success=False, error=error, message=message)
