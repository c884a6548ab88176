from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import TaskStatus
from .passwords import MAX_PASSWORD_BYTES


def _trimmed_length(value: str, field: str, min_length: int, max_length: int) -> str:
    """
    Strip whitespace and enforce min_length..max_length on the stripped value.
    """
    s = value.strip()
    if not (min_length <= len(s) <= max_length):
        raise ValueError(f"{field} length must be between {min_length} and {max_length} characters")
    return s


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _check_password(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class _ResponseModel(BaseModel):
    """Base for response bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class RegisterRequest(BaseModel):
    """
    Schema for registering a new account.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Ann", "email": "a@x.com", "password": "secret1"}}
    )

    name: str = Field(..., description="Display name", min_length=2, max_length=60)
    email: EmailStr = Field(..., description="Login email; stored lower-cased")
    password: str = Field(..., description="Plain password, 6..72 characters", min_length=6, max_length=72)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _trimmed_length(v, "name", 2, 60)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """
    Schema for logging in with email and password.
    """

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., description="Plain password", min_length=6, max_length=72)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


# PUBLIC_INTERFACE
class ProfileUpdate(BaseModel):
    """
    Schema for updating the current user's profile. Only the name can change.
    """

    name: Optional[str] = Field(default=None, description="New display name", min_length=2, max_length=60)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _trimmed_length(v, "name", 2, 60)


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Two litres, semi-skimmed",
                "status": "todo",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, description="Optional detailed description", max_length=500)
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Workflow state")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 2..120 length.
        """
        return _trimmed_length(v, "title", 2, 120)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _trimmed_length(v, "description", 0, 500)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing task.
    All fields are optional; only provided, non-null fields are applied.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"status": "done"}})

    title: Optional[str] = Field(default=None, description="Short title for the task", min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, description="Optional detailed description", max_length=500)
    status: Optional[TaskStatus] = Field(default=None, description="Workflow state")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _trimmed_length(v, "title", 2, 120)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _trimmed_length(v, "description", 0, 500)

    def changes(self) -> dict:
        """Return the fields to apply, as plain values keyed by store column name."""
        patch = self.model_dump(exclude_none=True)
        if "status" in patch:
            patch["status"] = TaskStatus(patch["status"]).value
        return patch


# PUBLIC_INTERFACE
class UserOut(_ResponseModel):
    """Public view of a user returned by register and login."""

    id: str = Field(..., description="Unique identifier of the user")
    name: str
    email: str


# PUBLIC_INTERFACE
class ProfileOut(_ResponseModel):
    """The current user's profile."""

    name: str
    email: str
    created_at: datetime = Field(..., description="Registration timestamp")
    updated_at: datetime = Field(..., description="Last profile update timestamp")


# PUBLIC_INTERFACE
class TaskOut(_ResponseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "5f0c6c1e9a8b4b0e8a3f2d1c",
                "userId": "0b8f3e2a7c6d4e1f9a2b3c4d",
                "title": "Buy milk",
                "description": None,
                "status": "todo",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-25T10:15:30.123456Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the task")
    user_id: str = Field(..., description="Owning user id")
    title: str
    description: Optional[str] = None
    status: TaskStatus
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class UserEnvelope(BaseModel):
    user: UserOut


class ProfileEnvelope(BaseModel):
    user: ProfileOut


class TaskEnvelope(BaseModel):
    task: TaskOut


class TaskListEnvelope(BaseModel):
    tasks: List[TaskOut]


class OkResponse(BaseModel):
    ok: bool = True
