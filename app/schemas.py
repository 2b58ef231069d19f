from datetime import date, datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.models.enums import TaskGroup, TaskPriority, TaskStatus, UserRole

DataT = TypeVar("DataT")

# Fields a task update may never touch, by their JSON name
IMMUTABLE_TASK_FIELDS = (
    "id",
    "_id",
    "createdBy",
    "createdAt",
    "updatedAt",
    "lastUpdatedBy",
    "photos",
    "comments",
)


class CamelModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[DataT]):
    """Envelope shared by every JSON response."""

    success: bool = True
    data: DataT | None = None
    message: str | None = None
    count: int | None = None


# ===== Users & authentication =====


class UserRegister(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="Login email, must be unique")
    password: str = Field(
        ..., min_length=6, max_length=100, description="Password for the new account"
    )
    role: UserRole = Field(default=UserRole.USER, description="Account role")


class UserLogin(CamelModel):
    email: EmailStr = Field(..., description="Email for login")
    password: str = Field(..., description="Password for login")


class ProfileUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=100)


class RoleUpdate(CamelModel):
    role: UserRole


class DeviceInfo(CamelModel):
    device_name: str
    ip_address: str
    last_login: datetime
    is_active: bool


class UserInfo(CamelModel):
    id: UUID = Field(..., description="User unique identifier")
    name: str
    email: str
    role: UserRole
    created_at: datetime | None = None
    last_login: datetime | None = None
    devices: list[DeviceInfo] = Field(default_factory=list)
    tasks: list[UUID] = Field(
        default_factory=list, description="Ids of the tasks assigned to this user"
    )


class AuthResult(CamelModel):
    token: str = Field(..., description="JWT bearer token")
    user: UserInfo


# ===== Tasks =====


class TaskCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    short_description: str = Field(..., min_length=1, max_length=500)
    long_description: str | None = None
    priority: TaskPriority
    deadline: date
    status: TaskStatus = TaskStatus.TODO
    assigned_to: UUID
    group: TaskGroup


class TaskUpdate(CamelModel):
    """Partial task patch. Only fields present in the request are applied."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    short_description: str | None = Field(default=None, min_length=1, max_length=500)
    long_description: str | None = None
    priority: TaskPriority | None = None
    deadline: date | None = None
    status: TaskStatus | None = None
    assigned_to: UUID | None = None
    group: TaskGroup | None = None

    @model_validator(mode="before")
    @classmethod
    def reject_immutable_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for field in IMMUTABLE_TASK_FIELDS:
                if field in data or to_snake(field) in data:
                    raise ValueError(f"Field '{field}' cannot be modified")
        return data

    @field_validator(
        "title", "short_description", "priority", "deadline", "status", "assigned_to", "group"
    )
    @classmethod
    def required_fields_not_null(cls, v: Any) -> Any:
        # Present-but-null would blank a required column
        if v is None:
            raise ValueError("This field cannot be null")
        return v


class TaskDocument(CamelModel):
    """A complete task as stored; used to re-validate a patched task."""

    title: str = Field(..., min_length=1, max_length=200)
    short_description: str = Field(..., min_length=1, max_length=500)
    long_description: str | None = None
    priority: TaskPriority
    deadline: date
    status: TaskStatus
    assigned_to: UUID
    group: TaskGroup


class PhotoResponse(CamelModel):
    id: UUID
    task_id: UUID
    image_url: str
    caption: str = ""
    created_by: UUID | None = None
    created_by_name: str | None = None
    created_at: datetime


class CommentResponse(CamelModel):
    id: UUID
    task_id: UUID
    text: str
    created_by: UUID | None = None
    created_by_name: str = "Unknown"
    created_at: datetime


class CommentCreate(CamelModel):
    text: str = Field(..., min_length=1, max_length=5000)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment text cannot be empty")
        return v.strip()


class TaskResponse(CamelModel):
    id: UUID
    title: str
    short_description: str
    long_description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    deadline: date
    group: TaskGroup
    assigned_to: UUID
    assigned_to_name: str
    created_by: UUID
    created_by_name: str
    last_updated_by: UUID | None = None
    last_updated_by_name: str | None = None
    created_at: datetime
    updated_at: datetime
    photos: list[PhotoResponse] = Field(default_factory=list)
    comments: list[CommentResponse] = Field(default_factory=list)


class PhotoUploadResult(CamelModel):
    task: TaskResponse
    photo: PhotoResponse


def to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


def validation_error_message(errors: list[dict[str, Any]]) -> str:
    """Join pydantic error entries into one ``field: message; ...`` line."""
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        text = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
        messages.append(f"{location}: {text}" if location else text)
    return "; ".join(messages) or "Invalid request"
