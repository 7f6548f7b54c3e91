"""Project request schemas and response serializers.

Request models reject unknown fields. Serializers build the plain dicts
wrapped in DataResponse by both the staff and portal routers.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

from app.models.client import Client
from app.models.project import (
    Board,
    Card,
    Project,
    ProjectFile,
    ProjectMember,
    ProjectMessage,
)
from app.models.user import User

ProjectStatus = Literal["active", "completed", "paused", "cancelled"]
Priority = Literal["low", "medium", "high", "urgent"]
MemberRole = Literal["admin", "member", "viewer"]

_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


def _reject_null(value):
    # Partial updates may omit a NOT NULL column but cannot null it
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


# =============================================================================
# Projects
# =============================================================================


class ProjectCreate(BaseModel):
    """Request body for POST /projects."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10000)
    status: ProjectStatus = "active"
    priority: Priority = "medium"
    start_date: date | None = None
    end_date: date | None = None
    color_code: str | None = Field(None, pattern=_COLOR_PATTERN)
    client_id: int | None = Field(None, ge=1)


class ProjectUpdate(BaseModel):
    """Request body for PATCH /projects/{project_id}. Omitted fields are unchanged."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10000)
    status: ProjectStatus | None = None
    priority: Priority | None = None
    start_date: date | None = None
    end_date: date | None = None
    color_code: str | None = Field(None, pattern=_COLOR_PATTERN)

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, v):
        return _reject_null(v)


class ProjectClientLink(BaseModel):
    """Request body for POST /projects/{project_id}/clients."""

    model_config = ConfigDict(extra="forbid")

    client_id: int = Field(ge=1)


class ProjectMemberAdd(BaseModel):
    """Request body for POST /projects/{project_id}/members."""

    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(ge=1)
    role: MemberRole = "member"


class ProjectMemberRoleUpdate(BaseModel):
    """Request body for PATCH /projects/{project_id}/members/{user_id}."""

    model_config = ConfigDict(extra="forbid")

    role: MemberRole


# =============================================================================
# Boards and cards
# =============================================================================


class BoardCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=255)
    position: int | None = Field(None, ge=0)


class BoardUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    position: int | None = Field(None, ge=0)

    @field_validator("title", "position")
    @classmethod
    def not_null(cls, v):
        return _reject_null(v)


class CardCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    board_id: int = Field(ge=1)
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10000)
    priority: Priority = "medium"
    start_date: date | None = None
    due_date: date | None = None
    position: int | None = Field(None, ge=0)


class CardUpdate(BaseModel):
    """Partial card update. Omitted fields are unchanged; explicit nulls clear
    the nullable ones."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=10000)
    priority: Priority | None = None
    start_date: date | None = None
    due_date: date | None = None
    completed_at: AwareDatetime | None = None

    @field_validator("title", "priority")
    @classmethod
    def not_null(cls, v):
        return _reject_null(v)


class CardMove(BaseModel):
    """Request body for POST /projects/{project_id}/cards/{card_id}/move."""

    model_config = ConfigDict(extra="forbid")

    board_id: int = Field(ge=1)
    position: int = Field(ge=0)


# =============================================================================
# Files and messages
# =============================================================================


class FileRegister(BaseModel):
    """Register an already-uploaded file by URL."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    url: HttpUrl
    mime_type: str | None = Field(None, max_length=100)
    size: int | None = Field(None, ge=0)


class MessageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str = Field(min_length=1, max_length=10000)
    reply_to_id: int | None = Field(None, ge=1)


# =============================================================================
# Serializers
# =============================================================================


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def project_to_dict(project: Project) -> dict:
    return {
        "id": project.id,
        "company_id": project.company_id,
        "title": project.title,
        "description": project.description,
        "status": project.status,
        "priority": project.priority,
        "start_date": _iso(project.start_date),
        "end_date": _iso(project.end_date),
        "color_code": project.color_code,
        "created_at": _iso(project.created_at),
        "updated_at": _iso(project.updated_at),
    }


def member_to_dict(member: ProjectMember, user: User) -> dict:
    return {
        "id": member.id,
        "user_id": member.user_id,
        "role": member.role,
        "name": user.name,
        "email": user.email,
    }


def client_to_dict(client: Client) -> dict:
    return {"id": client.id, "name": client.name, "email": client.email}


def board_to_dict(board: Board) -> dict:
    return {
        "id": board.id,
        "project_id": board.project_id,
        "title": board.title,
        "position": board.position,
    }


def card_to_dict(card: Card) -> dict:
    return {
        "id": card.id,
        "board_id": card.board_id,
        "title": card.title,
        "description": card.description,
        "position": card.position,
        "priority": card.priority,
        "start_date": _iso(card.start_date),
        "due_date": _iso(card.due_date),
        "completed_at": _iso(card.completed_at),
        "updated_at": _iso(card.updated_at),
    }


def file_to_dict(row: ProjectFile) -> dict:
    return {
        "id": row.id,
        "project_id": row.project_id,
        "name": row.name,
        "url": row.url,
        "mime_type": row.mime_type,
        "size": row.size,
        "uploaded_by_id": row.uploaded_by_id,
        "uploaded_by_client_id": row.uploaded_by_client_id,
        "created_at": _iso(row.created_at),
    }


def message_to_dict(row: ProjectMessage) -> dict:
    return {
        "id": row.id,
        "project_id": row.project_id,
        "user_id": row.user_id,
        "client_id": row.client_id,
        "content": row.content,
        "reply_to_id": row.reply_to_id,
        "created_at": _iso(row.created_at),
    }
