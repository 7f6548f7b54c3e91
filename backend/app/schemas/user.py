"""Staff user request schemas and response serializer."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.identity import StaffRole
from app.models.user import User


class UserUpdate(BaseModel):
    """Request body for PATCH /users/{user_id}. Omitted fields are unchanged.

    ``role`` may only be changed by a company admin. ``name`` may be set to
    null to clear it.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=255)
    role: StaffRole | None = None

    @field_validator("role")
    @classmethod
    def role_not_null(cls, v: StaffRole | None) -> StaffRole:
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


def user_to_dict(user: User) -> dict:
    """Public view of a staff user. Never includes the password hash."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "company_id": user.company_id,
    }
