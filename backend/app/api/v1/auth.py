"""Staff authentication endpoints.

Endpoints:
- POST /auth/login - email + password, issues the staff session cookie
- POST /auth/logout - clear the staff session cookie
- GET /auth/me - current staff user and company scope
- POST /auth/invalidate-sessions - sign out all devices

Security considerations:
- login: constant-time comparison via DUMMY_HASH prevents user enumeration
- login: inactive users and users of deleted companies get the same 401
- invalidate-sessions: bumps token_invalidated_before, then re-issues the
  caller's own cookie so the current session survives
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.api.deps import CurrentUser, DbSession
from app.core.auth import (
    BCRYPT_MAX_BYTES,
    clear_staff_session,
    issue_staff_session,
    verify_secret_async,
)
from app.core.config import settings
from app.core.errors import UnauthorizedError
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse
from app.repositories.user_repository import UserRepository
from app.schemas.user import user_to_dict

router = APIRouter()

_INVALID_CREDENTIALS_MSG = "Invalid email or password"  # nosec B105


# ===================================================================
# Request models
# ===================================================================


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, v: str) -> str:
        if len(v.encode()) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return v


# ===================================================================
# POST /auth/login
# ===================================================================


@router.post("/login")
@limiter.limit(lambda: settings.rate_limit_login)
async def login(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: LoginRequest,
    response: Response,
    db: DbSession,
) -> DataResponse[dict]:
    """Verify email + password and issue the staff session cookie.

    Unauthenticated. Always performs one bcrypt comparison so response
    time does not reveal whether the account exists.
    """
    user = await UserRepository.get_active_by_email(db, body.email)

    # verify_secret_async() falls back to DUMMY_HASH when there is no hash
    stored_hash = user.password_hash if user is not None else None
    if not await verify_secret_async(body.password, stored_hash) or user is None:
        raise UnauthorizedError(_INVALID_CREDENTIALS_MSG)

    issue_staff_session(response, user.id)
    return DataResponse(data=user_to_dict(user))


# ===================================================================
# POST /auth/logout
# ===================================================================


@router.post("/logout")
async def logout(response: Response) -> DataResponse[dict]:
    """Clear the staff session cookie.

    No auth required - clears the cookie regardless.
    """
    clear_staff_session(response)
    return DataResponse(data={"message": "Signed out"})


# ===================================================================
# GET /auth/me
# ===================================================================


@router.get("/me")
async def get_me(identity: CurrentUser, db: DbSession) -> DataResponse[dict]:
    """Return the current staff user.

    Works with either the session cookie or a bearer API token.
    """
    user = await UserRepository.get_active(db, identity.user_id)
    if user is None:
        raise UnauthorizedError()
    return DataResponse(data=user_to_dict(user))


# ===================================================================
# POST /auth/invalidate-sessions
# ===================================================================


@router.post("/invalidate-sessions")
async def invalidate_sessions(
    response: Response,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Invalidate all staff sessions (sign out all devices).

    Sets token_invalidated_before to now(), causing all existing session
    JWTs to be rejected, then re-issues a JWT for the current caller.
    API tokens are unaffected; revoke those individually.
    """
    # Whole seconds: JWT iat has second resolution
    invalidation_time = datetime.now(UTC).replace(microsecond=0)

    await UserRepository.update(
        db, identity.user_id, token_invalidated_before=invalidation_time
    )
    await db.commit()

    issue_staff_session(response, identity.user_id)
    return DataResponse(data={"message": "All sessions invalidated"})
