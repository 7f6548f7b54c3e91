"""Client portal authentication endpoints.

Passwordless sign-in for portal clients via e-mailed magic links.

Endpoints:
- POST /portal/auth/magic-link - request a magic link email
- GET /portal/auth/verify - consume token, set portal cookie, redirect
- POST /portal/auth/logout - clear the portal cookie
- GET /portal/auth/me - current portal client
- POST /portal/auth/invalidate-sessions - sign out all portal devices

Login tokens are single-use: verify consumes the token atomically, so a
second click on the same link is rejected.
"""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, EmailStr
from starlette.responses import Response

from app.api.deps import CurrentClient, DbSession
from app.core.auth import (
    clear_portal_session,
    generate_login_token,
    issue_portal_session,
)
from app.core.config import settings
from app.core.email import send_portal_magic_link_email
from app.core.errors import UnauthorizedError, ValidationError
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse
from app.repositories.client_repository import ClientRepository
from app.services.login_token_store import LoginTokenStore

logger = logging.getLogger(__name__)

router = APIRouter()

_INVALID_MAGIC_LINK_MSG = "Invalid or expired magic link"


class PortalMagicLinkRequest(BaseModel):
    """Request body for POST /portal/auth/magic-link."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


# ===================================================================
# POST /portal/auth/magic-link
# ===================================================================


@router.post("/magic-link")
@limiter.limit(lambda: settings.rate_limit_magic_link)
async def request_magic_link(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: PortalMagicLinkRequest,
    background_tasks: BackgroundTasks,
    db: DbSession,
) -> DataResponse[dict]:
    """Request a portal sign-in link.

    Always returns the same success response whether or not an active
    client has this address (prevents email enumeration). The token is
    issued and the email queued only for an active client.

    Rate limit: RATE_LIMIT_MAGIC_LINK per IP.
    """
    email = body.email.strip().lower()
    client = await ClientRepository.get_active_by_email(db, email)

    if client is not None:
        plain_token = await LoginTokenStore(db).issue(client.id, email)
        await db.commit()
        # Send email as background task - response returns immediately
        background_tasks.add_task(
            send_portal_magic_link_email,
            to_email=email,
            client_name=client.name,
            token=plain_token,
        )
    else:
        # Same crypto work in both paths
        generate_login_token()

    return DataResponse(
        data={"message": "If this address has portal access, a sign-in link has been sent"}
    )


# ===================================================================
# GET /portal/auth/verify
# ===================================================================


@router.get("/verify")
@limiter.limit("10/minute")
async def verify_magic_link(
    request: Request,  # noqa: ARG001
    token: Annotated[str, Query(min_length=1, max_length=256)],
    db: DbSession,
) -> RedirectResponse:
    """Consume a login token, issue the portal session cookie, redirect.

    Raises:
        ValidationError: Token unknown, expired, already used, or its
            client has been removed.
    """
    identity = await LoginTokenStore(db).validate(token)
    # Commit the consumption even when the client check failed
    await db.commit()
    if identity is None:
        raise ValidationError(_INVALID_MAGIC_LINK_MSG)

    response = RedirectResponse(
        url=f"{settings.frontend_url}/portal/dashboard",
        status_code=307,
    )
    issue_portal_session(response, identity.client_id)
    # Prevent token leakage via Referer header
    response.headers["Referrer-Policy"] = "no-referrer"
    logger.info("Portal client %s signed in", identity.client_id)
    return response


# ===================================================================
# POST /portal/auth/logout
# ===================================================================


@router.post("/logout")
async def logout(response: Response) -> DataResponse[dict]:
    """Clear the portal cookie. No auth required."""
    clear_portal_session(response)
    return DataResponse(data={"message": "Signed out"})


# ===================================================================
# GET /portal/auth/me
# ===================================================================


@router.get("/me")
async def get_me(identity: CurrentClient, db: DbSession) -> DataResponse[dict]:
    """Return the current portal client."""
    client = await ClientRepository.get_active(db, identity.client_id)
    if client is None:
        raise UnauthorizedError()
    return DataResponse(
        data={
            "id": client.id,
            "name": client.name,
            "email": client.email,
            "company_id": client.company_id,
        }
    )


# ===================================================================
# POST /portal/auth/invalidate-sessions
# ===================================================================


@router.post("/invalidate-sessions")
async def invalidate_sessions(
    response: Response,
    identity: CurrentClient,
    db: DbSession,
) -> DataResponse[dict]:
    """Invalidate all portal sessions of the caller, keeping the current one."""
    # Whole seconds: JWT iat has second resolution
    invalidation_time = datetime.now(UTC).replace(microsecond=0)
    await ClientRepository.invalidate_portal_sessions(
        db, identity.client_id, invalidation_time
    )
    await db.commit()

    issue_portal_session(response, identity.client_id)
    return DataResponse(data={"message": "All portal sessions invalidated"})
