"""Identity resolvers for staff users, portal clients, and dual-auth routes.

Each resolver reads one kind of credential from the request and returns a
fully populated identity or None. None is the normal "not authenticated"
outcome; resolvers never raise for bad credentials. The FastAPI
dependencies in app.api.deps turn None into UnauthorizedError.

Resolution order:
- resolve_user: staff session cookie, then ``Authorization: Bearer`` API token
- resolve_client: portal session cookie
- resolve_identity: resolve_user, then resolve_client (staff always wins)

Security: log messages never include token material.
"""

import logging
from datetime import UTC, datetime
from typing import Any, cast

import jwt
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import decode_jwt, split_api_token, verify_secret_async
from app.core.config import settings
from app.core.identity import ClientIdentity, Identity, StaffRole, UserIdentity
from app.models.user import User
from app.repositories.api_token_repository import ApiTokenRepository
from app.repositories.client_repository import ClientRepository
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

_BEARER_SCHEME = "bearer"


def _decode_subject(token: str, audience: str) -> tuple[int, float] | None:
    """Verify a session JWT and return (subject id, iat), or None."""
    try:
        payload: dict[str, Any] = decode_jwt(token, audience=audience)
        subject = int(payload["sub"])
        iat = float(payload["iat"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
        return None
    return subject, iat


def _issued_before(iat: float, invalidated_before: datetime | None) -> bool:
    """True when the JWT predates the invalidation instant.

    Invalidation instants are whole seconds and the comparison is strict, so
    a JWT issued earlier within that same second is still accepted.
    """
    return invalidated_before is not None and iat < invalidated_before.timestamp()


def _to_identity(user: User) -> UserIdentity:
    # get_active() guarantees company_id is set
    return UserIdentity(
        user_id=user.id,
        company_id=cast(int, user.company_id),
        role=cast(StaffRole, user.role),
    )


# ===================================================================
# Staff users
# ===================================================================


async def resolve_session_user(
    request: Request, db: AsyncSession
) -> UserIdentity | None:
    """Resolve a staff user from the session cookie.

    Validation steps:
    1. Read JWT from AUTH_COOKIE_NAME
    2. Verify signature (HS256), exp, aud, iss; require iat
    3. Load the user; user and company must not be soft-deleted
    4. Reject JWTs issued before token_invalidated_before

    Args:
        request: HTTP request.
        db: Async database session.

    Returns:
        UserIdentity, or None for any failure.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        return None

    decoded = _decode_subject(token, settings.auth_issuer)
    if decoded is None:
        logger.debug("Staff session cookie failed verification")
        return None
    user_id, iat = decoded

    user = await UserRepository.get_active(db, user_id)
    if user is None:
        logger.debug("Staff session for inactive or missing user %s", user_id)
        return None

    if _issued_before(iat, user.token_invalidated_before):
        logger.debug("Staff session for user %s predates invalidation", user_id)
        return None

    return _to_identity(user)


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() != _BEARER_SCHEME or not credentials.strip():
        return None
    return credentials.strip()


async def resolve_api_token_user(
    request: Request, db: AsyncSession
) -> UserIdentity | None:
    """Resolve a staff user from an ``Authorization: Bearer`` API token.

    Validation steps:
    1. Parse ``<prefix>_<secret>``; unknown formats are rejected outright
    2. Look up by prefix; bcrypt-verify the secret (DUMMY_HASH on miss)
    3. Token must be unrevoked and unexpired
    4. Owning user and company must be active, and the token's company
       must still be the user's company
    5. Record last_used_at

    Args:
        request: HTTP request.
        db: Async database session.

    Returns:
        UserIdentity, or None for any failure.
    """
    presented = _bearer_token(request)
    if presented is None:
        return None

    parts = split_api_token(presented)
    if parts is None:
        return None

    api_token = await ApiTokenRepository.get_by_prefix(db, parts.prefix)
    stored_hash = api_token.token_hash if api_token is not None else None
    verified = await verify_secret_async(parts.secret, stored_hash)
    if not verified or api_token is None:
        logger.debug("API token rejected: unknown prefix or bad secret")
        return None

    now = datetime.now(UTC)
    if api_token.revoked_at is not None:
        logger.info("Revoked API token %s presented", api_token.id)
        return None
    if api_token.expires_at is not None and api_token.expires_at <= now:
        logger.debug("Expired API token %s presented", api_token.id)
        return None

    user = await UserRepository.get_active(db, api_token.user_id)
    if user is None or user.company_id != api_token.company_id:
        logger.info("API token %s owner inactive or moved company", api_token.id)
        return None

    await ApiTokenRepository.touch_last_used(db, api_token.id, now)
    return _to_identity(user)


async def resolve_user(request: Request, db: AsyncSession) -> UserIdentity | None:
    """Resolve a staff user: session cookie first, then bearer API token."""
    identity = await resolve_session_user(request, db)
    if identity is not None:
        return identity
    return await resolve_api_token_user(request, db)


# ===================================================================
# Portal clients
# ===================================================================


async def resolve_client(request: Request, db: AsyncSession) -> ClientIdentity | None:
    """Resolve a portal client from the portal session cookie.

    The JWT must carry the portal audience, so a staff session cookie
    can never be replayed as a portal session (or vice versa).

    Args:
        request: HTTP request.
        db: Async database session.

    Returns:
        ClientIdentity, or None if the cookie is absent or invalid, the
        client is gone, or the session predates an invalidation.
    """
    token = request.cookies.get(settings.portal_cookie_name)
    if not token:
        return None

    decoded = _decode_subject(token, settings.portal_audience)
    if decoded is None:
        logger.debug("Portal session cookie failed verification")
        return None
    client_id, iat = decoded

    client = await ClientRepository.get_active(db, client_id)
    if client is None:
        return None
    if _issued_before(iat, client.portal_sessions_invalidated_before):
        logger.debug("Portal session for client %s predates invalidation", client_id)
        return None

    return ClientIdentity(client_id=client.id)


# ===================================================================
# Dual auth
# ===================================================================


async def resolve_identity(request: Request, db: AsyncSession) -> Identity | None:
    """Resolve the caller on routes open to both staff and portal clients.

    Staff precedence is fixed: when the user resolver succeeds the client
    resolver is not consulted, so a caller holding both sessions is always
    treated as staff.
    """
    user = await resolve_user(request, db)
    if user is not None:
        return user
    return await resolve_client(request, db)
