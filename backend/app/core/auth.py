"""Credential helpers shared by the auth endpoints and resolvers.

Pipeline:
- create_jwt / decode_jwt: HS256 session tokens for staff and portal cookies
- issue_*_session / clear_*_session: httpOnly cookie management
- hash_login_token: SHA-256 digest for magic-link tokens (stored, never the plain value)
- generate_api_token / split_api_token: bearer token format and parsing
- hash_secret / verify_secret: bcrypt for passwords and API-token secrets
- verify_secret_async: verify_secret off the event loop
- DUMMY_HASH: timing-safe constant for lookups that found nothing
"""

import asyncio
import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, NamedTuple

import bcrypt
import jwt
from fastapi import Response

from app.core.config import settings
from app.core.errors import InternalError

_JWT_ALGORITHM = "HS256"

# bcrypt cost factor for passwords and API-token secrets
_BCRYPT_ROUNDS = 12

# bcrypt only reads this many bytes of input; longer secrets are rejected
BCRYPT_MAX_BYTES = 72

# Random hex characters after API_TOKEN_PREFIX that form the lookup prefix
_API_TOKEN_PREFIX_RANDOM_LENGTH = 8

# Pre-computed bcrypt hash for timing-safe comparison on user/token-not-found.
# Security: prevents enumeration via response time differences.
DUMMY_HASH = b"$2b$12$ZP2PVB8yI35X.mkRqcUPUuSzJA1CNRt4dZ7X3cyrfJu.2S3w.Qen2"


class ApiTokenParts(NamedTuple):
    """A presented bearer token split into its lookup prefix and secret."""

    prefix: str
    secret: str


# ===================================================================
# JWT sessions
# ===================================================================


def create_jwt(
    *,
    subject: str,
    audience: str,
    expires_delta: timedelta,
    secret: str | None = None,
) -> str:
    """Create a signed JWT with standard claims.

    Args:
        subject: Staff user id or client id (as string) for the sub claim.
        audience: ``settings.auth_issuer`` for staff, ``settings.portal_audience``
            for portal sessions. Keeps the two cookies non-interchangeable.
        expires_delta: Time until expiration.
        secret: HMAC signing secret. Defaults to AUTH_SECRET.

    Returns:
        Encoded JWT string.

    Raises:
        InternalError: If no signing secret is configured.
    """
    key = secret or settings.auth_secret.get_secret_value()
    if not key:
        raise InternalError("Authentication is not configured")

    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "aud": audience,
        "iss": settings.auth_issuer,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, key, algorithm=_JWT_ALGORITHM)


def decode_jwt(token: str, *, audience: str) -> dict[str, Any]:
    """Verify signature, exp, aud and iss and return the claims.

    Raises:
        jwt.InvalidTokenError: For any verification failure.
    """
    return jwt.decode(
        token,
        settings.auth_secret.get_secret_value(),
        algorithms=[_JWT_ALGORITHM],
        audience=audience,
        issuer=settings.auth_issuer,
        options={"require": ["exp", "iat", "sub"]},
    )


def _set_cookie(response: Response, *, key: str, token: str, max_age: timedelta) -> None:
    response.set_cookie(
        key=key,
        value=token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
        max_age=int(max_age.total_seconds()),
        domain=settings.auth_cookie_domain or None,
    )


def _clear_cookie(response: Response, *, key: str) -> None:
    # Attributes must match _set_cookie() for the browser to delete it
    response.delete_cookie(
        key=key,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        domain=settings.auth_cookie_domain or None,
    )


def issue_staff_session(response: Response, user_id: int) -> None:
    """Issue a staff session JWT and set it as the auth cookie."""
    ttl = timedelta(hours=settings.session_ttl_hours)
    token = create_jwt(
        subject=str(user_id),
        audience=settings.auth_issuer,
        expires_delta=ttl,
    )
    _set_cookie(response, key=settings.auth_cookie_name, token=token, max_age=ttl)


def issue_portal_session(response: Response, client_id: int) -> None:
    """Issue a portal session JWT and set it as the portal cookie."""
    ttl = timedelta(hours=settings.portal_session_ttl_hours)
    token = create_jwt(
        subject=str(client_id),
        audience=settings.portal_audience,
        expires_delta=ttl,
    )
    _set_cookie(response, key=settings.portal_cookie_name, token=token, max_age=ttl)


def clear_staff_session(response: Response) -> None:
    _clear_cookie(response, key=settings.auth_cookie_name)


def clear_portal_session(response: Response) -> None:
    _clear_cookie(response, key=settings.portal_cookie_name)


# ===================================================================
# Magic-link tokens
# ===================================================================


def generate_login_token() -> tuple[str, str]:
    """Generate a single-use e-mailed token and its SHA-256 hash.

    Used for portal magic links and project invitations.

    Returns:
        (plain_token, token_hash). Plain goes in the e-mail, the hash is stored.
    """
    plain = secrets.token_urlsafe(32)
    return plain, hash_login_token(plain)


def hash_login_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


# ===================================================================
# API tokens and passwords
# ===================================================================


def hash_secret(value: str) -> str:
    """bcrypt-hash a password or API-token secret."""
    return bcrypt.hashpw(value.encode(), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode()


def verify_secret(value: str, hashed: str | None) -> bool:
    """Constant-time bcrypt check.

    Compares against DUMMY_HASH when hashed is None or the value is longer
    than bcrypt accepts, so every call costs one bcrypt round and never
    raises for client input.

    Args:
        value: Presented password or API-token secret.
        hashed: Stored bcrypt hash, or None when the lookup found nothing.

    Returns:
        True only when value matches hashed.
    """
    encoded = value.encode()
    if hashed is None or len(encoded) > BCRYPT_MAX_BYTES:
        bcrypt.checkpw(encoded[:BCRYPT_MAX_BYTES], DUMMY_HASH)
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False


async def verify_secret_async(value: str, hashed: str | None) -> bool:
    """Run verify_secret() in a worker thread so bcrypt does not block the loop."""
    return await asyncio.to_thread(verify_secret, value, hashed)


def generate_api_token() -> tuple[str, ApiTokenParts]:
    """Generate a new bearer token.

    Format: ``<API_TOKEN_PREFIX><8 hex>_<secret>``. The part before the
    separator is unique and stored in clear for lookup; only a bcrypt hash
    of the secret is stored.

    Returns:
        (plain_token, parts)
    """
    prefix = settings.api_token_prefix + secrets.token_hex(
        _API_TOKEN_PREFIX_RANDOM_LENGTH // 2
    )
    secret = secrets.token_urlsafe(32)
    return f"{prefix}_{secret}", ApiTokenParts(prefix=prefix, secret=secret)


def split_api_token(token: str) -> ApiTokenParts | None:
    """Split a presented bearer token, or return None if it is not ours.

    The secret is token_urlsafe output and may itself contain underscores,
    so the split position is fixed by the prefix length, not by searching.
    """
    base = settings.api_token_prefix
    prefix_length = len(base) + _API_TOKEN_PREFIX_RANDOM_LENGTH
    if not token.startswith(base) or len(token) <= prefix_length + 1:
        return None
    if token[prefix_length] != "_":
        return None
    prefix, secret = token[:prefix_length], token[prefix_length + 1 :]
    if len(secret.encode()) > BCRYPT_MAX_BYTES:
        return None
    random_part = prefix[len(base) :]
    if any(ch not in "0123456789abcdef" for ch in random_part):
        return None
    return ApiTokenParts(prefix=prefix, secret=secret)
