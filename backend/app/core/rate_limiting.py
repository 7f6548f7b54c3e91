"""Rate limiting configuration using slowapi.

Security: Limits brute-force attempts on login and magic link endpoints.

Keying prefers the authenticated principal so callers behind a shared IP
do not throttle each other:
- Valid staff session JWT: "user:{sub}"
- Valid portal session JWT: "client:{sub}"
- Otherwise: "unauth:{ip}"

Usage in routers:
    from app.core.rate_limiting import limiter

    @router.post("/login")
    @limiter.limit(lambda: settings.rate_limit_login)
    async def login(request: Request, ...):
        ...
"""

import jwt
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.auth import decode_jwt
from app.core.config import settings

# Integer ids never exceed 19 digits (signed 64-bit)
_MAX_SUB_LENGTH = 19


def _subject_from_cookie(request: Request, cookie_name: str, audience: str) -> str | None:
    # No iat/revocation check here: keying only needs the sub claim.
    # Full auth validation happens in app.core.auth_resolvers.
    token = request.cookies.get(cookie_name)
    if not token:
        return None
    try:
        sub = str(decode_jwt(token, audience=audience)["sub"])
    except (jwt.InvalidTokenError, KeyError):
        return None
    if not sub.isdigit() or len(sub) > _MAX_SUB_LENGTH:
        return None
    return sub


def _rate_limit_key_func(request: Request) -> str:
    """Get rate limit key from request.

    Args:
        request: The incoming request.

    Returns:
        Rate limit key string.
    """
    sub = _subject_from_cookie(request, settings.auth_cookie_name, settings.auth_issuer)
    if sub is not None:
        return f"user:{sub}"

    sub = _subject_from_cookie(
        request, settings.portal_cookie_name, settings.portal_audience
    )
    if sub is not None:
        return f"client:{sub}"

    return f"unauth:{get_remote_address(request)}"


# Global limiter instance
# Configured with in-memory storage (suitable for single-instance deployment)
# For multi-instance, configure Redis storage via RATELIMIT_STORAGE_URL
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors.

    Security: Returns 429 Too Many Requests with standard error envelope.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and retry-after header.
    """
    # Parse retry-after from exception detail (e.g., "5 per 1 hour")
    # Fallback to 60 seconds if parsing fails
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Rate limit exceeded: {exc.detail}",
            }
        },
        headers={"Retry-After": retry_after},
    )
