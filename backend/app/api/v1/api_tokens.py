"""API token management endpoints (staff only).

Endpoints:
- GET /api-tokens - list the caller's tokens (never secrets or hashes)
- POST /api-tokens - create a token; the plain value is returned once
- DELETE /api-tokens/{token_id} - revoke a token

Tokens are scoped to the caller's user AND company. A token id owned by
anyone else responds exactly like a missing one (404). Revoking an
already-revoked token is a successful no-op.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from app.api.deps import CurrentUser, DbSession
from app.core.auth import generate_api_token, hash_secret
from app.core.errors import NotFoundError, ValidationError
from app.core.identifiers import TokenId
from app.core.responses import DataResponse
from app.models.api_token import ApiToken
from app.repositories.api_token_repository import ApiTokenRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateApiTokenRequest(BaseModel):
    """Request body for POST /api-tokens."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    expires_at: AwareDatetime | None = None


def _token_to_response(token: ApiToken) -> dict:
    return {
        "id": token.id,
        "name": token.name,
        "token_prefix": token.token_prefix,
        "created_at": token.created_at.isoformat(),
        "expires_at": token.expires_at.isoformat() if token.expires_at else None,
        "last_used_at": (
            token.last_used_at.isoformat() if token.last_used_at else None
        ),
        "revoked_at": token.revoked_at.isoformat() if token.revoked_at else None,
    }


@router.get("")
async def list_api_tokens(
    identity: CurrentUser, db: DbSession
) -> DataResponse[list[dict]]:
    """List the caller's API tokens, including revoked ones."""
    tokens = await ApiTokenRepository.list_for_owner(
        db, identity.user_id, identity.company_id
    )
    return DataResponse(data=[_token_to_response(t) for t in tokens])


@router.post("", status_code=201)
async def create_api_token(
    body: CreateApiTokenRequest,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Create an API token.

    The response carries the full token exactly once. Only the prefix and
    a bcrypt hash of the secret are stored.
    """
    name = body.name.strip()
    if not name:
        raise ValidationError("Name must not be empty")
    if body.expires_at is not None and body.expires_at <= datetime.now(UTC):
        raise ValidationError("expires_at must be in the future")

    plain, parts = generate_api_token()
    token = await ApiTokenRepository.create(
        db,
        user_id=identity.user_id,
        company_id=identity.company_id,
        name=name,
        token_prefix=parts.prefix,
        token_hash=hash_secret(parts.secret),
        expires_at=body.expires_at,
    )
    await db.commit()
    logger.info("User %s created API token %s", identity.user_id, token.id)

    data = _token_to_response(token)
    data["token"] = plain
    return DataResponse(data=data)


@router.delete("/{token_id}")
async def revoke_api_token(
    token_id: TokenId,
    identity: CurrentUser,
    db: DbSession,
) -> DataResponse[dict]:
    """Revoke an API token. Idempotent."""
    token = await ApiTokenRepository.get_for_owner(
        db, token_id, identity.user_id, identity.company_id
    )
    if token is None:
        raise NotFoundError("API token", token_id)

    already_revoked = token.is_revoked
    await ApiTokenRepository.revoke(db, token, datetime.now(UTC))
    await db.commit()
    if not already_revoked:
        logger.info("User %s revoked API token %s", identity.user_id, token.id)

    return DataResponse(data=_token_to_response(token))
