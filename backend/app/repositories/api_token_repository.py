"""Repository for ApiToken operations.

Owner-scoped methods always filter on both user_id and company_id so a
token belonging to another tenant is indistinguishable from a missing one.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.api_token import ApiToken


class ApiTokenRepository:
    """Stateless repository for ApiToken table operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: int,
        company_id: int,
        name: str,
        token_prefix: str,
        token_hash: str,
        expires_at: datetime | None = None,
    ) -> ApiToken:
        """Store a new API token.

        Raises:
            sqlalchemy.exc.IntegrityError: If the prefix collides.
        """
        token = ApiToken(
            user_id=user_id,
            company_id=company_id,
            name=name,
            token_prefix=token_prefix,
            token_hash=token_hash,
            expires_at=expires_at,
        )
        db.add(token)
        await db.flush()
        await db.refresh(token)
        return token

    @staticmethod
    async def get_by_prefix(db: AsyncSession, token_prefix: str) -> ApiToken | None:
        """Look up a token by its public prefix, regardless of state."""
        stmt = select(ApiToken).where(ApiToken.token_prefix == token_prefix)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_owner(
        db: AsyncSession, user_id: int, company_id: int
    ) -> list[ApiToken]:
        """List all tokens (including revoked) owned by a user in a company."""
        stmt = (
            select(ApiToken)
            .where(
                ApiToken.user_id == user_id,
                ApiToken.company_id == company_id,
            )
            .order_by(ApiToken.created_at.desc(), ApiToken.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_owner(
        db: AsyncSession, token_id: int, user_id: int, company_id: int
    ) -> ApiToken | None:
        """Fetch a token by id only if owned by the given user and company."""
        stmt = select(ApiToken).where(
            ApiToken.id == token_id,
            ApiToken.user_id == user_id,
            ApiToken.company_id == company_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def revoke(db: AsyncSession, token: ApiToken, now: datetime) -> ApiToken:
        """Revoke a token. Already-revoked tokens keep their original revoked_at."""
        if token.revoked_at is None:
            token.revoked_at = now
            await db.flush()
        return token

    @staticmethod
    async def touch_last_used(db: AsyncSession, token_id: int, now: datetime) -> None:
        """Record a successful authentication with this token."""
        stmt = update(ApiToken).where(ApiToken.id == token_id).values(last_used_at=now)
        await db.execute(stmt)
