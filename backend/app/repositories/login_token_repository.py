"""Repository for ClientLoginToken operations.

Magic link tokens are stored as SHA-256 hashes. Consumption is a single
conditional UPDATE so that a token can be redeemed at most once even
under concurrent verification requests.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.login_token import ClientLoginToken


class LoginTokenRepository:
    """Stateless repository for ClientLoginToken table operations.

    All methods are static - no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        client_id: int,
        email: str,
        token_hash: str,
        expires_at: datetime,
    ) -> ClientLoginToken:
        """Store a new login token.

        Args:
            db: Async database session.
            client_id: Client the token signs in as.
            email: Address the link is sent to.
            token_hash: SHA-256 hash of the plain token.
            expires_at: Token expiry timestamp.

        Returns:
            Created ClientLoginToken.
        """
        row = ClientLoginToken(
            client_id=client_id,
            email=email,
            token_hash=token_hash,
            expires_at=expires_at,
        )
        db.add(row)
        await db.flush()
        return row

    @staticmethod
    async def consume(
        db: AsyncSession, token_hash: str, now: datetime
    ) -> int | None:
        """Atomically consume a usable token.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the plain token.
            now: Consumption instant; also the expiry reference.

        Returns:
            The token's client_id if this call consumed it, None if the
            token is absent, expired, or already consumed.
        """
        stmt = (
            update(ClientLoginToken)
            .where(
                ClientLoginToken.token_hash == token_hash,
                ClientLoginToken.consumed_at.is_(None),
                ClientLoginToken.expires_at > now,
            )
            .values(consumed_at=now)
            .returning(ClientLoginToken.client_id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_consumed(
        db: AsyncSession, token_hash: str, now: datetime
    ) -> None:
        """Mark a token consumed if it is not already. Unknown hashes are ignored."""
        stmt = (
            update(ClientLoginToken)
            .where(
                ClientLoginToken.token_hash == token_hash,
                ClientLoginToken.consumed_at.is_(None),
            )
            .values(consumed_at=now)
        )
        await db.execute(stmt)

    @staticmethod
    async def delete_expired(db: AsyncSession) -> int:
        """Delete all expired tokens (periodic cleanup).

        Returns:
            Number of deleted rows.
        """
        stmt = delete(ClientLoginToken).where(
            ClientLoginToken.expires_at <= datetime.now(UTC),
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
