"""Database-backed store for client portal login tokens.

Issues, validates and revokes the opaque tokens sent in portal magic
links. Tokens are single-use: validate() consumes the token with one
conditional UPDATE, so two concurrent validations of the same token can
never both succeed.

Absence is a normal outcome. Every failure mode (unknown, expired,
already consumed, client deleted) yields None, never an exception.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import generate_login_token, hash_login_token
from app.core.config import settings
from app.core.identity import ClientIdentity
from app.repositories.client_repository import ClientRepository
from app.repositories.login_token_repository import LoginTokenRepository

logger = logging.getLogger(__name__)


class LoginTokenStore:
    """Per-request login token store bound to an AsyncSession.

    The caller owns the transaction; issue/validate/revoke only flush.
    """

    __slots__ = ("_db", "_ttl")

    def __init__(self, db: AsyncSession, ttl_minutes: int | None = None) -> None:
        """Initialize the store.

        Args:
            db: Async database session.
            ttl_minutes: Token lifetime. Defaults to
                PORTAL_LOGIN_TOKEN_TTL_MINUTES.
        """
        self._db = db
        self._ttl = timedelta(
            minutes=ttl_minutes or settings.portal_login_token_ttl_minutes
        )

    async def issue(
        self, client_id: int, email: str, *, now: datetime | None = None
    ) -> str:
        """Issue a new login token for a client.

        Args:
            client_id: Client the token will sign in as.
            email: Address the magic link is sent to.
            now: Issuance instant (defaults to the current time).

        Returns:
            The plain token. Only its SHA-256 hash is persisted.
        """
        issued_at = now or datetime.now(UTC)
        plain, token_hash = generate_login_token()
        await LoginTokenRepository.create(
            self._db,
            client_id=client_id,
            email=email,
            token_hash=token_hash,
            expires_at=issued_at + self._ttl,
        )
        logger.info("Issued portal login token for client %s", client_id)
        return plain

    async def validate(
        self, token: str, *, now: datetime | None = None
    ) -> ClientIdentity | None:
        """Validate and consume a login token.

        Args:
            token: Plain token from the magic link.
            now: Validation instant (defaults to the current time).

        Returns:
            ClientIdentity of the token's client, or None if the token is
            absent, expired, already consumed, or its client is deleted.
        """
        if not token:
            return None
        checked_at = now or datetime.now(UTC)
        client_id = await LoginTokenRepository.consume(
            self._db, hash_login_token(token), checked_at
        )
        if client_id is None:
            logger.debug("Portal login token rejected (unknown, expired or used)")
            return None

        client = await ClientRepository.get_active(self._db, client_id)
        if client is None:
            logger.info("Portal login token for inactive client %s rejected", client_id)
            return None
        return ClientIdentity(client_id=client.id)

    async def revoke(self, token: str, *, now: datetime | None = None) -> None:
        """Mark a token consumed. Idempotent; unknown tokens are ignored."""
        if not token:
            return
        await LoginTokenRepository.mark_consumed(
            self._db, hash_login_token(token), now or datetime.now(UTC)
        )

    async def purge_expired(self) -> int:
        """Delete expired tokens.

        Returns:
            Number of deleted rows.
        """
        count = await LoginTokenRepository.delete_expired(self._db)
        if count:
            logger.info("Purged %d expired portal login tokens", count)
        return count
