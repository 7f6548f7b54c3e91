"""Repository for portal Client operations."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.client import Client


class ClientRepository:
    """Stateless repository for Client table operations."""

    @staticmethod
    async def get_active(db: AsyncSession, client_id: int) -> Client | None:
        """Fetch a client that is not soft-deleted."""
        stmt = select(Client).where(
            Client.id == client_id,
            Client.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_by_email(db: AsyncSession, email: str) -> Client | None:
        """Fetch the oldest active client with this portal address.

        Matching is case-insensitive. The same address may exist under
        several companies; the lowest id wins.
        """
        stmt = (
            select(Client)
            .where(
                func.lower(Client.email) == email.lower(),
                Client.soft_delete.is_(False),
            )
            .order_by(Client.id)
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_in_company(
        db: AsyncSession, client_id: int, company_id: int
    ) -> Client | None:
        """Fetch a non-deleted client belonging to the given company."""
        stmt = select(Client).where(
            Client.id == client_id,
            Client.company_id == company_id,
            Client.soft_delete.is_(False),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def invalidate_portal_sessions(
        db: AsyncSession, client_id: int, before: datetime
    ) -> None:
        """Reject every portal JWT for this client issued before ``before``."""
        client = await db.get(Client, client_id)
        if client is None:
            return
        client.portal_sessions_invalidated_before = before
        await db.flush()
