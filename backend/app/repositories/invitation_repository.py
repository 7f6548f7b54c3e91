"""Repository for CompanyInvitation operations.

Invitations are stored with the SHA-256 hash of their token. At most one
invitation per (project, email) is pending; issuing a new one cancels
the older ones.
"""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.invitation import CompanyInvitation


class InvitationRepository:
    """Stateless repository for CompanyInvitation table operations."""

    @staticmethod
    async def cancel_pending(db: AsyncSession, project_id: int, email: str) -> int:
        """Cancel pending invitations for an address on a project.

        Returns:
            Number of invitations cancelled.
        """
        stmt = (
            update(CompanyInvitation)
            .where(
                CompanyInvitation.project_id == project_id,
                CompanyInvitation.email == email.lower(),
                CompanyInvitation.status == "pending",
            )
            .values(status="cancelled")
        )
        result = await db.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined]

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        company_id: int,
        project_id: int,
        email: str,
        project_role: str,
        token_hash: str,
        expires_at: datetime,
        invited_by_id: int,
    ) -> CompanyInvitation:
        """Store a new pending invitation. Email is normalized to lowercase."""
        row = CompanyInvitation(
            company_id=company_id,
            project_id=project_id,
            email=email.lower(),
            role="staff",
            project_role=project_role,
            token_hash=token_hash,
            status="pending",
            expires_at=expires_at,
            invited_by_id=invited_by_id,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row
