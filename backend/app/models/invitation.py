"""Company invitation model - pending invites to join a project.

Only the SHA-256 hash of the invitation token is stored; the plain value
exists solely in the e-mailed link.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

INVITATION_STATUSES = ("pending", "accepted", "expired", "cancelled")


class CompanyInvitation(Base):
    """Invitation for someone without an account to join a company project.

    Attributes:
        company_id: Company the invitee would join.
        project_id: Project the invitee is invited to.
        email: Invitee address (lowercase).
        role: Company role granted on acceptance.
        project_role: Project role granted on acceptance.
        token_hash: SHA-256 hex digest of the plain token.
        status: pending, accepted, expired or cancelled.
        expires_at: Invitation is invalid at or after this instant.
        invited_by_id: Staff user who sent it.
    """

    __tablename__ = "company_invitations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'expired', 'cancelled')",
            name="ck_company_invitations_status",
        ),
        CheckConstraint(
            "project_role IN ('admin', 'member', 'viewer')",
            name="ck_company_invitations_project_role",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="staff", server_default="staff"
    )
    project_role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member", server_default="member"
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default="pending"
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    invited_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
