"""User model - staff accounts.

Staff users authenticate with a session cookie or a bearer API token and
act within the scope of their company.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class User(Base, TimestampMixin, SoftDeleteMixin):
    """Staff user account.

    Attributes:
        id: Integer primary key.
        email: Unique email address.
        name: Display name.
        password_hash: bcrypt hash. NULL disables password login.
        role: Company-level role (admin, staff or accountant).
        company_id: Owning company. NULL users cannot authenticate.
        token_invalidated_before: Session JWTs issued before this are rejected.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'staff', 'accountant')",
            name="ck_users_role",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="staff",
        server_default="staff",
    )
    company_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    token_invalidated_before: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )
