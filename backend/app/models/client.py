"""Client model - portal users belonging to a company."""

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class Client(Base, TimestampMixin, SoftDeleteMixin):
    """A customer of a company with access to the client portal.

    Attributes:
        id: Integer primary key.
        company_id: Owning company.
        name: Display name.
        email: Portal login address. NULL clients cannot request magic links.
        portal_sessions_invalidated_before: Portal JWTs issued before this
            are rejected.
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )
    portal_sessions_invalidated_before: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )
