"""Company model - the tenant boundary.

Every staff user, client, project, invoice and quote belongs to exactly one
company. A soft-deleted company disables all of its staff credentials.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, SoftDeleteMixin, TimestampMixin


class Company(Base, TimestampMixin, SoftDeleteMixin):
    """Tenant organisation.

    Attributes:
        id: Integer primary key.
        name: Display name.
        email: Contact address used as the sender context for client mail.
    """

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
