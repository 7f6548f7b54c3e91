"""API token model - bearer credentials for programmatic staff access.

The clear ``token_prefix`` is the lookup key; the secret after it is only
stored as a bcrypt hash. Revocation is a one-way transition.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ApiToken(Base):
    """Bearer API token owned by a staff user.

    Attributes:
        id: Integer primary key.
        user_id: Owning staff user.
        company_id: Company of the owner at creation time.
        name: Human label chosen at creation.
        token_prefix: Unique public part of the token.
        token_hash: bcrypt hash of the secret part.
        expires_at: Optional expiry. NULL never expires.
        last_used_at: Updated on each successful authentication.
        created_at: Creation timestamp.
        revoked_at: Set once on revocation, never cleared.
    """

    __tablename__ = "api_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    token_prefix: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None
