"""Client login token model - portal magic link tokens.

Single-use and time-limited. Only the SHA-256 hash of the token is stored;
the plain value exists solely in the e-mailed link.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ClientLoginToken(Base):
    """Magic link token for a portal client.

    Attributes:
        id: Integer primary key.
        client_id: Client the token signs in as.
        email: Address the link was sent to.
        token_hash: SHA-256 hex digest of the plain token.
        expires_at: Token is invalid at or after this instant.
        created_at: Issuance timestamp.
        consumed_at: Set when the token is used or revoked.
    """

    __tablename__ = "client_login_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    token_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    consumed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
