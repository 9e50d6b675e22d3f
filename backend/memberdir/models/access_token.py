"""
Access token model — bearer credential resolving a request to a User.

Security notes:
  • Raw tokens are NEVER stored. Only a SHA-256 hash is persisted.
  • The `prefix` column stores the first characters (e.g., "md_live_")
    for identification in logs/UI without exposing the full token.
  • `is_active` allows revocation without deletion (audit trail).
"""

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from memberdir.core.database import Base, utcnow


class AccessToken(Base):
    """Hashed bearer token belonging to a user."""

    __tablename__ = "access_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
    )
    prefix: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<AccessToken id={self.id!s:.8} prefix={self.prefix!r} "
            f"active={self.is_active}>"
        )
