"""
Profile model — the public-facing identity of a member.

One Profile per User. approval_status is the tagged state driven by
services/approval.py; nothing else may assign it directly.

Design notes:
  • handle is globally unique (unique index) and lower-case
    [a-z0-9_]{3,30}; the format is enforced in services/profiles.py.
  • approved_at is set on every transition INTO 'approved' and cleared
    when a major edit demotes the profile back to review.
"""

import datetime
import enum
import uuid

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberdir.core.database import Base, utcnow


class ApprovalStatus(str, enum.Enum):
    """Lifecycle stage controlling directory visibility."""

    draft = "draft"
    pending_review = "pending_review"
    approved = "approved"
    rejected = "rejected"


class Profile(Base):
    """A member's directory entry."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        unique=True,
    )

    # ── Identity (major fields) ─────────────────────────────
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    handle: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    portrait_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Copy and links (minor fields) ───────────────────────
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    website_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    twitter_handle: Mapped[str | None] = mapped_column(String(100), nullable=True)
    github_handle: Mapped[str | None] = mapped_column(String(100), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Review state ────────────────────────────────────────
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(
            ApprovalStatus,
            name="approval_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ApprovalStatus.draft,
    )
    approved_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    rejection_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    user = relationship("User", back_populates="profile")

    __table_args__ = (
        Index("ix_profiles_approval_status", "approval_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Profile id={self.id!s:.8} handle={self.handle!r} "
            f"status={self.approval_status.value}>"
        )
