"""
Private bookmarks: favorited profiles and followed projects.

Neither is visible to anyone but the member who made it. Rows survive
the target being demoted; the read side filters them instead
(services/favorites.py, services/follows.py), so a bookmark comes back
once the target is approved again.
"""

import datetime
import uuid

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from memberdir.core.database import Base, utcnow


class UserFavorite(Base):
    """A member's bookmark on another member's profile."""

    __tablename__ = "user_favorites"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "profile_id", name="uq_user_favorites_user_profile"),
    )

    def __repr__(self) -> str:
        return f"<UserFavorite user={self.user_id!s:.8} profile={self.profile_id!s:.8}>"


class ProjectFollow(Base):
    """A member following someone else's project."""

    __tablename__ = "project_follows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_project_follows_user_project"),
    )

    def __repr__(self) -> str:
        return f"<ProjectFollow user={self.user_id!s:.8} project={self.project_id!s:.8}>"
