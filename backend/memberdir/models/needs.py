"""
SQLAlchemy models for the needs taxonomy and project needs.

Taxonomy (static, admin-seeded):
  • need_categories — ordered, uniquely-slugged categories
  • need_options    — ordered options, each belonging to one category

Project needs (owned by a project, replaced as a whole set):
  • project_needs        — one row per (project, category); UNIQUE pair
  • project_need_options — the 1–2 options selected within that need

Design notes:
  • `active` on categories/options hides them from new selections only;
    existing project needs keep pointing at them and still render.
  • Taxonomy references from project needs are weak: no cascade from the
    taxonomy side. Project-side rows cascade from the project.
  • project_needs rows are never updated in place — the replacer deletes
    the project's rows and inserts the new set in one transaction.
"""

import datetime
import uuid

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberdir.core.database import Base, utcnow


# ── Taxonomy ────────────────────────────────────────────────
class NeedCategory(Base):
    """A top-level kind of help a project can ask for."""

    __tablename__ = "need_categories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true",
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    options = relationship(
        "NeedOption",
        back_populates="category",
        order_by="NeedOption.sort_order",
    )

    def __repr__(self) -> str:
        return f"<NeedCategory slug={self.slug!r} active={self.active}>"


class NeedOption(Base):
    """A specific kind of help within one category."""

    __tablename__ = "need_options"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("need_categories.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true",
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    category = relationship("NeedCategory", back_populates="options")

    __table_args__ = (
        UniqueConstraint("category_id", "slug", name="uq_need_options_category_slug"),
    )

    def __repr__(self) -> str:
        return f"<NeedOption slug={self.slug!r} active={self.active}>"


# ── Project needs ───────────────────────────────────────────
class ProjectNeed(Base):
    """A project's declared need in one category."""

    __tablename__ = "project_needs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("need_categories.id"),
        nullable=False,
    )
    context_text: Mapped[str | None] = mapped_column(String(180), nullable=True)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    project = relationship("Project", back_populates="needs")
    options = relationship(
        "ProjectNeedOption",
        back_populates="need",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("project_id", "category_id", name="uq_project_needs_project_category"),
        Index("ix_project_needs_project_id", "project_id"),
    )

    def __repr__(self) -> str:
        return f"<ProjectNeed project={self.project_id!s:.8} category={self.category_id!s:.8}>"


class ProjectNeedOption(Base):
    """One selected option inside a project need. PK: (need, option)."""

    __tablename__ = "project_need_options"

    project_need_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("project_needs.id", ondelete="CASCADE"),
        primary_key=True,
    )
    option_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("need_options.id"),
        primary_key=True,
    )

    need = relationship("ProjectNeed", back_populates="options")
