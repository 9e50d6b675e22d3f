"""add favorites and follows

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

Private bookmarks:
  - user_favorites  (user → profile)
  - project_follows (user → project)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. user_favorites ───────────────────────────────────
    op.create_table(
        "user_favorites",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("profile_id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_favorites"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_user_favorites_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], name="fk_user_favorites_profile_id_profiles", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "profile_id", name="uq_user_favorites_user_profile"),
    )
    op.create_index("ix_user_favorites_profile_id", "user_favorites", ["profile_id"])

    # ── 2. project_follows ──────────────────────────────────
    op.create_table(
        "project_follows",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("project_id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_project_follows"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_project_follows_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], name="fk_project_follows_project_id_projects", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "project_id", name="uq_project_follows_user_project"),
    )
    op.create_index("ix_project_follows_project_id", "project_follows", ["project_id"])


def downgrade() -> None:
    op.drop_index("ix_project_follows_project_id", table_name="project_follows")
    op.drop_table("project_follows")
    op.drop_index("ix_user_favorites_profile_id", table_name="user_favorites")
    op.drop_table("user_favorites")
