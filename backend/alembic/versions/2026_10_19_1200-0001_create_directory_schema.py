"""create directory schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Initial schema:
  - users, access_tokens
  - profiles (approval workflow)
  - projects (needs reminder watermark)
  - need_categories, need_options (taxonomy)
  - project_needs, project_need_options (replace-as-a-set)
  - jobs
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False),
        sa.Column("is_employer", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("last_login_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("stripe_customer_id", name="uq_users_stripe_customer_id"),
    )

    # ── 2. access_tokens ────────────────────────────────────
    op.create_table(
        "access_tokens",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("token_hash", sa.Text(), nullable=False),
        sa.Column("prefix", sa.String(12), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_access_tokens"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_access_tokens_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("token_hash", name="uq_access_tokens_token_hash"),
    )
    op.create_index("ix_access_tokens_user_id", "access_tokens", ["user_id"])

    # ── 3. profiles ─────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("handle", sa.String(30), nullable=False),
        sa.Column("portrait_url", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("website_url", sa.Text(), nullable=True),
        sa.Column("twitter_handle", sa.String(100), nullable=True),
        sa.Column("github_handle", sa.String(100), nullable=True),
        sa.Column("linkedin_url", sa.Text(), nullable=True),
        sa.Column("approval_status", sa.String(20), server_default="draft", nullable=False),
        sa.Column("approved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("rejection_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_profiles_user_id_users"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
        sa.UniqueConstraint("handle", name="uq_profiles_handle"),
    )
    op.create_index("ix_profiles_approval_status", "profiles", ["approval_status"])

    # ── 4. projects ─────────────────────────────────────────
    op.create_table(
        "projects",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("creator_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("website_url", sa.Text(), nullable=True),
        sa.Column("repo_url", sa.Text(), nullable=True),
        sa.Column("needs_reminder_sent_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_projects"),
        sa.ForeignKeyConstraint(["creator_id"], ["profiles.id"], name="fk_projects_creator_id_profiles"),
    )
    op.create_index("ix_projects_creator_id", "projects", ["creator_id"])

    # ── 5. needs taxonomy ───────────────────────────────────
    op.create_table(
        "need_categories",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_need_categories"),
        sa.UniqueConstraint("slug", name="uq_need_categories_slug"),
    )

    op.create_table(
        "need_options",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("category_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_need_options"),
        sa.ForeignKeyConstraint(["category_id"], ["need_categories.id"], name="fk_need_options_category_id_need_categories"),
        sa.UniqueConstraint("category_id", "slug", name="uq_need_options_category_slug"),
    )
    op.create_index("ix_need_options_category_id", "need_options", ["category_id"])

    # ── 6. project needs ────────────────────────────────────
    op.create_table(
        "project_needs",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("project_id", sa.UUID(), nullable=False),
        sa.Column("category_id", sa.UUID(), nullable=False),
        sa.Column("context_text", sa.String(180), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_project_needs"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], name="fk_project_needs_project_id_projects", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["need_categories.id"], name="fk_project_needs_category_id_need_categories"),
        sa.UniqueConstraint("project_id", "category_id", name="uq_project_needs_project_category"),
    )
    op.create_index("ix_project_needs_project_id", "project_needs", ["project_id"])

    op.create_table(
        "project_need_options",
        sa.Column("project_need_id", sa.UUID(), nullable=False),
        sa.Column("option_id", sa.UUID(), nullable=False),
        sa.PrimaryKeyConstraint("project_need_id", "option_id", name="pk_project_need_options"),
        sa.ForeignKeyConstraint(["project_need_id"], ["project_needs.id"], name="fk_project_need_options_project_need_id_project_needs", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["option_id"], ["need_options.id"], name="fk_project_need_options_option_id_need_options"),
    )

    # ── 7. jobs ─────────────────────────────────────────────
    op.create_table(
        "jobs",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("poster_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("apply_url", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_jobs"),
        sa.ForeignKeyConstraint(["poster_id"], ["profiles.id"], name="fk_jobs_poster_id_profiles"),
    )
    op.create_index("ix_jobs_poster_id", "jobs", ["poster_id"])
    op.create_index("ix_jobs_active_expires_at", "jobs", ["active", "expires_at"])


def downgrade() -> None:
    op.drop_index("ix_jobs_active_expires_at", table_name="jobs")
    op.drop_index("ix_jobs_poster_id", table_name="jobs")
    op.drop_table("jobs")
    op.drop_table("project_need_options")
    op.drop_index("ix_project_needs_project_id", table_name="project_needs")
    op.drop_table("project_needs")
    op.drop_index("ix_need_options_category_id", table_name="need_options")
    op.drop_table("need_options")
    op.drop_table("need_categories")
    op.drop_index("ix_projects_creator_id", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_profiles_approval_status", table_name="profiles")
    op.drop_table("profiles")
    op.drop_index("ix_access_tokens_user_id", table_name="access_tokens")
    op.drop_table("access_tokens")
    op.drop_table("users")
