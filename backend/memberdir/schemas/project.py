"""Pydantic v2 schemas for projects."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from memberdir.models.project import ProjectStatus
from memberdir.schemas.common import PageMeta


class ProjectCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    website_url: str | None = Field(default=None, max_length=2000)
    repo_url: str | None = Field(default=None, max_length=2000)


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    website_url: str | None = Field(default=None, max_length=2000)
    repo_url: str | None = Field(default=None, max_length=2000)
    status: Literal["active", "completed", "archived"] | None = None


class CreatorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    handle: str
    portrait_url: str | None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    status: ProjectStatus
    website_url: str | None
    repo_url: str | None
    created_at: datetime
    updated_at: datetime
    created_by: CreatorSummary | None = None

    @classmethod
    def from_project(cls, project: Any, creator: Any) -> ProjectOut:
        return cls.model_validate(project).model_copy(
            update={"created_by": CreatorSummary.model_validate(creator)}
        )


class ProjectFullOut(ProjectOut):
    """Owner / admin view."""

    creator_id: uuid.UUID
    needs_reminder_sent_at: datetime | None


class ProjectList(BaseModel):
    items: list[ProjectOut]
    meta: PageMeta
