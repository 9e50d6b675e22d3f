"""Pydantic v2 schemas for job postings."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from memberdir.models.job import JobType
from memberdir.schemas.common import PageMeta
from memberdir.schemas.project import CreatorSummary


class JobUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=200)
    company_name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    type: str | None = Field(default=None, examples=["full_time"])
    apply_url: str | None = Field(default=None, max_length=2000)
    expires_at: datetime | None = None


class JobCreate(JobUpdate):
    title: str = Field(..., min_length=1, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., examples=["full_time"])
    apply_url: str = Field(..., min_length=1, max_length=2000)


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    company_name: str
    description: str | None
    type: JobType
    apply_url: str
    expires_at: datetime
    created_at: datetime
    posted_by: CreatorSummary | None = None

    @classmethod
    def from_job(cls, job: Any, poster: Any) -> JobOut:
        return cls.model_validate(job).model_copy(
            update={"posted_by": CreatorSummary.model_validate(poster)}
        )


class JobFullOut(JobOut):
    """Poster / admin view."""

    active: bool
    updated_at: datetime


class JobList(BaseModel):
    items: list[JobOut]
    meta: PageMeta
