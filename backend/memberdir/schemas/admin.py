"""Pydantic v2 schemas for the admin surface."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from memberdir.models.user import AccountStatus
from memberdir.schemas.common import PageMeta


class RejectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    note: str | None = Field(default=None, max_length=2000)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    status: AccountStatus
    is_employer: bool
    is_admin: bool
    created_at: datetime
    last_login_at: datetime | None


class UserList(BaseModel):
    items: list[UserOut]
    meta: PageMeta


class ReminderResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: uuid.UUID
    project_title: str
    status: Literal["sent", "error"]
    error: str | None = None


class SweepReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_eligible: int
    sent: int
    errors: int
    results: list[ReminderResultOut]
