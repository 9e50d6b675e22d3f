"""
Pydantic v2 schemas for profiles.

Two read shapes, chosen by the visibility policy:
  • ProfilePublic — what any approved member sees
  • ProfileFull   — owner / admin view, adds review state and email

Write schemas only check shape. Content rules (handle format, URL
scheme, empty name) live in services/profiles.py so they surface as
400s with a machine-readable reason.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from memberdir.models.profile import ApprovalStatus
from memberdir.schemas.common import PageMeta


# ── Request schemas ─────────────────────────────────────────
class ProfileUpdate(BaseModel):
    """Partial update: only the keys the client sends are applied."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    handle: str | None = Field(default=None, max_length=50, examples=["ada_l"])
    portrait_url: str | None = Field(default=None, max_length=2000)
    bio: str | None = Field(default=None, max_length=5000)
    location: str | None = Field(default=None, max_length=100)
    website_url: str | None = Field(default=None, max_length=2000)
    twitter_handle: str | None = Field(default=None, max_length=50)
    github_handle: str | None = Field(default=None, max_length=50)
    linkedin_url: str | None = Field(default=None, max_length=2000)


class ProfileCreate(ProfileUpdate):
    name: str = Field(..., min_length=1, max_length=100)
    handle: str = Field(..., min_length=1, max_length=50, examples=["ada_l"])


# ── Response schemas ────────────────────────────────────────
class ProfileListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    handle: str
    portrait_url: str | None
    location: str | None


class ProfilePublic(ProfileListItem):
    bio: str | None
    website_url: str | None
    twitter_handle: str | None
    github_handle: str | None
    linkedin_url: str | None
    created_at: datetime


class ProfileFull(ProfilePublic):
    user_id: uuid.UUID
    email: str | None = None
    approval_status: ApprovalStatus
    approved_at: datetime | None
    rejection_note: str | None
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: Any, email: str | None = None) -> ProfileFull:
        return cls.model_validate(profile).model_copy(update={"email": email})


class ProfileList(BaseModel):
    items: list[ProfileListItem]
    meta: PageMeta


class ProfileEditResponse(BaseModel):
    profile: ProfileFull
    requires_reapproval: bool = Field(
        ...,
        description="True when a major edit sent an approved profile back to review.",
    )
