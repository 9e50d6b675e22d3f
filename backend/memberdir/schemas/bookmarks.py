"""Pydantic v2 schemas for favorites and follows."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from memberdir.models.project import ProjectStatus
from memberdir.schemas.profile import ProfileListItem
from memberdir.schemas.project import CreatorSummary


class FavoriteProfile(ProfileListItem):
    bio: str | None


class FavoriteOut(BaseModel):
    id: uuid.UUID
    created_at: datetime
    profile: FavoriteProfile | None = None

    @classmethod
    def from_favorite(cls, favorite: Any, profile: Any) -> FavoriteOut:
        return cls(
            id=favorite.id,
            created_at=favorite.created_at,
            profile=FavoriteProfile.model_validate(profile),
        )


class FollowedProject(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    status: ProjectStatus
    website_url: str | None
    created_by: CreatorSummary | None = None


class FollowOut(BaseModel):
    id: uuid.UUID
    created_at: datetime
    project: FollowedProject | None = None

    @classmethod
    def from_follow(cls, follow: Any, project: Any, creator: Any) -> FollowOut:
        followed = FollowedProject.model_validate(project).model_copy(
            update={"created_by": CreatorSummary.model_validate(creator)}
        )
        return cls(id=follow.id, created_at=follow.created_at, project=followed)


class FavoriteState(BaseModel):
    favorited: bool


class FollowState(BaseModel):
    following: bool
