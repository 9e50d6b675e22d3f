"""
Follows router — private bookmarks on projects.

Endpoints (approved account required):
  GET    /api/follows                     — followed projects, newest first
  POST   /api/follows/{project_id}        — 201 new, 200 if already following
  DELETE /api/follows/{project_id}
  GET    /api/follows/check/{project_id}  — {"following": bool}
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.dependencies import Auth
from memberdir.core.database import get_db_session
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.schemas.bookmarks import FollowOut, FollowState
from memberdir.services import follows

router = APIRouter(tags=["Follows"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]


@router.get("", response_model=list[FollowOut], summary="Projects you follow")
async def list_follows(session: DbSession, auth: Auth) -> list[FollowOut]:
    rows = await follows.list_follows(session, auth.user)
    return [FollowOut.from_follow(follow, project, creator) for follow, project, creator in rows]


@router.post(
    "/{project_id}",
    response_model=FollowOut,
    status_code=status.HTTP_201_CREATED,
    summary="Follow a project",
)
async def follow_project(
    project_id: uuid.UUID,
    response: Response,
    uow: Uow,
    auth: Auth,
) -> FollowOut:
    follow, created = await follows.follow_project(uow, auth.user, project_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return FollowOut(id=follow.id, created_at=follow.created_at)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow a project",
)
async def unfollow_project(project_id: uuid.UUID, uow: Uow, auth: Auth) -> Response:
    await follows.unfollow_project(uow, auth.user, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/check/{project_id}",
    response_model=FollowState,
    summary="Do you follow this project?",
)
async def check_follow(project_id: uuid.UUID, session: DbSession, auth: Auth) -> FollowState:
    return FollowState(following=await follows.is_following(session, auth.user, project_id))
