"""
Favorites router — private bookmarks on profiles.

Endpoints (approved account required):
  GET    /api/favorites                     — own favorites, newest first
  POST   /api/favorites/{profile_id}        — 201 new, 200 if already there
  DELETE /api/favorites/{profile_id}
  GET    /api/favorites/check/{profile_id}  — {"favorited": bool}
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.dependencies import Auth
from memberdir.core.database import get_db_session
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.schemas.bookmarks import FavoriteOut, FavoriteState
from memberdir.services import favorites

router = APIRouter(tags=["Favorites"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]


@router.get("", response_model=list[FavoriteOut], summary="Your favorite profiles")
async def list_favorites(session: DbSession, auth: Auth) -> list[FavoriteOut]:
    rows = await favorites.list_favorites(session, auth.user)
    return [FavoriteOut.from_favorite(favorite, profile) for favorite, profile in rows]


@router.post(
    "/{profile_id}",
    response_model=FavoriteOut,
    status_code=status.HTTP_201_CREATED,
    summary="Favorite a profile",
)
async def add_favorite(
    profile_id: uuid.UUID,
    response: Response,
    uow: Uow,
    auth: Auth,
) -> FavoriteOut:
    favorite, created = await favorites.add_favorite(uow, auth.user, profile_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return FavoriteOut(id=favorite.id, created_at=favorite.created_at)


@router.delete(
    "/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a favorite",
)
async def remove_favorite(profile_id: uuid.UUID, uow: Uow, auth: Auth) -> Response:
    await favorites.remove_favorite(uow, auth.user, profile_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/check/{profile_id}",
    response_model=FavoriteState,
    summary="Is this profile a favorite?",
)
async def check_favorite(profile_id: uuid.UUID, session: DbSession, auth: Auth) -> FavoriteState:
    return FavoriteState(favorited=await favorites.is_favorited(session, auth.user, profile_id))
