"""
Profiles router — the member's own profile and the directory.

Endpoints:
  POST /api/profiles              — create own profile (draft)
  GET  /api/profiles              — directory of approved profiles
  GET  /api/profiles/me           — own profile, any state
  PUT  /api/profiles/me           — edit own profile (may trigger re-review)
  POST /api/profiles/me/submit    — send own profile to review
  GET  /api/profiles/{handle}     — one profile, as this viewer may see it
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.dependencies import Auth
from memberdir.core.database import get_db_session
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.schemas.common import PageMeta
from memberdir.schemas.profile import (
    ProfileCreate,
    ProfileEditResponse,
    ProfileFull,
    ProfileList,
    ProfileListItem,
    ProfilePublic,
    ProfileUpdate,
)
from memberdir.services import profiles
from memberdir.services.pagination import pagination_meta, parse_pagination
from memberdir.services.visibility import Visibility

router = APIRouter(tags=["Profiles"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]


@router.post(
    "",
    response_model=ProfileFull,
    status_code=status.HTTP_201_CREATED,
    summary="Create your profile",
    description="Creates the caller's profile in draft. One profile per account.",
)
async def create_profile(payload: ProfileCreate, uow: Uow, auth: Auth) -> ProfileFull:
    profile = await profiles.create_profile(
        uow, auth.user, payload.model_dump(exclude_unset=True)
    )
    return ProfileFull.from_profile(profile, auth.user.email)


@router.get(
    "",
    response_model=ProfileList,
    summary="Directory of approved profiles",
    description="Approved profiles ordered by name. Requires an approved account.",
)
async def list_profiles(
    session: DbSession,
    auth: Auth,
    limit: Annotated[int | None, Query()] = None,
    offset: Annotated[int | None, Query()] = None,
) -> ProfileList:
    page = parse_pagination(limit, offset)
    items, total = await profiles.list_approved_profiles(session, auth.user, page)
    return ProfileList(
        items=[ProfileListItem.model_validate(p) for p in items],
        meta=PageMeta(**pagination_meta(total, page)),
    )


# /me routes are declared before /{handle} so "me" is never read as a handle.
@router.get("/me", response_model=ProfileFull, summary="Your profile")
async def get_my_profile(session: DbSession, auth: Auth) -> ProfileFull:
    profile = await profiles.get_own_profile(session, auth.user)
    return ProfileFull.from_profile(profile, auth.user.email)


@router.put(
    "/me",
    response_model=ProfileEditResponse,
    summary="Edit your profile",
    description=(
        "Partial update. Changing name, handle or portrait on an approved "
        "profile sends it back to review. Blocked while pending review."
    ),
)
async def edit_my_profile(
    payload: ProfileUpdate,
    session: DbSession,
    uow: Uow,
    auth: Auth,
) -> ProfileEditResponse:
    own = await profiles.get_own_profile(session, auth.user)
    result = await profiles.edit_profile(
        uow, own.id, auth.user, payload.model_dump(exclude_unset=True)
    )
    return ProfileEditResponse(
        profile=ProfileFull.from_profile(result.profile, auth.user.email),
        requires_reapproval=result.requires_reapproval,
    )


@router.post("/me/submit", response_model=ProfileFull, summary="Submit your profile for review")
async def submit_my_profile(session: DbSession, uow: Uow, auth: Auth) -> ProfileFull:
    own = await profiles.get_own_profile(session, auth.user)
    profile = await profiles.submit_profile_for_review(uow, own.id, auth.user)
    return ProfileFull.from_profile(profile, auth.user.email)


@router.get(
    "/{handle}",
    response_model=ProfileFull | ProfilePublic,
    summary="Get a profile by handle",
    description=(
        "Owners and admins get the full profile. Approved members get the "
        "public view of approved profiles; anything else is 404."
    ),
)
async def get_profile(handle: str, session: DbSession, auth: Auth) -> ProfileFull | ProfilePublic:
    view = await profiles.get_profile(session, auth.user, handle)
    if view.visibility is Visibility.full:
        return ProfileFull.from_profile(view.profile, view.email)
    return ProfilePublic.model_validate(view.profile)
