"""
Projects router — project CRUD and the project's needs.

Endpoints:
  POST   /api/projects                      — create (approved profile required)
  GET    /api/projects                      — approved creators' projects
  GET    /api/projects/mine                 — own projects
  GET    /api/projects/{project_id}         — one project
  PUT    /api/projects/{project_id}         — owner edit
  DELETE /api/projects/{project_id}         — owner or admin
  GET    /api/projects/{project_id}/needs   — current needs set
  PUT    /api/projects/{project_id}/needs   — replace the whole needs set
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.dependencies import Auth
from memberdir.core.database import get_db_session
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.schemas.common import PageMeta
from memberdir.schemas.needs import NeedOut, NeedsReplace
from memberdir.schemas.project import (
    ProjectCreate,
    ProjectFullOut,
    ProjectList,
    ProjectOut,
    ProjectUpdate,
)
from memberdir.services import needs, projects
from memberdir.services.needs_validator import ProposedNeed
from memberdir.services.pagination import pagination_meta, parse_pagination
from memberdir.services.taxonomy import TaxonomyCache, get_taxonomy_cache
from memberdir.services.visibility import Visibility

router = APIRouter(tags=["Projects"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]
Taxonomies = Annotated[TaxonomyCache, Depends(get_taxonomy_cache)]


@router.post(
    "",
    response_model=ProjectFullOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(payload: ProjectCreate, uow: Uow, auth: Auth) -> ProjectOut:
    project = await projects.create_project(
        uow, auth.user, payload.model_dump(exclude_unset=True)
    )
    _, creator = await projects.load_project_with_creator(uow.session, project.id)
    return ProjectFullOut.from_project(project, creator)


@router.get("", response_model=ProjectList, summary="Browse projects")
async def list_projects(
    session: DbSession,
    auth: Auth,
    limit: Annotated[int | None, Query()] = None,
    offset: Annotated[int | None, Query()] = None,
) -> ProjectList:
    page = parse_pagination(limit, offset)
    rows, total = await projects.list_visible_projects(session, auth.user, page)
    return ProjectList(
        items=[ProjectOut.from_project(project, creator) for project, creator in rows],
        meta=PageMeta(**pagination_meta(total, page)),
    )


@router.get("/mine", response_model=list[ProjectFullOut], summary="Your projects")
async def list_my_projects(session: DbSession, auth: Auth) -> list[ProjectOut]:
    own = await projects.list_own_projects(session, auth.user)
    return [ProjectFullOut.model_validate(project) for project in own]


@router.get(
    "/{project_id}",
    response_model=ProjectFullOut | ProjectOut,
    summary="Get a project",
    description="404 unless the creator's profile is approved (owners and admins excepted).",
)
async def get_project(project_id: uuid.UUID, session: DbSession, auth: Auth) -> ProjectOut:
    view = await projects.get_project(session, auth.user, project_id)
    schema = ProjectFullOut if view.visibility is Visibility.full else ProjectOut
    return schema.from_project(view.project, view.creator)


@router.put("/{project_id}", response_model=ProjectFullOut, summary="Edit a project")
async def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdate,
    uow: Uow,
    auth: Auth,
) -> ProjectOut:
    project = await projects.update_project(
        uow, project_id, auth.user, payload.model_dump(exclude_unset=True)
    )
    _, creator = await projects.load_project_with_creator(uow.session, project.id)
    return ProjectFullOut.from_project(project, creator)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a project and its needs",
)
async def delete_project(project_id: uuid.UUID, uow: Uow, auth: Auth) -> Response:
    await projects.delete_project(uow, project_id, auth.user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Needs ───────────────────────────────────────────────────
@router.get(
    "/{project_id}/needs",
    response_model=list[NeedOut],
    summary="A project's needs",
)
async def get_project_needs(
    project_id: uuid.UUID,
    session: DbSession,
    cache: Taxonomies,
    auth: Auth,
) -> list[NeedOut]:
    taxonomy = await cache.get(session)
    views = await needs.get_project_needs(session, project_id, auth.user, taxonomy)
    return [NeedOut.model_validate(v) for v in views]


@router.put(
    "/{project_id}/needs",
    response_model=list[NeedOut],
    summary="Replace a project's needs",
    description=(
        "Replaces the whole set atomically: at most 3 categories, 1-2 options "
        "each, optional context (180 chars, no links). An empty list clears "
        "the needs. Rejections carry a machine-readable `reason`."
    ),
)
async def replace_project_needs(
    project_id: uuid.UUID,
    payload: NeedsReplace,
    uow: Uow,
    cache: Taxonomies,
    auth: Auth,
) -> list[NeedOut]:
    taxonomy = await cache.get(uow.session)
    proposed = [
        ProposedNeed(
            category_id=need.category_id,
            option_ids=need.option_ids,
            context_text=need.context_text,
        )
        for need in payload.needs
    ]
    views = await needs.replace_project_needs(
        uow, project_id, auth.user, proposed, taxonomy=taxonomy
    )
    return [NeedOut.model_validate(v) for v in views]
