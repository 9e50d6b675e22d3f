"""
Jobs router.

  POST /api/jobs           — post a job (approved employer with approved profile)
  GET  /api/jobs           — active, unexpired jobs
  GET  /api/jobs/{job_id}  — one job
  PUT  /api/jobs/{job_id}  — poster edit
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.dependencies import Auth
from memberdir.core.database import get_db_session
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.schemas.common import PageMeta
from memberdir.schemas.job import JobCreate, JobFullOut, JobList, JobOut, JobUpdate
from memberdir.services import jobs
from memberdir.services.pagination import pagination_meta, parse_pagination
from memberdir.services.visibility import Visibility

router = APIRouter(tags=["Jobs"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]


@router.post(
    "",
    response_model=JobFullOut,
    status_code=status.HTTP_201_CREATED,
    summary="Post a job",
    description="Expires after 30 days unless expires_at is given.",
)
async def create_job(payload: JobCreate, uow: Uow, auth: Auth) -> JobOut:
    job = await jobs.create_job(uow, auth.user, payload.model_dump(exclude_unset=True))
    view = await jobs.get_job(uow.session, auth.user, job.id)
    return JobFullOut.from_job(view.job, view.poster)


@router.get("", response_model=JobList, summary="Browse jobs")
async def list_jobs(
    session: DbSession,
    auth: Auth,
    limit: Annotated[int | None, Query()] = None,
    offset: Annotated[int | None, Query()] = None,
) -> JobList:
    page = parse_pagination(limit, offset)
    rows, total = await jobs.list_active_jobs(session, auth.user, page)
    return JobList(
        items=[JobOut.from_job(job, poster) for job, poster in rows],
        meta=PageMeta(**pagination_meta(total, page)),
    )


@router.get("/{job_id}", response_model=JobFullOut | JobOut, summary="Get a job")
async def get_job(job_id: uuid.UUID, session: DbSession, auth: Auth) -> JobOut:
    view = await jobs.get_job(session, auth.user, job_id)
    schema = JobFullOut if view.visibility is Visibility.full else JobOut
    return schema.from_job(view.job, view.poster)


@router.put("/{job_id}", response_model=JobFullOut, summary="Edit a job")
async def update_job(
    job_id: uuid.UUID,
    payload: JobUpdate,
    uow: Uow,
    auth: Auth,
) -> JobOut:
    job = await jobs.update_job(uow, job_id, auth.user, payload.model_dump(exclude_unset=True))
    view = await jobs.get_job(uow.session, auth.user, job.id)
    return JobFullOut.from_job(view.job, view.poster)
