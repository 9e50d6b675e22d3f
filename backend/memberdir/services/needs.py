"""
Project needs: atomic replace and visibility-checked read.

replace_project_needs() is the only writer. It validates the whole
proposed set first, then in ONE unit of work:

  1. deletes the project's option links
  2. deletes the project's need rows
  3. inserts the new needs and their option links (updated_at = now)

and commits once. A concurrent reader therefore sees either the complete
old set or the complete new set, never a mix. Two concurrent replaces are
not merged: the last commit wins.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from memberdir.core.database import utcnow
from memberdir.core.errors import Forbidden
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.needs import ProjectNeed, ProjectNeedOption
from memberdir.models.user import User
from memberdir.services.needs_validator import ProposedNeed, ValidatedNeed, validate_needs
from memberdir.services.projects import (
    delete_project_needs,
    get_project,
    load_project_with_creator,
)
from memberdir.services.taxonomy import Taxonomy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NeedOptionView:
    id: uuid.UUID
    name: str
    slug: str


@dataclass(frozen=True, slots=True)
class NeedView:
    """A stored need with its taxonomy names resolved for display."""

    category_id: uuid.UUID
    category_name: str
    category_slug: str
    context_text: str | None
    options: tuple[NeedOptionView, ...]
    updated_at: datetime.datetime


def _to_view(
    taxonomy: Taxonomy,
    category_id: uuid.UUID,
    option_ids: Sequence[uuid.UUID],
    context_text: str | None,
    updated_at: datetime.datetime,
) -> NeedView | None:
    category = taxonomy.category(category_id)
    if category is None:
        return None

    options = []
    for option_id in option_ids:
        option = taxonomy.option(option_id)
        if option is not None:
            options.append(option)
    options.sort(key=lambda o: o.sort_order)

    return NeedView(
        category_id=category.id,
        category_name=category.name,
        category_slug=category.slug,
        context_text=context_text,
        options=tuple(NeedOptionView(id=o.id, name=o.name, slug=o.slug) for o in options),
        updated_at=updated_at,
    )


def _ordered(taxonomy: Taxonomy, views: list[NeedView | None]) -> list[NeedView]:
    present = [v for v in views if v is not None]
    present.sort(key=lambda v: taxonomy.category(v.category_id).sort_order)
    return present


async def replace_project_needs(
    uow: UnitOfWork,
    project_id: uuid.UUID,
    requester: User,
    proposed: Sequence[ProposedNeed],
    *,
    taxonomy: Taxonomy,
    now: datetime.datetime | None = None,
) -> list[NeedView]:
    """
    Replace the project's whole needs set. An empty list clears it.

    Raises:
        NotFound:        no such project
        Forbidden:       requester does not own the project
        ValidationError: the proposed set breaks a rule (see needs_validator)
    """
    session = uow.session
    project, creator = await load_project_with_creator(session, project_id)
    if creator.user_id != requester.id:
        raise Forbidden("Not authorized to edit this project's needs")

    validated: list[ValidatedNeed] = validate_needs(proposed, taxonomy)
    now = now or utcnow()

    # Nothing above this line writes.
    await delete_project_needs(session, project.id)
    for need in validated:
        session.add(
            ProjectNeed(
                id=uuid.uuid4(),
                project_id=project.id,
                category_id=need.category_id,
                context_text=need.context_text,
                updated_at=now,
                options=[ProjectNeedOption(option_id=oid) for oid in need.option_ids],
            )
        )
    await uow.commit()

    logger.info("Project %s needs replaced (%d categories)", project.id, len(validated))

    return _ordered(
        taxonomy,
        [
            _to_view(taxonomy, n.category_id, n.option_ids, n.context_text, now)
            for n in validated
        ],
    )


async def get_project_needs(
    session: AsyncSession,
    project_id: uuid.UUID,
    viewer: User,
    taxonomy: Taxonomy,
) -> list[NeedView]:
    """
    The project's needs, if the viewer may see the project.

    Inactive categories/options still resolve: they only block new
    selections.

    Raises:
        NotFound, Forbidden: same rules as reading the project itself
    """
    await get_project(session, viewer, project_id)

    needs = (
        await session.execute(
            select(ProjectNeed)
            .where(ProjectNeed.project_id == project_id)
            .options(selectinload(ProjectNeed.options))
            .execution_options(populate_existing=True)
        )
    ).scalars().all()

    return _ordered(
        taxonomy,
        [
            _to_view(
                taxonomy,
                need.category_id,
                [link.option_id for link in need.options],
                need.context_text,
                need.updated_at,
            )
            for need in needs
        ],
    )
