"""
Needs taxonomy router.

  GET /api/needs/taxonomy — active categories with their active options,
                            in display order (served from TaxonomyCache)
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.database import get_db_session
from memberdir.schemas.needs import TaxonomyCategoryOut, TaxonomyOptionOut
from memberdir.services.taxonomy import TaxonomyCache, get_taxonomy_cache, list_active_taxonomy

router = APIRouter(tags=["Needs"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Taxonomies = Annotated[TaxonomyCache, Depends(get_taxonomy_cache)]


@router.get(
    "/taxonomy",
    response_model=list[TaxonomyCategoryOut],
    summary="Needs taxonomy",
    description="Inactive categories and options are omitted.",
)
async def get_taxonomy(session: DbSession, cache: Taxonomies) -> list[TaxonomyCategoryOut]:
    categories = await list_active_taxonomy(session, cache)
    return [
        TaxonomyCategoryOut(
            id=category.id,
            name=category.name,
            slug=category.slug,
            options=[TaxonomyOptionOut.model_validate(o) for o in category.active_options],
        )
        for category in categories
    ]
