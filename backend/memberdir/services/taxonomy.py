"""
Needs taxonomy: read model, read-through cache, and idempotent seeding.

The taxonomy is static reference data — read on every needs write and
needs read, written only by administrative seeding. Instead of
re-querying both tables per request, callers go through a TaxonomyCache
which holds one immutable Taxonomy snapshot until explicitly invalidated
(seed_taxonomy() invalidates it).

The snapshot includes inactive entries: they are rejected for new
selections but must still resolve names for needs that already use them.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.models.needs import NeedCategory, NeedOption

logger = logging.getLogger(__name__)


# ── Snapshot types ──────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class OptionEntry:
    id: uuid.UUID
    category_id: uuid.UUID
    name: str
    slug: str
    sort_order: int
    active: bool


@dataclass(frozen=True, slots=True)
class CategoryEntry:
    id: uuid.UUID
    name: str
    slug: str
    sort_order: int
    active: bool
    options: tuple[OptionEntry, ...] = ()

    @property
    def active_options(self) -> tuple[OptionEntry, ...]:
        return tuple(o for o in self.options if o.active)


@dataclass(frozen=True)
class Taxonomy:
    """
    Immutable view of every category and option, in display order.

    Lookups are by id; `category_of` is the option → category membership
    map used to cross-check needs writes.
    """

    categories: tuple[CategoryEntry, ...]
    _categories_by_id: dict[uuid.UUID, CategoryEntry] = field(init=False, repr=False)
    _options_by_id: dict[uuid.UUID, OptionEntry] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_categories_by_id", {c.id: c for c in self.categories})
        object.__setattr__(
            self,
            "_options_by_id",
            {o.id: o for c in self.categories for o in c.options},
        )

    def category(self, category_id: uuid.UUID) -> CategoryEntry | None:
        return self._categories_by_id.get(category_id)

    def option(self, option_id: uuid.UUID) -> OptionEntry | None:
        return self._options_by_id.get(option_id)

    def category_of(self, option_id: uuid.UUID) -> uuid.UUID | None:
        option = self._options_by_id.get(option_id)
        return option.category_id if option is not None else None

    def active_categories(self) -> list[CategoryEntry]:
        """Active categories, each trimmed to its active options."""
        return [
            CategoryEntry(
                id=c.id,
                name=c.name,
                slug=c.slug,
                sort_order=c.sort_order,
                active=True,
                options=c.active_options,
            )
            for c in self.categories
            if c.active
        ]


async def load_taxonomy(session: AsyncSession) -> Taxonomy:
    """
    Read both taxonomy tables into a snapshot.

    Ordering: sort_order, ties broken by insertion order (created_at, id).
    """
    categories = (
        await session.execute(
            select(NeedCategory).order_by(
                NeedCategory.sort_order, NeedCategory.created_at, NeedCategory.id,
            )
        )
    ).scalars().all()
    options = (
        await session.execute(
            select(NeedOption).order_by(
                NeedOption.sort_order, NeedOption.created_at, NeedOption.id,
            )
        )
    ).scalars().all()

    by_category: dict[uuid.UUID, list[OptionEntry]] = {c.id: [] for c in categories}
    for o in options:
        by_category.setdefault(o.category_id, []).append(
            OptionEntry(
                id=o.id,
                category_id=o.category_id,
                name=o.name,
                slug=o.slug,
                sort_order=o.sort_order,
                active=o.active,
            )
        )

    return Taxonomy(
        categories=tuple(
            CategoryEntry(
                id=c.id,
                name=c.name,
                slug=c.slug,
                sort_order=c.sort_order,
                active=c.active,
                options=tuple(by_category[c.id]),
            )
            for c in categories
        )
    )


# ── Cache ───────────────────────────────────────────────────
class TaxonomyCache:
    """
    Read-through cache for the taxonomy snapshot.

    No lock: two concurrent first loads both read the same rows and the
    last assignment wins, which is harmless for immutable snapshots.
    """

    def __init__(self) -> None:
        self._snapshot: Taxonomy | None = None

    async def get(self, session: AsyncSession) -> Taxonomy:
        if self._snapshot is None:
            self._snapshot = await load_taxonomy(session)
            logger.debug(
                "Taxonomy cache loaded: %d categories",
                len(self._snapshot.categories),
            )
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None


# Process-wide instance — injected into routes via get_taxonomy_cache().
taxonomy_cache = TaxonomyCache()


def get_taxonomy_cache() -> TaxonomyCache:
    """FastAPI dependency returning the process-wide cache."""
    return taxonomy_cache


async def list_active_taxonomy(
    session: AsyncSession,
    cache: TaxonomyCache = taxonomy_cache,
) -> list[CategoryEntry]:
    """Active categories with their active options, in display order."""
    snapshot = await cache.get(session)
    return snapshot.active_categories()


# ── Seeding ─────────────────────────────────────────────────
@dataclass
class SeedResult:
    categories_created: int = 0
    categories_updated: int = 0
    options_created: int = 0
    options_updated: int = 0


async def seed_taxonomy(
    session: AsyncSession,
    taxonomy: Sequence[dict[str, Any]],
    cache: TaxonomyCache = taxonomy_cache,
) -> SeedResult:
    """
    Upsert categories and options by slug. Idempotent.

    Each entry: {"name", "slug", "options": [{"name", "slug"}, …]}.
    List position becomes sort_order and every seeded row is (re)activated.
    Rows missing from `taxonomy` are left untouched.

    Commits, then invalidates the cache.
    """
    result = SeedResult()

    for category_index, category_data in enumerate(taxonomy):
        category = (
            await session.execute(
                select(NeedCategory).where(NeedCategory.slug == category_data["slug"])
            )
        ).scalar_one_or_none()

        if category is None:
            category = NeedCategory(slug=category_data["slug"])
            session.add(category)
            result.categories_created += 1
        else:
            result.categories_updated += 1

        category.name = category_data["name"]
        category.sort_order = category_index
        category.active = True
        await session.flush()  # get category.id

        for option_index, option_data in enumerate(category_data["options"]):
            option = (
                await session.execute(
                    select(NeedOption).where(
                        NeedOption.category_id == category.id,
                        NeedOption.slug == option_data["slug"],
                    )
                )
            ).scalar_one_or_none()

            if option is None:
                option = NeedOption(category_id=category.id, slug=option_data["slug"])
                session.add(option)
                result.options_created += 1
            else:
                result.options_updated += 1

            option.name = option_data["name"]
            option.sort_order = option_index
            option.active = True

        logger.info("  - %s: %d options", category_data["name"], len(category_data["options"]))

    await session.commit()
    cache.invalidate()
    return result


# ── V1 taxonomy data ────────────────────────────────────────
DEFAULT_TAXONOMY: list[dict[str, Any]] = [
    {
        "name": "Capital & Financial",
        "slug": "capital-financial",
        "options": [
            {"name": "Seeking pre-seed / seed funding", "slug": "seeking-preseed-seed"},
            {"name": "Introductions to angels", "slug": "intro-angels"},
            {"name": "Introductions to VCs", "slug": "intro-vcs"},
            {"name": "Grant opportunities", "slug": "grant-opportunities"},
            {"name": "Revenue / customer leads", "slug": "revenue-customer-leads"},
            {"name": "Pricing or monetization guidance", "slug": "pricing-monetization"},
        ],
    },
    {
        "name": "People & Partners",
        "slug": "people-partners",
        "options": [
            {"name": "Technical co-founder", "slug": "technical-cofounder"},
            {"name": "Product / design partner", "slug": "product-design-partner"},
            {"name": "Business / operations partner", "slug": "business-ops-partner"},
            {"name": "Sales or growth partner", "slug": "sales-growth-partner"},
            {"name": "Advisors / mentors", "slug": "advisors-mentors"},
            {"name": "Early employees or contractors", "slug": "early-employees"},
        ],
    },
    {
        "name": "Product & Engineering",
        "slug": "product-engineering",
        "options": [
            {"name": "Architecture or technical review", "slug": "architecture-review"},
            {"name": "MVP build support", "slug": "mvp-build-support"},
            {"name": "AI / ML expertise", "slug": "ai-ml-expertise"},
            {"name": "Data engineering / analytics", "slug": "data-engineering"},
            {"name": "Security or infrastructure guidance", "slug": "security-infra"},
            {"name": "Hardware / physical product expertise", "slug": "hardware-expertise"},
        ],
    },
    {
        "name": "Design & UX",
        "slug": "design-ux",
        "options": [
            {"name": "UX / product design feedback", "slug": "ux-design-feedback"},
            {"name": "Brand or identity help", "slug": "brand-identity"},
            {"name": "Design systems or UI polish", "slug": "design-systems"},
            {"name": "Prototyping or user testing", "slug": "prototyping-testing"},
        ],
    },
    {
        "name": "Go-to-Market & Growth",
        "slug": "go-to-market",
        "options": [
            {"name": "Customer discovery / interviews", "slug": "customer-discovery"},
            {"name": "Marketing or growth strategy", "slug": "marketing-growth"},
            {"name": "Distribution partnerships", "slug": "distribution-partnerships"},
            {"name": "Enterprise sales guidance", "slug": "enterprise-sales"},
            {"name": "Community or developer adoption", "slug": "community-adoption"},
        ],
    },
    {
        "name": "Legal, Ops & Business Setup",
        "slug": "legal-ops-business",
        "options": [
            {"name": "Incorporation or entity setup", "slug": "incorporation-setup"},
            {"name": "IP or patent guidance", "slug": "ip-patent"},
            {"name": "Contracts or compliance", "slug": "contracts-compliance"},
            {"name": "Accounting / finance setup", "slug": "accounting-finance"},
            {"name": "Operations or logistics help", "slug": "operations-logistics"},
        ],
    },
    {
        "name": "Resources & Access",
        "slug": "resources-access",
        "options": [
            {"name": "Access to specialized equipment", "slug": "specialized-equipment"},
            {"name": "Manufacturing or fabrication resources", "slug": "manufacturing-fab"},
            {"name": "Lab, studio, or workspace access", "slug": "workspace-access"},
            {"name": "Data sets or proprietary data access", "slug": "data-access"},
            {"name": "Beta users or pilot customers", "slug": "beta-users"},
        ],
    },
    {
        "name": "Visibility & Exposure",
        "slug": "visibility-exposure",
        "options": [
            {"name": "Press or media exposure", "slug": "press-media"},
            {"name": "Speaking or demo opportunities", "slug": "speaking-demos"},
            {"name": "Showcase or launch support", "slug": "showcase-launch"},
        ],
    },
]
