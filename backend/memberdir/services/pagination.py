"""Consistent limit/offset pagination for collection endpoints."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True, slots=True)
class Page:
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def parse_pagination(limit: int | None = None, offset: int | None = None) -> Page:
    """Clamp raw query values instead of rejecting them."""
    if limit is None or limit < 1:
        limit = DEFAULT_LIMIT
    elif limit > MAX_LIMIT:
        limit = MAX_LIMIT

    if offset is None or offset < 0:
        offset = 0

    return Page(limit=limit, offset=offset)


def pagination_meta(total: int, page: Page) -> dict[str, int | bool]:
    return {
        "total": total,
        "limit": page.limit,
        "offset": page.offset,
        "has_more": page.offset + page.limit < total,
    }
