"""
Pydantic v2 schemas for the needs taxonomy and project needs.

NeedsReplace deliberately puts no limits on list sizes or text length:
the needs validator checks those and reports a specific reason code
(too-many-categories, option-count, context-too-long, …).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ── Taxonomy ────────────────────────────────────────────────
class TaxonomyOptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str


class TaxonomyCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    options: list[TaxonomyOptionOut]


# ── Project needs ───────────────────────────────────────────
class NeedIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category_id: uuid.UUID
    option_ids: list[uuid.UUID]
    context_text: str | None = None


class NeedsReplace(BaseModel):
    """The complete new set. An empty list clears the project's needs."""

    model_config = ConfigDict(extra="forbid")

    needs: list[NeedIn] = Field(default_factory=list)


class NeedOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: uuid.UUID
    category_name: str
    category_slug: str
    context_text: str | None
    options: list[TaxonomyOptionOut]
    updated_at: datetime
