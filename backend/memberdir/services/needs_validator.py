"""
Validation of a proposed project-needs set against the taxonomy.

Pure: takes the proposal and a Taxonomy snapshot, returns the normalized
needs or raises ValidationError with a machine-readable `reason`. The
first failure wins; nothing is written by this module.

Constraints:
  • at most MAX_CATEGORIES needs, one per category
  • 1..MAX_OPTIONS_PER_CATEGORY options per need
  • context text: trimmed length ≤ MAX_CONTEXT_LENGTH, no URLs
  • categories and options must exist and be active
  • every option must belong to the category it is listed under
"""

from __future__ import annotations

import enum
import re
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from memberdir.core.errors import ValidationError
from memberdir.services.taxonomy import Taxonomy

MAX_CATEGORIES = 3
MAX_OPTIONS_PER_CATEGORY = 2
MAX_CONTEXT_LENGTH = 180

# Coarse on purpose: scheme, "www." or a common TLD anywhere in the text.
# It will also reject things like "foo.com" written without a scheme.
URL_PATTERN = re.compile(r"https?://|www\.|\.com|\.org|\.net|\.io|\.co\b", re.IGNORECASE)


class NeedsRejection(str, enum.Enum):
    too_many_categories = "too-many-categories"
    duplicate_category = "duplicate-category"
    option_count = "option-count"
    context_too_long = "context-too-long"
    url_in_context = "url-in-context"
    invalid_category = "invalid-category"
    invalid_option = "invalid-option"
    option_category_mismatch = "option-category-mismatch"


@dataclass(frozen=True, slots=True)
class ProposedNeed:
    """One entry of an incoming replace request, as the client sent it."""

    category_id: uuid.UUID
    option_ids: Sequence[uuid.UUID]
    context_text: str | None = None


@dataclass(frozen=True, slots=True)
class ValidatedNeed:
    """A need that passed every check, ready to be inserted."""

    category_id: uuid.UUID
    option_ids: tuple[uuid.UUID, ...]
    context_text: str | None


def _reject(reason: NeedsRejection, message: str) -> ValidationError:
    return ValidationError(message, reason=reason.value)


def contains_url(text: str) -> bool:
    return URL_PATTERN.search(text) is not None


def normalize_context(text: str | None) -> str | None:
    """
    Trim and check a need's free-text context.

    Returns None for empty / whitespace-only input.
    """
    if text is None:
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_CONTEXT_LENGTH:
        raise _reject(
            NeedsRejection.context_too_long,
            f"Context must be {MAX_CONTEXT_LENGTH} characters or fewer",
        )
    if contains_url(trimmed):
        raise _reject(NeedsRejection.url_in_context, "URLs are not allowed in context text")
    return trimmed


def validate_needs(
    proposed: Sequence[ProposedNeed],
    taxonomy: Taxonomy,
) -> list[ValidatedNeed]:
    """
    Validate a full replacement set.

    Order of checks (first failure is reported):
      1. set size, 2. duplicate categories, 3. per-need option count,
      4. per-need context text, 5. per-need taxonomy references.

    Raises:
        ValidationError: with `reason` set to a NeedsRejection value.
    """

    # ── 1. Set-level cardinality ────────────────────────────
    if len(proposed) > MAX_CATEGORIES:
        raise _reject(
            NeedsRejection.too_many_categories,
            f"A project can list at most {MAX_CATEGORIES} need categories",
        )

    # ── 2. One need per category ────────────────────────────
    seen: set[uuid.UUID] = set()
    for need in proposed:
        if need.category_id in seen:
            raise _reject(
                NeedsRejection.duplicate_category,
                "Each category can only appear once",
            )
        seen.add(need.category_id)

    validated: list[ValidatedNeed] = []
    for need in proposed:
        # ── 3. Option count (duplicates collapse) ───────────
        option_ids = tuple(dict.fromkeys(need.option_ids))
        if not 1 <= len(option_ids) <= MAX_OPTIONS_PER_CATEGORY:
            raise _reject(
                NeedsRejection.option_count,
                f"Each need must select between 1 and {MAX_OPTIONS_PER_CATEGORY} options",
            )

        # ── 4. Context text ─────────────────────────────────
        context_text = normalize_context(need.context_text)

        # ── 5. Taxonomy references ──────────────────────────
        category = taxonomy.category(need.category_id)
        if category is None or not category.active:
            raise _reject(NeedsRejection.invalid_category, "Invalid or inactive category")

        for option_id in option_ids:
            option = taxonomy.option(option_id)
            if option is None or not option.active:
                raise _reject(NeedsRejection.invalid_option, "Invalid or inactive option")
            if taxonomy.category_of(option_id) != category.id:
                raise _reject(
                    NeedsRejection.option_category_mismatch,
                    "Option does not belong to the selected category",
                )

        validated.append(
            ValidatedNeed(
                category_id=category.id,
                option_ids=option_ids,
                context_text=context_text,
            )
        )

    return validated
