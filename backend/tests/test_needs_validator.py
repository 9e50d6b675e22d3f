"""Needs validation against an in-memory taxonomy snapshot."""

import uuid

import pytest

from memberdir.core.errors import ValidationError
from memberdir.services.needs_validator import (
    MAX_CONTEXT_LENGTH,
    ProposedNeed,
    contains_url,
    validate_needs,
)
from memberdir.services.taxonomy import CategoryEntry, OptionEntry, Taxonomy


def _category(slug, sort_order, option_slugs, *, active=True, inactive_options=()):
    category_id = uuid.uuid4()
    options = tuple(
        OptionEntry(
            id=uuid.uuid4(),
            category_id=category_id,
            name=s.title(),
            slug=s,
            sort_order=i,
            active=s not in inactive_options,
        )
        for i, s in enumerate(option_slugs)
    )
    return CategoryEntry(
        id=category_id,
        name=slug.title(),
        slug=slug,
        sort_order=sort_order,
        active=active,
        options=options,
    )


FUNDING = _category("funding", 0, ["angels", "grants", "vcs"], inactive_options=("vcs",))
PEOPLE = _category("people", 1, ["cofounder", "advisors"])
ENGINEERING = _category("engineering", 2, ["mvp", "security"])
MARKETING = _category("marketing", 3, ["seo", "content"])
LEGACY = _category("legacy", 4, ["old"], active=False)

TAXONOMY = Taxonomy(categories=(FUNDING, PEOPLE, ENGINEERING, MARKETING, LEGACY))


def need(category, *option_slugs, context=None):
    ids = [next(o.id for o in category.options if o.slug == s) for s in option_slugs]
    return ProposedNeed(category_id=category.id, option_ids=ids, context_text=context)


def reason_of(proposed):
    with pytest.raises(ValidationError) as exc_info:
        validate_needs(proposed, TAXONOMY)
    assert exc_info.value.status_code == 400
    return exc_info.value.reason


def test_valid_set_is_normalized():
    result = validate_needs(
        [need(FUNDING, "angels", "grants", context="  Raising a small round  "), need(PEOPLE, "advisors")],
        TAXONOMY,
    )
    assert [n.category_id for n in result] == [FUNDING.id, PEOPLE.id]
    assert result[0].context_text == "Raising a small round"
    assert result[1].context_text is None


def test_empty_set_is_valid():
    assert validate_needs([], TAXONOMY) == []


def test_more_than_three_categories():
    proposed = [need(FUNDING, "angels"), need(PEOPLE, "advisors"), need(ENGINEERING, "mvp"), need(MARKETING, "seo")]
    assert reason_of(proposed) == "too-many-categories"


def test_duplicate_category():
    assert reason_of([need(FUNDING, "angels"), need(FUNDING, "grants")]) == "duplicate-category"


def test_zero_options():
    assert reason_of([ProposedNeed(category_id=FUNDING.id, option_ids=[])]) == "option-count"


def test_three_options():
    extra = PEOPLE.options[0].id
    proposed = [ProposedNeed(FUNDING.id, [FUNDING.options[0].id, FUNDING.options[1].id, extra])]
    assert reason_of(proposed) == "option-count"


def test_repeated_option_counts_once():
    angels = FUNDING.options[0].id
    result = validate_needs([ProposedNeed(FUNDING.id, [angels, angels])], TAXONOMY)
    assert result[0].option_ids == (angels,)


def test_context_length_is_measured_after_trimming():
    ok = "x" * MAX_CONTEXT_LENGTH
    assert validate_needs([need(FUNDING, "angels", context=f"   {ok}   ")], TAXONOMY)[0].context_text == ok
    assert reason_of([need(FUNDING, "angels", context=ok + "x")]) == "context-too-long"


@pytest.mark.parametrize(
    "context",
    ["see https://ada.dev", "visit www.ada", "ada.com rocks", "ADA.IO", "mail me at ada.co"],
)
def test_url_in_context(context):
    assert reason_of([need(FUNDING, "angels", context=context)]) == "url-in-context"


def test_whitespace_context_becomes_none():
    assert validate_needs([need(FUNDING, "angels", context="   ")], TAXONOMY)[0].context_text is None


def test_contains_url_leaves_plain_text_alone():
    assert not contains_url("Looking for a co-founder in Berlin")


def test_unknown_and_inactive_category():
    assert reason_of([ProposedNeed(uuid.uuid4(), [FUNDING.options[0].id])]) == "invalid-category"
    assert reason_of([need(LEGACY, "old")]) == "invalid-category"


def test_unknown_and_inactive_option():
    assert reason_of([ProposedNeed(FUNDING.id, [uuid.uuid4()])]) == "invalid-option"
    assert reason_of([need(FUNDING, "vcs")]) == "invalid-option"


def test_option_from_another_category():
    proposed = [ProposedNeed(FUNDING.id, [PEOPLE.options[0].id])]
    assert reason_of(proposed) == "option-category-mismatch"


def test_first_failure_wins():
    # Four needs and a URL: the cardinality check runs first.
    proposed = [
        need(FUNDING, "angels", context="https://ada.dev"),
        need(PEOPLE, "advisors"),
        need(ENGINEERING, "mvp"),
        need(MARKETING, "seo"),
    ]
    assert reason_of(proposed) == "too-many-categories"
