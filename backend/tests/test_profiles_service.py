"""Profile workflow against a real database."""

import uuid

import pytest
from sqlalchemy import select

from memberdir.core.errors import Conflict, Forbidden, NotFound, StateConflict, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.user import AccountStatus, User
from memberdir.services import profiles
from memberdir.services.pagination import Page
from memberdir.services.visibility import Visibility


# ── Create ──────────────────────────────────────────────────
async def test_create_profile_starts_in_draft(uow, make):
    user = await make.user(status=AccountStatus.pending)

    profile = await profiles.create_profile(
        uow,
        user,
        {"name": " <i>Ada</i> Lovelace ", "handle": " Ada_L ", "website_url": "ada.dev"},
    )

    assert profile.approval_status is ApprovalStatus.draft
    assert profile.name == "Ada Lovelace"
    assert profile.handle == "ada_l"
    assert profile.website_url == "https://ada.dev"


async def test_one_profile_per_user(uow, make):
    user, _ = await make.member("ada")
    with pytest.raises(Conflict):
        await profiles.create_profile(uow, user, {"name": "Ada", "handle": "ada_two"})


async def test_create_rejects_taken_handle(uow, make):
    await make.member("ada")
    other = await make.user()
    with pytest.raises(Conflict):
        await profiles.create_profile(uow, other, {"name": "Ada", "handle": "ADA"})


@pytest.mark.parametrize(
    ("fields", "reason"),
    [
        ({"name": "Ada", "handle": "a!"}, "invalid-handle"),
        ({"name": "   ", "handle": "ada"}, "name-required"),
        ({"name": "Ada", "handle": "ada", "linkedin_url": "javascript:alert(1)"}, "invalid-url"),
    ],
)
async def test_create_validation(uow, make, fields, reason):
    user = await make.user()
    with pytest.raises(ValidationError) as exc_info:
        await profiles.create_profile(uow, user, fields)
    assert exc_info.value.reason == reason


# ── Submit / approve / reject ───────────────────────────────
async def test_full_review_cycle(uow, make):
    admin = await make.admin()
    user, profile = await make.member(
        "ada", account=AccountStatus.pending, profile=ApprovalStatus.draft
    )

    submitted = await profiles.submit_profile_for_review(uow, profile.id, user)
    assert submitted.approval_status is ApprovalStatus.pending_review

    rejected = await profiles.reject_profile(uow, profile.id, admin, "  Add a portrait  ")
    assert rejected.approval_status is ApprovalStatus.rejected
    assert rejected.rejection_note == "Add a portrait"

    resubmitted = await profiles.submit_profile_for_review(uow, profile.id, user)
    assert resubmitted.approval_status is ApprovalStatus.pending_review
    assert resubmitted.rejection_note is None

    approved = await profiles.approve_profile(uow, profile.id, admin)
    assert approved.approval_status is ApprovalStatus.approved
    assert approved.approved_at is not None

    # The owning account is approved in the same transaction.
    assert user.status is AccountStatus.approved


async def test_approve_keeps_suspended_account_suspended(uow, make):
    admin = await make.admin()
    user, profile = await make.member(
        "ada", account=AccountStatus.suspended, profile=ApprovalStatus.pending_review
    )

    await profiles.approve_profile(uow, profile.id, admin)

    assert user.status is AccountStatus.suspended


async def test_approving_a_draft_is_a_state_conflict(uow, make):
    admin = await make.admin()
    _, profile = await make.member("ada", profile=ApprovalStatus.draft)

    with pytest.raises(StateConflict) as exc_info:
        await profiles.approve_profile(uow, profile.id, admin)
    assert exc_info.value.current_state == "draft"


async def test_double_submit_is_a_state_conflict(uow, make):
    user, profile = await make.member("ada", profile=ApprovalStatus.draft)
    await profiles.submit_profile_for_review(uow, profile.id, user)

    with pytest.raises(StateConflict):
        await profiles.submit_profile_for_review(uow, profile.id, user)


async def test_only_admins_review(uow, make):
    user, profile = await make.member("ada", profile=ApprovalStatus.pending_review)
    with pytest.raises(Forbidden):
        await profiles.approve_profile(uow, profile.id, user)
    with pytest.raises(Forbidden):
        await profiles.reject_profile(uow, profile.id, user)


async def test_only_the_owner_submits(uow, make):
    _, profile = await make.member("ada", profile=ApprovalStatus.draft)
    stranger = await make.user()
    with pytest.raises(Forbidden):
        await profiles.submit_profile_for_review(uow, profile.id, stranger)


async def test_concurrent_approvals_only_one_wins(session_factory, make):
    admin = await make.admin()
    user, profile = await make.member(
        "ada", account=AccountStatus.pending, profile=ApprovalStatus.pending_review
    )

    async with session_factory() as first, session_factory() as second:
        # Both requests have read the profile while it was pending_review.
        await first.get(Profile, profile.id)
        await second.get(Profile, profile.id)
        first_admin = await first.get(User, admin.id)
        second_admin = await second.get(User, admin.id)

        async with UnitOfWork(first) as uow:
            await profiles.approve_profile(uow, profile.id, first_admin)

        with pytest.raises(StateConflict):
            async with UnitOfWork(second) as uow:
                await profiles.approve_profile(uow, profile.id, second_admin)

    async with session_factory() as check:
        stored = await check.get(Profile, profile.id)
        assert stored.approval_status is ApprovalStatus.approved


async def test_approval_email_failure_does_not_fail_approval(uow, make, monkeypatch):
    admin = await make.admin()
    _, profile = await make.member("ada", profile=ApprovalStatus.pending_review)

    async def broken(*args, **kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(profiles, "send_profile_approved_email", broken)

    approved = await profiles.approve_profile(uow, profile.id, admin)
    assert approved.approval_status is ApprovalStatus.approved


# ── Edit ────────────────────────────────────────────────────
async def test_minor_edit_keeps_approval(uow, make):
    user, profile = await make.member("ada")

    result = await profiles.edit_profile(uow, profile.id, user, {"bio": "Poet of science"})

    assert not result.requires_reapproval
    assert result.profile.approval_status is ApprovalStatus.approved
    assert result.profile.approved_at is not None
    assert result.profile.bio == "Poet of science"


async def test_major_edit_demotes_to_pending_review(uow, make):
    user, profile = await make.member("ada")

    result = await profiles.edit_profile(uow, profile.id, user, {"name": "Augusta Ada King"})

    assert result.requires_reapproval
    assert result.profile.approval_status is ApprovalStatus.pending_review
    assert result.profile.approved_at is None


async def test_edit_with_unchanged_major_field_is_minor(uow, make):
    user, profile = await make.member("ada")

    result = await profiles.edit_profile(
        uow, profile.id, user, {"name": "Ada Lovelace", "handle": "ADA", "location": "London"}
    )

    assert not result.requires_reapproval
    assert result.profile.approval_status is ApprovalStatus.approved


async def test_edit_blocked_while_pending(uow, make):
    user, profile = await make.member("ada", profile=ApprovalStatus.pending_review)
    with pytest.raises(Forbidden) as exc_info:
        await profiles.edit_profile(uow, profile.id, user, {"bio": "x"})
    assert exc_info.value.reason == "pending_review"


async def test_edit_on_rejected_clears_note(uow, make):
    user, profile = await make.member(
        "ada", profile=ApprovalStatus.rejected, rejection_note="Needs a bio"
    )

    result = await profiles.edit_profile(uow, profile.id, user, {"bio": "Mathematician"})

    assert result.profile.approval_status is ApprovalStatus.rejected
    assert result.profile.rejection_note is None


async def test_edit_by_stranger_is_forbidden(uow, make):
    _, profile = await make.member("ada")
    stranger = await make.user()
    with pytest.raises(Forbidden):
        await profiles.edit_profile(uow, profile.id, stranger, {"bio": "x"})


async def test_edit_to_taken_handle_conflicts(uow, make):
    await make.member("grace")
    user, profile = await make.member("ada")
    with pytest.raises(Conflict):
        await profiles.edit_profile(uow, profile.id, user, {"handle": "grace"})


async def test_invalid_edit_writes_nothing(uow, make, session_factory):
    user, profile = await make.member("ada")

    with pytest.raises(ValidationError):
        await profiles.edit_profile(
            uow, profile.id, user, {"name": "Ada K", "website_url": "ftp://nope.example"}
        )

    async with session_factory() as check:
        stored = await check.get(Profile, profile.id)
        assert stored.name == "Ada Lovelace"
        assert stored.approval_status is ApprovalStatus.approved


# ── Reads ───────────────────────────────────────────────────
async def test_get_profile_visibility(session, make):
    owner, _ = await make.member("ada", profile=ApprovalStatus.draft)
    member, _ = await make.member("grace")
    admin = await make.admin()

    own = await profiles.get_profile(session, owner, "ada")
    assert own.visibility is Visibility.full
    assert own.email == "ada@example.com"

    assert (await profiles.get_profile(session, admin, "ADA")).visibility is Visibility.full

    with pytest.raises(NotFound):
        await profiles.get_profile(session, member, "ada")
    with pytest.raises(NotFound):
        await profiles.get_profile(session, member, "nobody")

    public = await profiles.get_profile(session, owner, "grace")
    assert public.visibility is Visibility.public
    assert public.email is None


async def test_pending_account_cannot_browse(session, make):
    pending, _ = await make.member("ada", account=AccountStatus.pending, profile=ApprovalStatus.draft)
    await make.member("grace")

    with pytest.raises(Forbidden):
        await profiles.get_profile(session, pending, "grace")
    with pytest.raises(Forbidden):
        await profiles.list_approved_profiles(session, pending, Page())


async def test_list_only_approved_profiles_by_name(session, make):
    viewer, _ = await make.member("zed", name="Zed")
    await make.member("ada", name="Ada")
    await make.member("bob", name="Bob", profile=ApprovalStatus.pending_review)
    await make.member("cy", name="Cy", profile=ApprovalStatus.rejected)

    items, total = await profiles.list_approved_profiles(session, viewer, Page(limit=1, offset=0))

    assert total == 2
    assert [p.handle for p in items] == ["ada"]


async def test_admin_queue_is_oldest_first(session, make):
    await make.member("first", profile=ApprovalStatus.pending_review)
    await make.member("second", profile=ApprovalStatus.pending_review)
    await make.member("done")

    queue = await profiles.list_pending_profiles(session)

    assert [p.handle for p, _ in queue] == ["first", "second"]
    assert queue[0][1].email == "first@example.com"


async def test_get_profile_by_id_missing(session):
    with pytest.raises(NotFound):
        await profiles.get_profile_by_id(session, uuid.uuid4())


async def test_own_profile_lookup(session, make):
    user, profile = await make.member("ada", profile=ApprovalStatus.draft)
    assert (await profiles.get_own_profile(session, user)).id == profile.id

    with pytest.raises(NotFound):
        await profiles.get_own_profile(session, await make.user())

    # Still a single row per handle.
    rows = (await session.execute(select(Profile).where(Profile.handle == "ada"))).scalars().all()
    assert len(rows) == 1
