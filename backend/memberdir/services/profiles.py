"""
Profile operations: create, edit, submit, approve, reject, read.

Every write that depends on the current approval state is a conditional
UPDATE guarded by the state we read (… WHERE approval_status = :observed).
If another request changed the state in between, zero rows match and the
caller gets StateConflict, so two concurrent approvals cannot both succeed.

approve_profile() writes the Profile and the owning User in the same
unit of work; they commit together or not at all.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.database import utcnow
from memberdir.core.errors import Conflict, Forbidden, NotFound, StateConflict, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.user import AccountStatus, User
from memberdir.services import approval
from memberdir.services.mailer import send_profile_approved_email, send_profile_rejected_email
from memberdir.services.pagination import Page
from memberdir.services.sanitize import (
    is_valid_handle,
    normalize_handle,
    sanitize_multiline_text,
    sanitize_text,
    sanitize_url,
)
from memberdir.services.visibility import (
    Viewer,
    Visibility,
    require_directory_access,
    require_visible,
)

logger = logging.getLogger(__name__)

_HANDLE_RULES = "Handle must be 3-30 characters, lowercase letters, numbers, and underscores only"
_TEXT_FIELDS = ("location", "twitter_handle", "github_handle")
_URL_FIELDS = ("portrait_url", "website_url", "linkedin_url")


@dataclass(frozen=True, slots=True)
class EditResult:
    profile: Profile
    requires_reapproval: bool


@dataclass(frozen=True, slots=True)
class ProfileView:
    """A profile as one particular viewer may see it."""

    profile: Profile
    visibility: Visibility
    email: str | None = None


# ── Input cleaning ──────────────────────────────────────────
def clean_profile_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Sanitize and validate the fields present in `fields`.

    Absent keys stay absent (partial update). Clearing an optional field
    is done by sending an empty value.

    Raises:
        ValidationError: empty name, malformed handle or URL.
    """
    cleaned: dict[str, Any] = {}

    if "name" in fields:
        name = sanitize_text(fields["name"])
        if not name:
            raise ValidationError("Name cannot be empty", reason="name-required")
        cleaned["name"] = name

    if "handle" in fields:
        handle = normalize_handle(fields["handle"])
        if not is_valid_handle(handle):
            raise ValidationError(_HANDLE_RULES, reason="invalid-handle")
        cleaned["handle"] = handle

    if "bio" in fields:
        cleaned["bio"] = sanitize_multiline_text(fields["bio"])

    for field in _TEXT_FIELDS:
        if field in fields:
            cleaned[field] = sanitize_text(fields[field])

    for field in _URL_FIELDS:
        if field in fields:
            try:
                cleaned[field] = sanitize_url(fields[field])
            except ValueError as exc:
                raise ValidationError(
                    f"{field} must be a valid http(s) URL",
                    reason="invalid-url",
                ) from exc

    return cleaned


# ── Lookups ─────────────────────────────────────────────────
async def _get_profile(session: AsyncSession, profile_id: uuid.UUID) -> Profile:
    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise NotFound("Profile not found")
    return profile


async def _handle_taken(
    session: AsyncSession,
    handle: str,
    exclude_profile_id: uuid.UUID | None = None,
) -> bool:
    stmt = select(Profile.id).where(Profile.handle == handle)
    if exclude_profile_id is not None:
        stmt = stmt.where(Profile.id != exclude_profile_id)
    return (await session.execute(stmt)).first() is not None


async def _guarded_update(
    session: AsyncSession,
    profile: Profile,
    observed: ApprovalStatus,
    values: dict[str, Any],
) -> None:
    """
    UPDATE the profile only if it is still in the `observed` state.

    Raises:
        StateConflict: the state changed since we read it.
        Conflict:      the new handle collided with a concurrent write.
    """
    stmt = (
        update(Profile)
        .where(Profile.id == profile.id, Profile.approval_status == observed)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    try:
        result = await session.execute(stmt)
    except IntegrityError as exc:
        raise Conflict("Handle is already taken") from exc

    if result.rowcount != 1:
        raise StateConflict(
            "Profile status changed concurrently, please retry",
            current_state=None,
        )


# ── Create / read own ───────────────────────────────────────
async def create_profile(
    uow: UnitOfWork,
    user: User,
    fields: Mapping[str, Any],
) -> Profile:
    """
    Create the user's profile in 'draft'.

    Raises:
        Conflict:        the user already has a profile, or the handle is taken.
        ValidationError: name/handle missing or malformed.
    """
    session = uow.session

    existing = (
        await session.execute(select(Profile.id).where(Profile.user_id == user.id))
    ).first()
    if existing is not None:
        raise Conflict("Profile already exists")

    if not fields.get("name"):
        raise ValidationError("Name is required", reason="name-required")
    if not fields.get("handle"):
        raise ValidationError(_HANDLE_RULES, reason="invalid-handle")

    cleaned = clean_profile_fields(fields)

    if await _handle_taken(session, cleaned["handle"]):
        raise Conflict("Handle is already taken")

    profile = Profile(
        user_id=user.id,
        approval_status=ApprovalStatus.draft,
        **cleaned,
    )
    session.add(profile)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict("Handle is already taken") from exc

    await uow.commit()
    await session.refresh(profile)
    logger.info("Profile %s created in draft for user %s", profile.id, user.id)
    return profile


async def get_own_profile(session: AsyncSession, user: User) -> Profile:
    profile = (
        await session.execute(select(Profile).where(Profile.user_id == user.id))
    ).scalar_one_or_none()
    if profile is None:
        raise NotFound("Profile not found")
    return profile


# ── Edit ────────────────────────────────────────────────────
async def edit_profile(
    uow: UnitOfWork,
    profile_id: uuid.UUID,
    requester: User,
    fields: Mapping[str, Any],
) -> EditResult:
    """
    Apply an owner edit.

    draft     → accepted as-is
    rejected  → accepted, rejection_note cleared
    approved  → minor-only: stays approved; any major change: back to
                pending_review with approved_at cleared
    pending   → Forbidden

    Raises:
        NotFound, Forbidden, ValidationError, Conflict, StateConflict
    """
    session = uow.session
    profile = await _get_profile(session, profile_id)

    if profile.user_id != requester.id:
        raise Forbidden("Not authorized to edit this profile")

    observed = ApprovalStatus(profile.approval_status)
    approval.ensure_editable(observed)

    cleaned = clean_profile_fields(fields)

    new_handle = cleaned.get("handle")
    if new_handle is not None and new_handle != profile.handle:
        if await _handle_taken(session, new_handle, exclude_profile_id=profile.id):
            raise Conflict("Handle is already taken")

    current = {field: getattr(profile, field) for field in approval.EDITABLE_FIELDS}
    changes = approval.changed_fields(current, cleaned)
    plan = approval.plan_edit(observed, approval.classify_edit(current, cleaned))

    values: dict[str, Any] = dict(changes)
    if plan.new_status is not observed:
        values["approval_status"] = plan.new_status
    if plan.clear_approved_at:
        values["approved_at"] = None
    if plan.clear_rejection_note:
        values["rejection_note"] = None

    if values:
        await _guarded_update(session, profile, observed, values)
        await uow.commit()
        await session.refresh(profile)

    if plan.requires_reapproval:
        logger.info("Profile %s demoted to pending_review by a major edit", profile.id)

    return EditResult(profile=profile, requires_reapproval=plan.requires_reapproval)


# ── Review transitions ──────────────────────────────────────
async def submit_profile_for_review(
    uow: UnitOfWork,
    profile_id: uuid.UUID,
    requester: User | None = None,
) -> Profile:
    """
    draft | rejected → pending_review, clearing any rejection note.

    Raises:
        NotFound, Forbidden (not the owner), StateConflict
    """
    session = uow.session
    profile = await _get_profile(session, profile_id)

    if requester is not None and profile.user_id != requester.id:
        raise Forbidden("Not authorized to submit this profile")

    observed = ApprovalStatus(profile.approval_status)
    new_status = approval.transition(observed, approval.ProfileAction.submit)

    await _guarded_update(
        session,
        profile,
        observed,
        {"approval_status": new_status, "rejection_note": None},
    )
    await uow.commit()
    await session.refresh(profile)

    logger.info("Profile %s submitted for review", profile.id)
    return profile


def _require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise Forbidden("Admin access required")


async def approve_profile(
    uow: UnitOfWork,
    profile_id: uuid.UUID,
    actor: User,
    *,
    now: datetime.datetime | None = None,
) -> Profile:
    """
    pending_review → approved (admin only).

    In the same transaction the owning User goes pending → approved.
    A suspended owner stays suspended. The approval email is sent after
    commit and never fails the operation.

    Raises:
        Forbidden, NotFound, StateConflict
    """
    _require_admin(actor)
    session = uow.session
    profile = await _get_profile(session, profile_id)
    owner = await session.get(User, profile.user_id)

    observed = ApprovalStatus(profile.approval_status)
    new_status = approval.transition(observed, approval.ProfileAction.approve)

    await _guarded_update(
        session,
        profile,
        observed,
        {
            "approval_status": new_status,
            "approved_at": now or utcnow(),
            "rejection_note": None,
        },
    )
    await session.execute(
        update(User)
        .where(User.id == profile.user_id, User.status == AccountStatus.pending)
        .values(status=AccountStatus.approved)
        .execution_options(synchronize_session=False)
    )
    await uow.commit()
    await session.refresh(profile)
    if owner is not None:
        await session.refresh(owner)

    logger.info("Profile %s approved by %s", profile.id, actor.id)

    if owner is not None:
        try:
            await send_profile_approved_email(owner.email, profile.name)
        except Exception:
            logger.exception("Approval email for profile %s failed (non-fatal)", profile.id)

    return profile


async def reject_profile(
    uow: UnitOfWork,
    profile_id: uuid.UUID,
    actor: User,
    note: str | None = None,
) -> Profile:
    """
    pending_review → rejected (admin only), storing the optional note.

    Raises:
        Forbidden, NotFound, StateConflict
    """
    _require_admin(actor)
    session = uow.session
    profile = await _get_profile(session, profile_id)
    owner = await session.get(User, profile.user_id)

    observed = ApprovalStatus(profile.approval_status)
    new_status = approval.transition(observed, approval.ProfileAction.reject)
    rejection_note = note.strip() if note and note.strip() else None

    await _guarded_update(
        session,
        profile,
        observed,
        {"approval_status": new_status, "rejection_note": rejection_note},
    )
    await uow.commit()
    await session.refresh(profile)

    logger.info("Profile %s rejected by %s", profile.id, actor.id)

    if owner is not None:
        try:
            await send_profile_rejected_email(owner.email, profile.name, rejection_note)
        except Exception:
            logger.exception("Rejection email for profile %s failed (non-fatal)", profile.id)

    return profile


# ── Directory reads ─────────────────────────────────────────
async def get_profile(
    session: AsyncSession,
    viewer: User,
    handle: str,
) -> ProfileView:
    """
    Look up a profile by handle as `viewer` sees it.

    Raises:
        NotFound:  no such handle, or not visible to this viewer
        Forbidden: the viewer's own account is not approved
    """
    row = (
        await session.execute(
            select(Profile, User.email)
            .join(User, User.id == Profile.user_id)
            .where(Profile.handle == handle.strip().lower())
        )
    ).first()
    if row is None:
        raise NotFound("Profile not found")

    profile, email = row
    outcome = require_visible(
        Viewer.from_user(viewer),
        profile.user_id,
        profile.approval_status,
        not_found_message="Profile not found",
    )
    return ProfileView(
        profile=profile,
        visibility=outcome,
        email=email if outcome is Visibility.full else None,
    )


async def list_approved_profiles(
    session: AsyncSession,
    viewer: User,
    page: Page,
) -> tuple[list[Profile], int]:
    """Approved profiles ordered by name, plus the total count."""
    require_directory_access(Viewer.from_user(viewer))

    approved = Profile.approval_status == ApprovalStatus.approved
    profiles = (
        await session.execute(
            select(Profile)
            .where(approved)
            .order_by(Profile.name.asc(), Profile.id)
            .limit(page.limit)
            .offset(page.offset)
        )
    ).scalars().all()
    total = (
        await session.execute(select(func.count()).select_from(Profile).where(approved))
    ).scalar_one()
    return list(profiles), total


# ── Admin reads ─────────────────────────────────────────────
async def list_pending_profiles(session: AsyncSession) -> list[tuple[Profile, User]]:
    """Review queue, oldest first."""
    rows = (
        await session.execute(
            select(Profile, User)
            .join(User, User.id == Profile.user_id)
            .where(Profile.approval_status == ApprovalStatus.pending_review)
            .order_by(Profile.updated_at.asc())
        )
    ).all()
    return [(profile, user) for profile, user in rows]


async def get_profile_by_id(
    session: AsyncSession,
    profile_id: uuid.UUID,
) -> tuple[Profile, User]:
    row = (
        await session.execute(
            select(Profile, User)
            .join(User, User.id == Profile.user_id)
            .where(Profile.id == profile_id)
        )
    ).first()
    if row is None:
        raise NotFound("Profile not found")
    return row[0], row[1]
