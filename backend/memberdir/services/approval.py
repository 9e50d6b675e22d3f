"""
Profile approval state machine and edit classification.

Pure functions only — no DB access. services/profiles.py consults this
module before every write and persists whatever it decides.

States:

    draft ──submit──▶ pending_review ──approve──▶ approved
      ▲                  │    ▲                     │
      │                reject  └──── major edit ────┘
      │                  ▼
      └──(edit)──── rejected ──submit──▶ pending_review

  • submit:  draft | rejected → pending_review   (clears rejection_note)
  • approve: pending_review   → approved         (admin; sets approved_at)
  • reject:  pending_review   → rejected         (admin; optional note)
  • While pending_review the owner cannot edit at all.

Edit classification (only matters while approved):
  Any change to a MAJOR field demotes the profile back to pending_review
  and clears approved_at. Changes to MINOR fields alone keep it approved.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from memberdir.core.errors import Forbidden, StateConflict
from memberdir.models.profile import ApprovalStatus


class ProfileAction(str, enum.Enum):
    submit = "submit"
    approve = "approve"
    reject = "reject"


# ── Transition table ────────────────────────────────────────
# (current state, action) -> next state. Anything missing is a conflict.
TRANSITIONS: dict[tuple[ApprovalStatus, ProfileAction], ApprovalStatus] = {
    (ApprovalStatus.draft, ProfileAction.submit): ApprovalStatus.pending_review,
    (ApprovalStatus.rejected, ProfileAction.submit): ApprovalStatus.pending_review,
    (ApprovalStatus.pending_review, ProfileAction.approve): ApprovalStatus.approved,
    (ApprovalStatus.pending_review, ProfileAction.reject): ApprovalStatus.rejected,
}


def transition(current: ApprovalStatus, action: ProfileAction) -> ApprovalStatus:
    """
    Return the state reached by applying `action` to `current`.

    Raises:
        StateConflict: the action is not available from `current`
                       (double submit, double approve, approving a draft, …).
    """
    current = ApprovalStatus(current)
    nxt = TRANSITIONS.get((current, action))
    if nxt is None:
        raise StateConflict(
            f"Cannot {action.value} a profile with status: {current.value}",
            current_state=current.value,
        )
    return nxt


# ── Edit classification ─────────────────────────────────────
class EditClass(str, enum.Enum):
    major = "major"
    minor = "minor"


FIELD_CLASSES: dict[str, EditClass] = {
    "name": EditClass.major,
    "handle": EditClass.major,
    "portrait_url": EditClass.major,
    "bio": EditClass.minor,
    "location": EditClass.minor,
    "website_url": EditClass.minor,
    "twitter_handle": EditClass.minor,
    "github_handle": EditClass.minor,
    "linkedin_url": EditClass.minor,
}

EDITABLE_FIELDS = frozenset(FIELD_CLASSES)


def changed_fields(
    current: Mapping[str, Any],
    proposed: Mapping[str, Any],
) -> dict[str, Any]:
    """Subset of `proposed` whose value differs from the stored value."""
    unknown = set(proposed) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Not an editable profile field: {', '.join(sorted(unknown))}")
    return {
        field: value
        for field, value in proposed.items()
        if current.get(field) != value
    }


def classify_edit(
    current: Mapping[str, Any],
    proposed: Mapping[str, Any],
) -> EditClass | None:
    """
    Classify an edit as a whole.

    Returns:
        EditClass.major if any major field changes, EditClass.minor if only
        minor fields change, None if nothing changes at all.
    """
    changes = changed_fields(current, proposed)
    if not changes:
        return None
    if any(FIELD_CLASSES[field] is EditClass.major for field in changes):
        return EditClass.major
    return EditClass.minor


@dataclass(frozen=True, slots=True)
class EditPlan:
    """What an accepted edit does to the review state."""

    new_status: ApprovalStatus
    clear_approved_at: bool = False
    clear_rejection_note: bool = False

    @property
    def requires_reapproval(self) -> bool:
        return self.clear_approved_at


def ensure_editable(status: ApprovalStatus) -> None:
    """Raise Forbidden while the profile is waiting for review."""
    if ApprovalStatus(status) is ApprovalStatus.pending_review:
        raise Forbidden(
            "Cannot edit profile while pending review",
            reason="pending_review",
        )


def plan_edit(status: ApprovalStatus, edit_class: EditClass | None) -> EditPlan:
    """
    Decide the review-state side effects of an owner edit.

    Raises:
        Forbidden: the profile is pending review (edits are blocked).
    """
    status = ApprovalStatus(status)
    ensure_editable(status)

    if status is ApprovalStatus.approved:
        if edit_class is EditClass.major:
            return EditPlan(
                new_status=ApprovalStatus.pending_review,
                clear_approved_at=True,
            )
        return EditPlan(new_status=ApprovalStatus.approved)

    if status is ApprovalStatus.rejected:
        # The owner is addressing the reviewer's feedback.
        return EditPlan(new_status=ApprovalStatus.rejected, clear_rejection_note=True)

    return EditPlan(new_status=status)
