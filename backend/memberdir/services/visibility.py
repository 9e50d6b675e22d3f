"""
Visibility policy for profiles, projects and jobs.

Rules, evaluated in order for (viewer, target):

  1. viewer owns the target                → FULL
  2. viewer is an admin                    → FULL
  3. viewer's account is not approved      → FORBIDDEN
  4. target's approval state != approved   → NOT_FOUND
  5. otherwise                             → PUBLIC (sensitive fields stripped)

For projects and jobs the "approval state" is the creator's profile state.

NOT_FOUND in rule 4 is deliberate: callers must not be able to tell an
unapproved profile apart from one that does not exist.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass

from memberdir.core.errors import Forbidden, NotFound
from memberdir.models.profile import ApprovalStatus
from memberdir.models.user import AccountStatus, User


class Visibility(str, enum.Enum):
    full = "full"
    public = "public"
    not_found = "not_found"
    forbidden = "forbidden"


@dataclass(frozen=True, slots=True)
class Viewer:
    """The subset of a User the policy needs."""

    user_id: uuid.UUID
    status: AccountStatus
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: User) -> Viewer:
        return cls(user_id=user.id, status=AccountStatus(user.status), is_admin=user.is_admin)

    @property
    def is_approved_member(self) -> bool:
        return self.status is AccountStatus.approved


def evaluate(
    viewer: Viewer,
    owner_user_id: uuid.UUID,
    target_status: ApprovalStatus,
) -> Visibility:
    """Apply the rules above and return the outcome."""
    if viewer.user_id == owner_user_id:
        return Visibility.full
    if viewer.is_admin:
        return Visibility.full
    if not viewer.is_approved_member:
        return Visibility.forbidden
    if ApprovalStatus(target_status) is not ApprovalStatus.approved:
        return Visibility.not_found
    return Visibility.public


def require_visible(
    viewer: Viewer,
    owner_user_id: uuid.UUID,
    target_status: ApprovalStatus,
    *,
    not_found_message: str = "Resource not found",
) -> Visibility:
    """
    Like evaluate(), but raise for the two negative outcomes.

    Returns FULL or PUBLIC so the caller can decide which representation
    to build.
    """
    outcome = evaluate(viewer, owner_user_id, target_status)
    if outcome is Visibility.forbidden:
        require_directory_access(viewer)
    if outcome is Visibility.not_found:
        raise NotFound(not_found_message)
    return outcome


def require_directory_access(viewer: Viewer) -> None:
    """Rule 3 on its own, for list endpoints (rule 4 becomes a filter there)."""
    if viewer.is_admin:
        return
    if viewer.status is AccountStatus.suspended:
        raise Forbidden("Account suspended", reason="account_suspended")
    if not viewer.is_approved_member:
        raise Forbidden("Account pending approval", reason="account_not_approved")
