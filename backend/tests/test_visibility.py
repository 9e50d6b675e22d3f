"""Visibility policy rules, in order."""

import uuid

import pytest

from memberdir.core.errors import Forbidden, NotFound
from memberdir.models.profile import ApprovalStatus
from memberdir.models.user import AccountStatus
from memberdir.services.visibility import (
    Viewer,
    Visibility,
    evaluate,
    require_directory_access,
    require_visible,
)

OWNER = uuid.uuid4()


def viewer(status=AccountStatus.approved, *, is_admin=False, user_id=None):
    return Viewer(user_id=user_id or uuid.uuid4(), status=status, is_admin=is_admin)


def test_owner_sees_own_unapproved_target_in_full():
    me = viewer(AccountStatus.pending, user_id=OWNER)
    assert evaluate(me, OWNER, ApprovalStatus.draft) is Visibility.full


def test_admin_sees_everything_in_full():
    assert evaluate(viewer(is_admin=True), OWNER, ApprovalStatus.rejected) is Visibility.full


@pytest.mark.parametrize("status", [AccountStatus.pending, AccountStatus.suspended])
def test_unapproved_account_is_forbidden_before_target_state_is_considered(status):
    assert evaluate(viewer(status), OWNER, ApprovalStatus.approved) is Visibility.forbidden
    assert evaluate(viewer(status), OWNER, ApprovalStatus.draft) is Visibility.forbidden


@pytest.mark.parametrize(
    "target",
    [ApprovalStatus.draft, ApprovalStatus.pending_review, ApprovalStatus.rejected],
)
def test_unapproved_target_is_not_found(target):
    assert evaluate(viewer(), OWNER, target) is Visibility.not_found


def test_approved_member_gets_public_view_of_approved_target():
    assert evaluate(viewer(), OWNER, ApprovalStatus.approved) is Visibility.public


def test_require_visible_masks_unapproved_target_as_not_found():
    with pytest.raises(NotFound, match="Profile not found"):
        require_visible(viewer(), OWNER, ApprovalStatus.draft, not_found_message="Profile not found")


def test_require_visible_reports_suspension():
    with pytest.raises(Forbidden) as exc_info:
        require_visible(viewer(AccountStatus.suspended), OWNER, ApprovalStatus.approved)
    assert exc_info.value.reason == "account_suspended"


def test_require_visible_reports_pending_account():
    with pytest.raises(Forbidden) as exc_info:
        require_visible(viewer(AccountStatus.pending), OWNER, ApprovalStatus.approved)
    assert exc_info.value.reason == "account_not_approved"


def test_directory_access_lets_admins_through_regardless_of_status():
    require_directory_access(viewer(AccountStatus.pending, is_admin=True))
