"""
User accounts: sign-in provisioning, admin moderation, billing capability.

Billing events arrive already verified by the payment integration; this
module only maps them onto User.is_employer.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.database import utcnow
from memberdir.core.errors import Forbidden, NotFound, StateConflict, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.user import AccountStatus, User
from memberdir.services.pagination import Page

logger = logging.getLogger(__name__)

# event type → new is_employer value
BILLING_EVENTS: dict[str, bool] = {
    "checkout.session.completed": True,
    "customer.subscription.deleted": False,
    "invoice.payment_failed": False,
}


def normalize_email(email: str) -> str:
    normalized = (email or "").strip().lower()
    local, _, domain = normalized.partition("@")
    if not local or "." not in domain or " " in normalized:
        raise ValidationError("Invalid email address", reason="invalid-email")
    return normalized


async def get_or_create_user(uow: UnitOfWork, email: str) -> tuple[User, bool]:
    """
    Find the account for `email` or create it as 'pending'.

    Records the sign-in time either way. Returns (user, created).
    """
    session = uow.session
    email = normalize_email(email)

    user = (
        await session.execute(select(User).where(User.email == email))
    ).scalar_one_or_none()
    created = user is None
    if user is None:
        user = User(email=email, status=AccountStatus.pending)
        session.add(user)

    user.last_login_at = utcnow()
    await uow.commit()
    await session.refresh(user)

    if created:
        logger.info("User %s created (pending)", user.id)
    return user, created


def _require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise Forbidden("Admin access required")


async def _get_user(uow: UnitOfWork, user_id: uuid.UUID) -> User:
    user = await uow.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def list_users(
    session: AsyncSession,
    actor: User,
    page: Page,
    status: AccountStatus | None = None,
) -> tuple[list[User], int]:
    _require_admin(actor)

    stmt = select(User)
    count_stmt = select(func.count()).select_from(User)
    if status is not None:
        stmt = stmt.where(User.status == status)
        count_stmt = count_stmt.where(User.status == status)

    users = (
        await session.execute(
            stmt.order_by(User.created_at.desc(), User.id).limit(page.limit).offset(page.offset)
        )
    ).scalars().all()
    total = (await session.execute(count_stmt)).scalar_one()
    return list(users), total


async def suspend_user(uow: UnitOfWork, user_id: uuid.UUID, actor: User) -> User:
    """
    Raises:
        Forbidden:     actor not admin, or target is an admin
        NotFound:      no such user
        StateConflict: already suspended
    """
    _require_admin(actor)
    user = await _get_user(uow, user_id)

    if user.is_admin:
        raise Forbidden("Cannot suspend an admin")
    if user.status is AccountStatus.suspended:
        raise StateConflict("User is already suspended", current_state=user.status.value)

    user.status = AccountStatus.suspended
    await uow.commit()
    await uow.session.refresh(user)

    logger.info("User %s suspended by %s", user.id, actor.id)
    return user


async def reinstate_user(uow: UnitOfWork, user_id: uuid.UUID, actor: User) -> User:
    """suspended → approved."""
    _require_admin(actor)
    user = await _get_user(uow, user_id)

    if user.status is not AccountStatus.suspended:
        raise StateConflict("User is not suspended", current_state=user.status.value)

    user.status = AccountStatus.approved
    await uow.commit()
    await uow.session.refresh(user)

    logger.info("User %s reinstated by %s", user.id, actor.id)
    return user


async def apply_billing_event(
    uow: UnitOfWork,
    event_type: str,
    customer_id: str,
    customer_email: str | None = None,
) -> bool:
    """
    Apply a verified billing event. Returns True if a user was updated.

    checkout.session.completed links the customer id to the user with
    `customer_email` the first time it is seen. Unknown events and
    unknown customers are logged and ignored.
    """
    if event_type not in BILLING_EVENTS:
        logger.info("Ignoring billing event %s", event_type)
        return False

    session = uow.session
    user = (
        await session.execute(select(User).where(User.stripe_customer_id == customer_id))
    ).scalar_one_or_none()

    if user is None and event_type == "checkout.session.completed" and customer_email:
        user = (
            await session.execute(
                select(User).where(User.email == customer_email.strip().lower())
            )
        ).scalar_one_or_none()
        if user is not None:
            user.stripe_customer_id = customer_id

    if user is None:
        logger.warning("Billing event %s for unknown customer %s", event_type, customer_id)
        return False

    user.is_employer = BILLING_EVENTS[event_type]
    await uow.commit()

    logger.info("User %s is_employer=%s after %s", user.id, user.is_employer, event_type)
    return True
