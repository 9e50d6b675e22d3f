"""
User model — identity and coarse account state.

Lifecycle:
  • Created with status='pending' on first sign-in.
  • Becomes 'approved' when its Profile is approved (same transaction).
  • 'suspended' only by an admin; only an explicit reinstatement reverses it.

is_employer is flipped exclusively by billing events (see
services/accounts.apply_billing_event), never by the user directly.
"""

import datetime
import enum
import uuid

from sqlalchemy import Boolean, DateTime, Enum, String, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberdir.core.database import Base, utcnow


class AccountStatus(str, enum.Enum):
    """Coarse account state, independent of the profile's review state."""

    pending = "pending"
    approved = "approved"
    suspended = "suspended"


class User(Base):
    """One account. Owns at most one Profile."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
    )
    status: Mapped[AccountStatus] = mapped_column(
        Enum(
            AccountStatus,
            name="account_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AccountStatus.pending,
    )
    is_employer: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )
    # Billing linkage — only ever written by the payment integration.
    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    last_login_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    profile = relationship("Profile", back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"<User id={self.id!s:.8} email={self.email!r} status={self.status.value}>"
