"""
Dev bootstrap script — create an admin account and access token for local development.

Usage:
    python -m scripts.bootstrap_dev [email]

This will:
  1. Provision the account the way a first sign-in does (default
     admin@example.com), then approve it and grant admin
  2. Generate an access token for it
  3. Print the raw token ONCE (it is never stored)

The raw token is shown exactly once — copy it immediately.
"""

import asyncio
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from memberdir.auth.hashing import DISPLAY_PREFIX_LENGTH, generate_access_token
from memberdir.core.database import async_session_factory, engine
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.access_token import AccessToken
from memberdir.models.user import AccountStatus, User
from memberdir.services.accounts import get_or_create_user


async def provision_admin(uow: UnitOfWork, email: str) -> tuple[User, str, bool]:
    """Returns (admin, raw_token, created)."""
    # ── Find or create admin ────────────────────────────────
    user, created = await get_or_create_user(uow, email)
    user.status = AccountStatus.approved
    user.is_admin = True

    # ── Generate token ──────────────────────────────────────
    raw_token, token_hash = generate_access_token()
    uow.session.add(
        AccessToken(
            user_id=user.id,
            token_hash=token_hash,
            prefix=raw_token[:DISPLAY_PREFIX_LENGTH],
        )
    )
    await uow.commit()
    return user, raw_token, created


async def main(email: str) -> None:
    async with async_session_factory() as session, UnitOfWork(session) as uow:
        user, raw_token, created = await provision_admin(uow, email)

    # ── Print results ───────────────────────────────────────
    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  Admin:      {user.email}" + (" (new)" if created else ""))
    print(f"  User ID:    {user.id}")
    print()
    print(f"  Token:      {raw_token}")
    print()
    print("  ⚠  Copy this token now — it will NEVER be shown again.")
    print("=" * 60)
    print()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "admin@example.com"))
