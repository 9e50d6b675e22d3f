"""
FastAPI dependencies resolving the request's viewer.

Flow:
  1. Extract Bearer token from Authorization header
  2. Hash the token (SHA-256)
  3. Look up access_tokens by hash, require is_active
  4. Load the owning User
  5. Return AuthContext (user + token id)

Security:
  • Generic 401 for ALL failure modes (missing, invalid, revoked)
  • Raw tokens are NEVER logged
  • Account state (pending / suspended) is NOT checked here: the
    visibility policy decides what such a viewer may see.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.hashing import hash_token
from memberdir.core.database import get_db_session
from memberdir.core.errors import Forbidden
from memberdir.models.access_token import AccessToken
from memberdir.models.user import User

logger = logging.getLogger(__name__)

# Generic 401 — same message for all auth failures to avoid leaking info
_AUTH_FAILED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or missing access token.",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Authenticated request context injected into every protected route.

    Attributes:
        user:     The signed-in account.
        token_id: The access token used for this request.
    """

    user: User
    token_id: uuid.UUID


async def get_current_viewer(
    authorization: str | None = Header(default=None, alias="Authorization"),
    session: AsyncSession = Depends(get_db_session),
) -> AuthContext:
    """
    Resolve the Bearer token to an AuthContext.

    Raises 401 for a missing header, a non-Bearer scheme, an unknown
    token hash, or a revoked token.
    """

    # ── 1. Extract token ────────────────────────────────────
    if not authorization:
        raise _AUTH_FAILED

    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _AUTH_FAILED

    # ── 2. Hash and look up ─────────────────────────────────
    result = await session.execute(
        select(AccessToken).where(AccessToken.token_hash == hash_token(parts[1].strip()))
    )
    token = result.scalar_one_or_none()

    if token is None or not token.is_active:
        raise _AUTH_FAILED

    # ── 3. Load user ────────────────────────────────────────
    user = await session.get(User, token.user_id)
    if user is None:
        logger.error("Access token %s references missing user %s", token.id, token.user_id)
        raise _AUTH_FAILED

    return AuthContext(user=user, token_id=token.id)


Auth = Annotated[AuthContext, Depends(get_current_viewer)]


async def require_admin(auth: Auth) -> AuthContext:
    """Like get_current_viewer, but 403 unless the user is an admin."""
    if not auth.user.is_admin:
        raise Forbidden("Admin access required")
    return auth


AdminAuth = Annotated[AuthContext, Depends(require_admin)]
