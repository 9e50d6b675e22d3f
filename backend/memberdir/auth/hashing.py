"""
Access token hashing utilities.

Security notes:
  • SHA-256 is used for token hashing. Tokens are high-entropy random
    strings, so a slow password hash would only add latency per request.
  • Raw tokens use the md_live_ prefix (convention, not security).
  • generate_access_token() returns the raw token exactly once. Only the
    hash and a short display prefix are stored.
"""

import hashlib
import secrets


_TOKEN_PREFIX = "md_live_"
DISPLAY_PREFIX_LENGTH = 12


def hash_token(raw_token: str) -> str:
    """SHA-256 hex digest used for storage and lookup."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_access_token() -> tuple[str, str]:
    """
    Generate a new access token.

    Returns:
        (raw_token, token_hash) — raw_token is shown once, token_hash is stored.
    """
    raw_token = f"{_TOKEN_PREFIX}{secrets.token_hex(32)}"
    return raw_token, hash_token(raw_token)
