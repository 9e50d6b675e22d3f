"""
Input sanitation for user-generated text.

Everything a member types goes through here before validation:
  • HTML tags are stripped (we store plain text only)
  • whitespace is collapsed
  • empty-after-cleanup becomes None
  • URLs are restricted to http/https
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

HANDLE_PATTERN = re.compile(r"^[a-z0-9_]{3,30}$")

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_HSPACE_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text)


def sanitize_text(text: str | None) -> str | None:
    """Single-line text: strip tags, trim, collapse all whitespace."""
    if not text:
        return None
    cleaned = _WS_RE.sub(" ", strip_html(text).strip())
    return cleaned or None


def sanitize_multiline_text(text: str | None) -> str | None:
    """Like sanitize_text but keeps newlines (max one blank line in a row)."""
    if not text:
        return None
    cleaned = _HSPACE_RE.sub(" ", strip_html(text).strip())
    cleaned = _BLANK_LINES_RE.sub("\n\n", cleaned)
    return cleaned or None


def sanitize_url(url: str | None) -> str | None:
    """
    Normalize an http(s) URL.

    A missing scheme is treated as https. Returns None for empty input.

    Raises:
        ValueError: the URL is not a usable http/https URL.
    """
    if not url:
        return None
    trimmed = url.strip()
    if not trimmed:
        return None

    if "://" not in trimmed:
        trimmed = f"https://{trimmed}"

    parts = urlsplit(trimmed)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Not a valid http(s) URL: {url!r}")
    if " " in parts.netloc or "." not in parts.netloc:
        raise ValueError(f"Not a valid http(s) URL: {url!r}")
    return trimmed


def normalize_handle(handle: str | None) -> str | None:
    """Lower-case and trim. Format is checked with is_valid_handle()."""
    if handle is None:
        return None
    return handle.strip().lower() or None


def is_valid_handle(handle: str | None) -> bool:
    """Lowercase letters, numbers, underscores. 3-30 chars."""
    return handle is not None and HANDLE_PATTERN.fullmatch(handle) is not None
