"""Shared utilities for document export."""

from __future__ import annotations

import base64
import html
import re
from datetime import datetime

# Characters Windows and most shells refuse in a file name
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_HEX_COLOR_RE = re.compile(r"^[0-9a-fA-F]{6}$")
_WHITESPACE_RE = re.compile(r"\s+")
_DATA_URI_RE = re.compile(r"^data:([^;,]*)(;base64)?,(.*)$", re.DOTALL)

DEFAULT_COVER_RGB: tuple[int, int, int] = (30, 41, 59)


def sanitize_filename(name: str, default: str | None = None) -> str:
    """Replace characters that are illegal in file names with ``_``.

    Falls back to ``default`` (the configured package name) when the name is
    empty or made only of illegal characters.
    """
    if default is None:
        from report_export.config import settings

        default = settings.default_package_name

    stripped = (name or "").strip()
    if not _ILLEGAL_FILENAME_CHARS.sub("", stripped):
        return default
    return _ILLEGAL_FILENAME_CHARS.sub("_", stripped)


def escape_html(value: str | None) -> str:
    """Escape ``& < > " '`` for interpolation into markup or attributes."""
    if not value:
        return ""
    return html.escape(value, quote=True)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def hex_to_rgb(value: str | None, default: tuple[int, int, int] = DEFAULT_COVER_RGB) -> tuple[int, int, int]:
    """Parse ``#rrggbb``; anything else yields ``default``."""
    if not value:
        return default
    clean = value.strip().lstrip("#")
    if not _HEX_COLOR_RE.match(clean):
        return default
    return int(clean[0:2], 16), int(clean[2:4], 16), int(clean[4:6], 16)


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a data URI into ``(mime_type, payload_bytes)``."""
    match = _DATA_URI_RE.match(uri.strip())
    if not match:
        raise ValueError("Not a data URI")
    mime_type, is_base64, payload = match.groups()
    if is_base64:
        return mime_type, base64.b64decode(payload)
    from urllib.parse import unquote_to_bytes

    return mime_type, unquote_to_bytes(payload)


def generated_on_date(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d")


def generated_on_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d %H:%M")
