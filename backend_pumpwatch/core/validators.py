"""
Field validators for launch payloads.

Pure helpers with no scoring knowledge: base58 mint format, metadata URI
sanity, timestamp range, creator identity format and text hygiene checks.
Every function tolerates None / wrong types and answers False (or None)
instead of raising.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

import base58

# Base58 alphabet without 0 O I l
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")
MINT_MIN_LEN = 32
MINT_MAX_LEN = 44
PUBKEY_BYTES = 32

CREATOR_HEX_LEN = 64
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")

# 2020-01-01T00:00:00Z; nothing on the tracked platform predates this
TIMESTAMP_FLOOR = 1_577_836_800
TIMESTAMP_FUTURE_SLACK_SEC = 86_400

SUSPICIOUS_URI_SCHEMES = frozenset({"data", "javascript", "vbscript", "file"})
MAX_URI_QUERY_LEN = 256

PUMP_URL_TEMPLATE = "https://pump.fun/{mint}"

_REPEATED_CHAR_RE = re.compile(r"(.)\1{4,}")
_EMOJI_RUN_RE = re.compile(
    "(?:[\U0001F300-\U0001FAFF\u2600-\u27BF\U0001F000-\U0001F2FF][\uFE0F\u200D]*){3,}"
)
# Greek, Cyrillic, fullwidth forms and mathematical alphanumerics
_CONFUSABLE_RE = re.compile(
    "[\u0370-\u03FF\u0400-\u04FF\u0500-\u052F\uFF00-\uFFEF\U0001D400-\U0001D7FF]"
)

# Emoji sequences legitimately use ZWJ; do not count it as a control char
_ALLOWED_FORMAT_CHARS = frozenset({"\u200d"})


def clean_str(value: Any) -> str | None:
    """Return the stripped string, or None for non-strings and blanks."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def is_valid_base58_mint(value: Any) -> bool:
    """True when value is a base58 string of 32..44 chars decoding to a 32-byte key."""
    mint = clean_str(value)
    if mint is None:
        return False
    if not (MINT_MIN_LEN <= len(mint) <= MINT_MAX_LEN):
        return False
    if not _BASE58_RE.match(mint):
        return False
    try:
        return len(base58.b58decode(mint)) == PUBKEY_BYTES
    except ValueError:
        return False


def is_suspicious_uri(value: Any) -> bool:
    """Active-content schemes or an excessively long query string."""
    uri = clean_str(value)
    if uri is None:
        return False
    scheme = uri.split(":", 1)[0].strip().lower() if ":" in uri else ""
    if scheme in SUSPICIOUS_URI_SCHEMES:
        return True
    try:
        parsed = urlparse(uri)
    except ValueError:
        return False
    return len(parsed.query) > MAX_URI_QUERY_LEN


def parse_metadata_uri(value: Any) -> tuple[str | None, bool]:
    """
    Return (normalized_uri, is_https).

    normalized_uri is None when the value is missing or does not parse as an
    absolute URL with a host.
    """
    uri = clean_str(value)
    if uri is None:
        return None, False
    try:
        parsed = urlparse(uri)
    except ValueError:
        return None, False
    if not parsed.scheme or not parsed.netloc:
        return None, False
    return parsed.geturl(), parsed.scheme.lower() == "https"


def is_sane_timestamp(value: Any, now: float) -> bool:
    """Unix seconds between TIMESTAMP_FLOOR and now + 1 day."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return TIMESTAMP_FLOOR <= value <= now + TIMESTAMP_FUTURE_SLACK_SEC


def is_valid_creator_hex(value: Any) -> bool:
    """64 hex chars (a 32-byte identity)."""
    creator = clean_str(value)
    if creator is None:
        return False
    return len(creator) == CREATOR_HEX_LEN and bool(_HEX_RE.match(creator))


def has_control_chars(value: Any) -> bool:
    """Control, format, surrogate, private-use or unassigned code points."""
    if not isinstance(value, str):
        return False
    for ch in value:
        if ch in _ALLOWED_FORMAT_CHARS:
            continue
        if unicodedata.category(ch).startswith("C"):
            return True
    return False


def scammy_symbol_pattern(value: Any) -> str | None:
    """Name of the first scammy pattern the symbol matches, or None."""
    if not isinstance(value, str) or not value:
        return None
    if _REPEATED_CHAR_RE.search(value):
        return "repeated_chars"
    if _EMOJI_RUN_RE.search(value):
        return "emoji_run"
    if _CONFUSABLE_RE.search(value):
        return "confusable_script"
    return None


def to_iso_utc(ts: Any) -> str | None:
    """Unix seconds -> ISO-8601 UTC with millisecond precision and Z suffix."""
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        return None
    try:
        dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def pump_url_for(mint: str | None) -> str | None:
    if not mint:
        return None
    return PUMP_URL_TEMPLATE.format(mint=mint)
