"""
Signal bundle access for the analyzer modules.

The bundle is nested provider data (helius, dexscreener) where any provider,
sub-object or field may be absent or of the wrong type. SignalBundle wraps
it so that every read tolerates absence and returns None instead of raising.
"""

from __future__ import annotations

import math
import time
from typing import Any, Mapping

MS_PER_HOUR = 60 * 60 * 1000

_ABSENT = object()


class SignalBundle:
    """
    Read-only view over a raw signal bundle.

        bundle = SignalBundle(raw, now=time.time())
        holders = bundle.number("helius", "tokenInfo", "holders")
    """

    def __init__(self, raw: Mapping[str, Any] | None = None, *, now: float | None = None) -> None:
        self.raw: dict[str, Any] = dict(raw) if isinstance(raw, Mapping) else {}
        self.now = time.time() if now is None else float(now)

    @classmethod
    def wrap(cls, value: Any, *, now: float | None = None) -> "SignalBundle":
        if isinstance(value, SignalBundle):
            return value
        return cls(value if isinstance(value, Mapping) else None, now=now)

    @property
    def now_ms(self) -> float:
        return self.now * 1000.0

    def _walk(self, path: tuple[str, ...]) -> Any:
        node: Any = self.raw
        for key in path:
            if not isinstance(node, Mapping) or key not in node:
                return _ABSENT
            node = node[key]
        return node

    def has(self, *path: str) -> bool:
        """True when the key exists (even if its value is None)."""
        return self._walk(path) is not _ABSENT

    def get(self, *path: str, default: Any = None) -> Any:
        value = self._walk(path)
        return default if value is _ABSENT or value is None else value

    def section(self, *path: str) -> dict[str, Any]:
        """Nested object at path, or {} when absent or not an object."""
        value = self._walk(path)
        return dict(value) if isinstance(value, Mapping) else {}

    def number(self, *path: str) -> float | None:
        """Finite numeric value at path; numeric strings accepted, bools rejected."""
        value = self._walk(path)
        if value is _ABSENT or value is None or isinstance(value, bool):
            return None
        try:
            out = float(value)
        except (TypeError, ValueError):
            return None
        return out if math.isfinite(out) else None

    def text(self, *path: str) -> str | None:
        value = self._walk(path)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def first_number(self, *paths: tuple[str, ...]) -> float | None:
        """First present number among alternative paths."""
        for path in paths:
            value = self.number(*path)
            if value is not None:
                return value
        return None

    def provider_present(self, name: str) -> bool:
        """Provider sub-object exists and did not report failure."""
        section = self._walk((name,))
        return isinstance(section, Mapping) and section.get("success") is not False

    def provider_succeeded(self, name: str) -> bool:
        """Provider sub-object exists and reported success explicitly."""
        section = self._walk((name,))
        return isinstance(section, Mapping) and section.get("success") is True

    def created_at_ms(self) -> float | None:
        """Token creation time: helius metadata, else the DEX pair creation time."""
        return self.first_number(
            ("helius", "metadata", "createdAt"),
            ("dexscreener", "pairCreatedAt"),
        )

    def age_hours(self) -> float | None:
        created = self.created_at_ms()
        if created is None:
            return None
        return max(0.0, (self.now_ms - created) / MS_PER_HOUR)

    def hours_since(self, *path: str) -> float | None:
        ts = self.number(*path)
        if ts is None:
            return None
        return max(0.0, (self.now_ms - ts) / MS_PER_HOUR)
