"""
Data models for launch listener output.

A LaunchEvent is the normalized record of one pump.fun create-v2 instruction,
built either by the webhook decoder or from a persisted feed item. Every field
is optional: the integrity scorer characterizes missing data, it does not
reject it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

LAUNCH_KIND = "pump_create_v2"


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _opt_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _opt_number(value: Any) -> float | int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


@dataclass(frozen=True)
class LaunchEvent:
    """
    One observed token launch.

    Immutable once constructed; has no lifecycle beyond a scoring call or a
    store write.
    """

    mint: str | None = None
    name: str | None = None
    symbol: str | None = None
    uri: str | None = None
    creator_hex: str | None = None
    """32-byte creator identity, hex encoded (64 chars)."""
    signature: str | None = None
    slot: int | None = None
    timestamp: float | int | None = None
    """Unix seconds."""
    is_mayhem: bool = False
    """Platform relaxed-validation ("mayhem") mode flag from the instruction."""

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "LaunchEvent":
        """Build from a stored feed item (camelCase keys, snake_case accepted)."""
        if not isinstance(item, dict):
            raise TypeError(f"launch item must be a dict, got {type(item).__name__}")
        creator = item.get("creatorHex", item.get("creator_hex"))
        mayhem = item.get("isMayhem", item.get("is_mayhem"))
        return cls(
            mint=_opt_str(item.get("mint")),
            name=_opt_str(item.get("name")),
            symbol=_opt_str(item.get("symbol")),
            uri=_opt_str(item.get("uri")),
            creator_hex=_opt_str(creator),
            signature=_opt_str(item.get("signature")),
            slot=_opt_int(item.get("slot")),
            timestamp=_opt_number(item.get("timestamp")),
            is_mayhem=mayhem is True,
        )

    def to_dict(self) -> dict[str, Any]:
        """Feed item form persisted by the launch store."""
        return {
            "kind": LAUNCH_KIND,
            "mint": self.mint,
            "name": self.name,
            "symbol": self.symbol,
            "uri": self.uri,
            "creatorHex": self.creator_hex,
            "isMayhem": self.is_mayhem,
            "signature": self.signature,
            "slot": self.slot,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class CreateV2Args:
    """Decoded create-v2 instruction arguments."""

    name: str
    symbol: str
    uri: str
    creator_hex: str
    is_mayhem: bool
