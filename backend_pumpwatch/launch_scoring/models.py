"""
Data models for launch-integrity scoring input and output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

VERDICT_CLEAN = "clean-ish"
VERDICT_CAUTION = "caution"
VERDICT_HIGH_RISK = "high-risk"
VERDICT_UNKNOWN = "unknown"
VERDICTS = (VERDICT_CLEAN, VERDICT_CAUTION, VERDICT_HIGH_RISK, VERDICT_UNKNOWN)


@dataclass(frozen=True)
class OnchainMintInfo:
    """
    Pre-fetched SPL mint account state.

    Passed to the scorer; never fetched by it. Authorities are base58
    strings or None when revoked.
    """

    exists: bool
    mint_authority: str | None = None
    freeze_authority: str | None = None
    decimals: int | None = None
    is_initialized: bool | None = None
    supply: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OnchainMintInfo":
        """Accepts the camelCase wire form {exists, mintAuthority, freezeAuthority, ...}."""
        return cls(
            exists=bool(data.get("exists")),
            mint_authority=data.get("mintAuthority", data.get("mint_authority")) or None,
            freeze_authority=data.get("freezeAuthority", data.get("freeze_authority")) or None,
            decimals=data.get("decimals"),
            is_initialized=data.get("isInitialized", data.get("is_initialized")),
            supply=data.get("supply"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "exists": self.exists,
            "mintAuthority": self.mint_authority,
            "freezeAuthority": self.freeze_authority,
            "decimals": self.decimals,
            "isInitialized": self.is_initialized,
            "supply": self.supply,
        }


@dataclass
class ScoredToken:
    """
    Scored launch: integer risk score 0 (best) .. 100 (worst), verdict bucket,
    ordered human-readable reasons (never empty) and a transparency map.
    """

    mint: str | None
    pump_url: str | None
    first_seen_utc: str | None
    source: str
    score: int
    verdict: str
    reasons: list[str]
    name: str | None = None
    symbol: str | None = None
    uri: str | None = None
    creator_hex: str | None = None
    signature: str | None = None
    slot: int | None = None
    is_mayhem: bool = False
    signals: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flat JSON-serializable form served by the scored feed."""
        return {
            "mint": self.mint,
            "pumpUrl": self.pump_url,
            "firstSeenUTC": self.first_seen_utc,
            "source": self.source,
            "name": self.name,
            "symbol": self.symbol,
            "uri": self.uri,
            "creatorHex": self.creator_hex,
            "signature": self.signature,
            "slot": self.slot,
            "isMayhem": self.is_mayhem,
            "score": self.score,
            "verdict": self.verdict,
            "reasons": list(self.reasons),
            "signals": self.signals,
        }
