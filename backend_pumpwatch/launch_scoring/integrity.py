"""
Launch-integrity scoring — deterministic, explainable risk score per launch.

Risk starts at BASE_SCORE and each category adds (points, reason) pairs for
the red flags it finds. Two conditions are terminal (missing mint, actively
malicious URI) and short-circuit to the worst score with verdict "unknown".
The scorer is a pure function: batch statistics and on-chain state are
passed in, never looked up here.

All point values and thresholds are tunable policy, exposed as constants.
"""

from __future__ import annotations

import time
from typing import Collection, Mapping

from backend_pumpwatch.core.validators import (
    clean_str,
    has_control_chars,
    is_sane_timestamp,
    is_suspicious_uri,
    is_valid_base58_mint,
    is_valid_creator_hex,
    parse_metadata_uri,
    pump_url_for,
    scammy_symbol_pattern,
    to_iso_utc,
)
from backend_pumpwatch.launch_scoring.models import (
    VERDICT_CAUTION,
    VERDICT_CLEAN,
    VERDICT_HIGH_RISK,
    VERDICT_UNKNOWN,
    OnchainMintInfo,
    ScoredToken,
)
from backend_pumpwatch.solana_listener.models import LaunchEvent

SOURCE_LABEL = "pump-webhook"

SCORE_MIN = 0
SCORE_MAX = 100
BASE_SCORE = 0

# Integrity / completeness
INVALID_MINT_POINTS = 55
MISSING_SIGNATURE_POINTS = 10
MISSING_NAME_POINTS = 10
MISSING_SYMBOL_POINTS = 10
INVALID_URI_POINTS = 15
NON_HTTPS_URI_POINTS = 10
BAD_TIMESTAMP_POINTS = 10

# Content
NAME_MAX_LEN = 50
SYMBOL_MAX_LEN = 10
LONG_NAME_POINTS = 10
LONG_SYMBOL_POINTS = 10
CONTROL_CHARS_POINTS = 25
SCAMMY_SYMBOL_POINTS = 10

# Creator reuse: (frequency strictly above, points), highest tier first
CREATOR_TIERS = ((10, 30), (5, 20), (2, 10))
RECENT_CREATOR_POINTS = 5
MISSING_CREATOR_POINTS = 15

MAYHEM_POINTS = 10

# On-chain cross-check
ONCHAIN_UNAVAILABLE_POINTS = 8
MINT_NOT_FOUND_POINTS = 45
MINT_AUTHORITY_POINTS = 12
FREEZE_AUTHORITY_POINTS = 10

# Verdict buckets (inclusive upper bounds)
CLEAN_MAX_SCORE = 25
CAUTION_MAX_SCORE = 60

REASON_MISSING_MINT = "Missing mint address"
REASON_SUSPICIOUS_URI = "Metadata URI uses a suspicious scheme or oversized query string"
REASON_NO_SIGNALS = "No risk signals detected"

_SCAMMY_REASONS = {
    "repeated_chars": "Symbol repeats the same character 5+ times",
    "emoji_run": "Symbol contains a run of 3+ emoji",
    "confusable_script": "Symbol contains look-alike (confusable script) characters",
}


def verdict_for_score(score: int) -> str:
    """Bucket a clamped score: <=25 clean-ish, <=60 caution, else high-risk."""
    if score <= CLEAN_MAX_SCORE:
        return VERDICT_CLEAN
    if score <= CAUTION_MAX_SCORE:
        return VERDICT_CAUTION
    return VERDICT_HIGH_RISK


def creator_reuse_points(frequency: int) -> int:
    """Tiered penalty for a creator's launch count in the current batch."""
    for threshold, points in CREATOR_TIERS:
        if frequency > threshold:
            return points
    return 0


def _terminal(event: LaunchEvent, mint: str | None, reason: str, signals: dict) -> ScoredToken:
    signals["terminal"] = reason
    return ScoredToken(
        mint=mint,
        pump_url=pump_url_for(mint),
        first_seen_utc=to_iso_utc(event.timestamp),
        source=SOURCE_LABEL,
        score=SCORE_MAX,
        verdict=VERDICT_UNKNOWN,
        reasons=[reason],
        name=event.name,
        symbol=event.symbol,
        uri=event.uri,
        creator_hex=event.creator_hex,
        signature=event.signature,
        slot=event.slot,
        is_mayhem=event.is_mayhem,
        signals=signals,
    )


def score_launch(
    event: LaunchEvent,
    creator_counts: Mapping[str, int] | None = None,
    recent_creators: Collection[str] | None = None,
    onchain: OnchainMintInfo | None = None,
    *,
    now: float | None = None,
) -> ScoredToken:
    """
    Score one launch event.

    Args:
        event: Launch to score.
        creator_counts: Batch creator-frequency map (creator hex -> launches).
        recent_creators: Creators of the most recent launches in the batch.
        onchain: Pre-fetched mint account state; None means "lookup unavailable".
        now: Unix seconds used for the timestamp sanity window.

    Returns:
        ScoredToken with score in [0, 100], a known verdict and >= 1 reason.
    """
    now = time.time() if now is None else now
    counts = creator_counts or {}
    recent = recent_creators or ()

    mint = clean_str(event.mint)
    signals: dict = {"mint": mint, "points": []}

    if mint is None:
        return _terminal(event, None, REASON_MISSING_MINT, signals)
    if is_suspicious_uri(event.uri):
        return _terminal(event, mint, REASON_SUSPICIOUS_URI, signals)

    hits: list[tuple[int, str]] = []
    info: list[str] = []

    # Integrity / completeness
    mint_valid = is_valid_base58_mint(mint)
    signals["mintValid"] = mint_valid
    if not mint_valid:
        hits.append((INVALID_MINT_POINTS, "Mint format looks invalid (base58/length check failed)"))
    if clean_str(event.signature) is None:
        hits.append((MISSING_SIGNATURE_POINTS, "Missing transaction signature"))

    name = event.name if clean_str(event.name) is not None else None
    symbol = event.symbol if clean_str(event.symbol) is not None else None
    if name is None:
        hits.append((MISSING_NAME_POINTS, "Missing token name"))
    if symbol is None:
        hits.append((MISSING_SYMBOL_POINTS, "Missing token symbol"))

    uri, is_https = parse_metadata_uri(event.uri)
    signals["uriHttps"] = is_https
    if uri is None:
        hits.append((INVALID_URI_POINTS, "Missing or invalid metadata URI"))
    elif not is_https:
        hits.append((NON_HTTPS_URI_POINTS, "Metadata URI is not served over HTTPS"))

    if not is_sane_timestamp(event.timestamp, now):
        hits.append((BAD_TIMESTAMP_POINTS, "Missing or out-of-range launch timestamp"))

    # Content
    if name is not None and len(name) > NAME_MAX_LEN:
        hits.append((LONG_NAME_POINTS, f"Name is unusually long ({len(name)} chars)"))
    if symbol is not None and len(symbol) > SYMBOL_MAX_LEN:
        hits.append((LONG_SYMBOL_POINTS, f"Symbol is unusually long ({len(symbol)} chars)"))
    if has_control_chars(name) or has_control_chars(symbol):
        hits.append((CONTROL_CHARS_POINTS, "Name or symbol contains control/non-printable characters"))
    pattern = scammy_symbol_pattern(symbol)
    if pattern is not None:
        signals["symbolPattern"] = pattern
        hits.append((SCAMMY_SYMBOL_POINTS, _SCAMMY_REASONS[pattern]))

    # Creator reuse
    creator = clean_str(event.creator_hex)
    if creator is None or not is_valid_creator_hex(creator):
        hits.append((MISSING_CREATOR_POINTS, "Missing or malformed creator identity"))
        signals["creatorFrequency"] = None
    else:
        creator = creator.lower()
        frequency = int(counts.get(creator, 0))
        signals["creatorFrequency"] = frequency
        reuse = creator_reuse_points(frequency)
        if reuse:
            hits.append((reuse, f"Creator launched {frequency} tokens in the current window"))
        if creator in recent and frequency > 1:
            signals["creatorRecent"] = True
            hits.append((RECENT_CREATOR_POINTS, "Creator also appears among the most recent launches"))

    # Platform flag
    if event.is_mayhem:
        hits.append((MAYHEM_POINTS, "Launched in relaxed-validation (mayhem) mode"))

    # On-chain cross-check
    signals["onchain"] = onchain.to_dict() if onchain is not None else None
    onchain_confirmed = False
    if onchain is None:
        hits.append((ONCHAIN_UNAVAILABLE_POINTS, "On-chain checks unavailable (mint/freeze authority unknown)"))
    elif not onchain.exists:
        hits.append((MINT_NOT_FOUND_POINTS, "Mint account not found on-chain"))
    else:
        onchain_confirmed = True
        if onchain.mint_authority:
            hits.append((MINT_AUTHORITY_POINTS, "Mint authority still present (supply can be inflated)"))
        else:
            info.append("Mint authority revoked (supply fixed)")
        if onchain.freeze_authority:
            hits.append((FREEZE_AUTHORITY_POINTS, "Freeze authority present (holder accounts can be frozen)"))
        else:
            info.append("Freeze authority revoked")

    score = BASE_SCORE + sum(points for points, _ in hits)
    score = max(SCORE_MIN, min(SCORE_MAX, score))
    verdict = verdict_for_score(score)
    if not mint_valid and not onchain_confirmed:
        verdict = VERDICT_UNKNOWN

    reasons = [reason for _, reason in hits]
    if not reasons:
        reasons.append(REASON_NO_SIGNALS)
    reasons.extend(info)

    signals["points"] = [{"points": p, "reason": r} for p, r in hits]
    return ScoredToken(
        mint=mint,
        pump_url=pump_url_for(mint),
        first_seen_utc=to_iso_utc(event.timestamp),
        source=SOURCE_LABEL,
        score=score,
        verdict=verdict,
        reasons=reasons,
        name=event.name,
        symbol=event.symbol,
        uri=event.uri,
        creator_hex=event.creator_hex,
        signature=event.signature,
        slot=event.slot,
        is_mayhem=event.is_mayhem,
        signals=signals,
    )
