"""
Batch scoring over a window of recent launches.

Builds the per-pass creator statistics (frequency map and most-recent
creators) from scratch, then scores every item. One bad record never fails
the batch: it is replaced by a synthetic worst-case ScoredToken.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Any, Iterable, Mapping

from backend_pumpwatch.core.validators import (
    clean_str,
    is_valid_creator_hex,
    pump_url_for,
    to_iso_utc,
)
from backend_pumpwatch.launch_scoring.integrity import SCORE_MAX, SOURCE_LABEL, score_launch
from backend_pumpwatch.launch_scoring.models import VERDICT_UNKNOWN, OnchainMintInfo, ScoredToken
from backend_pumpwatch.pumpwatch_logging import get_logger
from backend_pumpwatch.solana_listener.models import LaunchEvent

logger = get_logger(__name__)

RECENT_CREATOR_WINDOW = 10
REASON_SCORING_FAILED = "Scoring failed (internal error). Treat as unknown."


def _creator_key(event: LaunchEvent) -> str | None:
    creator = clean_str(event.creator_hex)
    if creator is None or not is_valid_creator_hex(creator):
        return None
    return creator.lower()


def build_creator_counts(events: Iterable[LaunchEvent]) -> dict[str, int]:
    """Creator hex -> number of launches in this batch."""
    counts: Counter[str] = Counter()
    for event in events:
        key = _creator_key(event)
        if key is not None:
            counts[key] += 1
    return dict(counts)


def _sort_ts(event: LaunchEvent) -> float:
    ts = event.timestamp
    return float(ts) if isinstance(ts, (int, float)) else float("-inf")


def newest_first(events: list[LaunchEvent]) -> list[LaunchEvent]:
    """Stable sort by timestamp descending; events without a timestamp go last."""
    return sorted(events, key=_sort_ts, reverse=True)


def recent_creators(events: list[LaunchEvent], window: int = RECENT_CREATOR_WINDOW) -> set[str]:
    """Creators of the `window` most recent launches."""
    out: set[str] = set()
    for event in newest_first(events)[:window]:
        key = _creator_key(event)
        if key is not None:
            out.add(key)
    return out


def failed_token(raw: Any, error: Exception) -> ScoredToken:
    """Worst-case stand-in for an item the scorer could not process."""
    item = raw if isinstance(raw, dict) else {}
    mint = item.get("mint") if isinstance(item.get("mint"), str) else None
    return ScoredToken(
        mint=mint,
        pump_url=pump_url_for(mint),
        first_seen_utc=to_iso_utc(item.get("timestamp")),
        source=SOURCE_LABEL,
        score=SCORE_MAX,
        verdict=VERDICT_UNKNOWN,
        reasons=[REASON_SCORING_FAILED],
        signals={"error": str(error)},
    )


def score_feed(
    raw_items: list[Any],
    onchain: Mapping[str, OnchainMintInfo | None] | None = None,
    *,
    now: float | None = None,
) -> list[ScoredToken]:
    """
    Score a batch of stored launch items, preserving input order.

    Args:
        raw_items: Feed items (dicts as persisted by the launch store).
        onchain: mint -> pre-fetched account state. Missing or None entries
            are scored as "on-chain lookup unavailable".
        now: Unix seconds; defaults to the current time.
    """
    now = time.time() if now is None else now
    lookups = onchain or {}

    events: list[LaunchEvent | None] = []
    errors: dict[int, Exception] = {}
    for idx, raw in enumerate(raw_items):
        try:
            events.append(LaunchEvent.from_dict(raw))
        except Exception as e:
            events.append(None)
            errors[idx] = e

    valid = [e for e in events if e is not None]
    counts = build_creator_counts(valid)
    recent = recent_creators(valid)

    out: list[ScoredToken] = []
    for idx, (raw, event) in enumerate(zip(raw_items, events)):
        if event is None:
            logger.warning("launch_normalize_failed", index=idx, error=str(errors[idx]))
            out.append(failed_token(raw, errors[idx]))
            continue
        try:
            mint = clean_str(event.mint)
            info = lookups.get(mint) if mint else None
            out.append(score_launch(event, counts, recent, info, now=now))
        except Exception as e:
            logger.warning("launch_scoring_failed", index=idx, mint=event.mint, error=str(e))
            out.append(failed_token(raw, e))

    logger.debug(
        "launch_batch_scored",
        count=len(out),
        creators=len(counts),
        failed=sum(1 for t in out if t.reasons == [REASON_SCORING_FAILED]),
    )
    return out
