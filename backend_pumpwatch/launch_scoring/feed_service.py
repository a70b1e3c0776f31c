"""
Scored feed service: stored launches -> scored feed envelope.

Looks up on-chain mint state for the newest launches (bounded by the
lookup's own cap), then scores the whole window in one batch pass.
"""

from __future__ import annotations

import time
from typing import Any

from backend_pumpwatch.config.settings import Settings
from backend_pumpwatch.core.validators import clean_str, is_valid_base58_mint, to_iso_utc
from backend_pumpwatch.launch_scoring.batch import newest_first, score_feed
from backend_pumpwatch.onchain.mint_lookup import MintLookup
from backend_pumpwatch.pumpwatch_logging import get_logger
from backend_pumpwatch.solana_listener.models import LaunchEvent

logger = get_logger(__name__)

FEED_VERSION = "scored-feed@v1.1.0"
UPSTREAM_LABEL = "/api/pump-feed"


def newest_mints(store_items: list[Any]) -> list[str]:
    """Distinct valid mints of the stored items, newest launch first."""
    events: list[LaunchEvent] = []
    for item in store_items:
        try:
            events.append(LaunchEvent.from_dict(item))
        except TypeError:
            continue
    out: list[str] = []
    for event in newest_first(events):
        mint = clean_str(event.mint)
        if mint and mint not in out and is_valid_base58_mint(mint):
            out.append(mint)
    return out


def source_info(settings: Settings) -> dict[str, Any]:
    return {
        "upstream": UPSTREAM_LABEL,
        "cacheTTLsec": settings.scored_feed_cache_ttl_sec,
        "rateLimit": {
            "windowSec": settings.rate_limit_window_sec,
            "max": settings.rate_limit_max,
        },
        "onchainLookupCap": settings.onchain_lookup_cap,
    }


async def build_scored_feed(
    store_items: list[Any],
    mint_lookup: MintLookup | None,
    *,
    settings: Settings | None = None,
    now: float | None = None,
) -> dict[str, Any]:
    """
    Score the stored launch window and wrap it in the feed envelope.

    An on-chain lookup failure degrades every item to "lookup unavailable";
    it never fails the feed.
    """
    settings = settings or Settings()
    now = time.time() if now is None else now

    onchain: dict[str, Any] = {}
    if mint_lookup is not None:
        try:
            onchain = await mint_lookup.lookup_many(newest_mints(store_items))
        except Exception as e:
            logger.warning("onchain_lookup_pass_failed", error=str(e), items=len(store_items))

    tokens = score_feed(store_items, onchain, now=now)
    items = [t.to_dict() for t in tokens]
    logger.info(
        "scored_feed_built",
        count=len(items),
        onchain_resolved=sum(1 for v in onchain.values() if v is not None),
    )
    return {
        "ok": True,
        "version": FEED_VERSION,
        "updatedUTC": to_iso_utc(now),
        "sourceInfo": source_info(settings),
        "count": len(items),
        "items": items,
    }
