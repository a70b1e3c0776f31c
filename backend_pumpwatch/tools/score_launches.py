"""
Score a saved launch window and print the scored feed.

Input is a JSON array of launch dicts (as served by /api/pump-feed) or an
object with an "items" / "launches" array. With --onchain the mint accounts
are looked up over SOLANA_RPC_URL first.

Usage:
  py -m backend_pumpwatch.tools.score_launches launches.json
  py -m backend_pumpwatch.tools.score_launches - --onchain < launches.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from backend_pumpwatch.config.settings import get_settings
from backend_pumpwatch.launch_scoring.feed_service import build_scored_feed
from backend_pumpwatch.onchain.mint_lookup import MintLookup
from backend_pumpwatch.pumpwatch_logging import get_logger, log_to_stderr

logger = get_logger(__name__)


def _log(msg: str) -> None:
    print(f"[score_launches] {msg}", file=sys.stderr)


def load_items(source: str) -> list[Any]:
    """Read launch items from a file path or '-' for stdin. Raises ValueError on bad input."""
    if source == "-":
        data = json.load(sys.stdin)
    else:
        with open(source, encoding="utf-8") as f:
            data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items", data.get("launches"))
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of launches or {items: [...]}")
    return data


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Score launches for integrity and print the scored feed JSON.")
    ap.add_argument("source", help="JSON file with launch items, or - for stdin")
    ap.add_argument("--onchain", action="store_true", help="Look up mint/freeze authority over SOLANA_RPC_URL")
    ap.add_argument("--now", type=float, default=None, help="Unix seconds to score against (default: now)")
    ap.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    args = ap.parse_args(argv)
    log_to_stderr()

    try:
        items = load_items(args.source)
    except (OSError, ValueError) as e:
        _log(f"Cannot read launches: {e}")
        return 2

    settings = get_settings()
    lookup = None
    if args.onchain:
        if not settings.solana_rpc_url:
            _log("--onchain needs SOLANA_RPC_URL or HELIUS_API_KEY")
            return 2
        lookup = MintLookup(
            settings.solana_rpc_url,
            cap=settings.onchain_lookup_cap,
            timeout=settings.provider_timeout_sec,
        )

    feed = asyncio.run(build_scored_feed(items, lookup, settings=settings, now=args.now))
    print(json.dumps(feed, indent=args.indent or None))
    logger.info("score_launches_done", count=feed["count"], onchain=args.onchain)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
