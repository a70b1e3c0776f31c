"""
Analyze one token and print the ENTER/WAIT/IGNORE/EXIT result.

Reads a signal bundle JSON ({helius: {...}, dexscreener: {...}}) from a file,
or fetches it live from Helius / DexScreener / RugCheck with --fetch.

Usage:
  py -m backend_pumpwatch.tools.analyze_token MINT --bundle bundle.json
  py -m backend_pumpwatch.tools.analyze_token MINT --fetch
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from backend_pumpwatch.analysis_engine import analyze_token
from backend_pumpwatch.config.settings import get_settings
from backend_pumpwatch.core.validators import is_valid_base58_mint
from backend_pumpwatch.ingestion.signal_fetcher import SignalFetcher
from backend_pumpwatch.pumpwatch_logging import log_to_stderr


def _log(msg: str) -> None:
    print(f"[analyze_token] {msg}", file=sys.stderr)


def load_bundle(path: str) -> dict[str, Any]:
    if path == "-":
        data = json.load(sys.stdin)
    else:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("signal bundle must be a JSON object")
    return data


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Analyze a token and print the verdict JSON.")
    ap.add_argument("mint", help="Token mint address (base58)")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--bundle", default=None, help="Signal bundle JSON file, or - for stdin")
    src.add_argument("--fetch", action="store_true", help="Fetch signals live (needs HELIUS_API_KEY)")
    ap.add_argument("--now", type=float, default=None, help="Unix seconds to analyze against (default: now)")
    ap.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    args = ap.parse_args(argv)
    log_to_stderr()

    mint = args.mint.strip()
    if not is_valid_base58_mint(mint):
        _log(f"Invalid mint address: {mint!r}")
        return 2

    if args.fetch:
        settings = get_settings()
        if not settings.helius_api_key or not settings.solana_rpc_url:
            _log("--fetch needs HELIUS_API_KEY")
            return 2
        fetcher = SignalFetcher(settings.solana_rpc_url, timeout=settings.provider_timeout_sec)
        bundle = asyncio.run(fetcher.fetch(mint))
    else:
        try:
            bundle = load_bundle(args.bundle)
        except (OSError, ValueError) as e:
            _log(f"Cannot read signal bundle: {e}")
            return 2

    result = analyze_token(mint, bundle, now=args.now)
    print(json.dumps(result.to_dict(), indent=args.indent or None))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
