"""
Per-app collaborators shared by the API routes.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from backend_pumpwatch.api_server.middleware import SlidingWindowRateLimiter, TTLResponseCache
from backend_pumpwatch.config.settings import Settings
from backend_pumpwatch.ingestion.analysis_runner import AnalysisRunner
from backend_pumpwatch.ingestion.signal_fetcher import SignalFetcher
from backend_pumpwatch.onchain.mint_lookup import MintLookup


@dataclass
class Services:
    settings: Settings
    feed_cache: TTLResponseCache
    rate_limiter: SlidingWindowRateLimiter
    mint_lookup: MintLookup | None = None
    signal_fetcher: SignalFetcher | None = None
    runner: AnalysisRunner = field(default_factory=AnalysisRunner)
    clock: Callable[[], float] = time.time
    """Wall clock (unix seconds) for scoring and timestamps."""
