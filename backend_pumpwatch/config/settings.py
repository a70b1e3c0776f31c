"""
Application settings.

Typed, frozen view over the environment for the tunables shared by the API
server, the scored-feed service and the signal fetcher. Secrets and URLs are
resolved through config.env. The launch store reads its database URL from
config.env.get_database_url() when its engine is first built.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from backend_pumpwatch.config.env import (
    get_helius_api_key,
    get_solana_rpc_url,
    get_webhook_secret,
    load_pumpwatch_env,
)


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Resolved configuration; build with get_settings() or directly in tests."""

    webhook_secret: str = ""
    solana_rpc_url: str = ""
    helius_api_key: str = ""
    scored_feed_cache_ttl_sec: float = 60.0
    rate_limit_window_sec: float = 10.0
    rate_limit_max: int = 25
    onchain_lookup_cap: int = 30
    onchain_cache_ttl_sec: float = 120.0
    provider_timeout_sec: float = 10.0
    launch_list_cap: int = 500


def get_settings() -> Settings:
    """Return the current application settings (re-read from env on every call)."""
    load_pumpwatch_env()
    return Settings(
        webhook_secret=get_webhook_secret(),
        solana_rpc_url=get_solana_rpc_url(),
        helius_api_key=get_helius_api_key(),
        scored_feed_cache_ttl_sec=_env_float("SCORED_FEED_CACHE_TTL_SEC", 60.0),
        rate_limit_window_sec=_env_float("RATE_LIMIT_WINDOW_SEC", 10.0),
        rate_limit_max=_env_int("RATE_LIMIT_MAX", 25),
        onchain_lookup_cap=_env_int("ONCHAIN_LOOKUP_CAP", 30),
        onchain_cache_ttl_sec=_env_float("ONCHAIN_CACHE_TTL_SEC", 120.0),
        provider_timeout_sec=_env_float("PROVIDER_TIMEOUT_SEC", 10.0),
        launch_list_cap=_env_int("LAUNCH_LIST_CAP", 500),
    )
