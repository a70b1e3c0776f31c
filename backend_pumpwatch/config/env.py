"""
Environment variable loading for Pumpwatch.

- SOLANA_NETWORK: devnet | mainnet (default: mainnet; pump.fun only lives there)
- SOLANA_RPC_URL: RPC endpoint for mint account lookups
- HELIUS_API_KEY: Helius key (RPC fallback and DAS/holder signals)
- PUMP_WEBHOOK_SECRET: shared secret expected in ?secret= on the webhook
- PUMPWATCH_DB_URL / DATABASE_URL / PUMPWATCH_DB_PATH: launch store location
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is backend_pumpwatch/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_URL_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"

DEFAULT_SQLITE_PATH = "pumpwatch.db"


def load_pumpwatch_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def get_solana_network() -> str:
    """Return SOLANA_NETWORK from env: devnet | mainnet. Default: mainnet."""
    load_pumpwatch_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "mainnet").strip().lower()
    if raw == "devnet":
        return "devnet"
    return "mainnet"


def get_helius_api_key() -> str:
    load_pumpwatch_env()
    return (os.getenv("HELIUS_API_KEY") or "").strip()


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY (network-specific) > public default.
    """
    load_pumpwatch_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    key = get_helius_api_key()
    network = get_solana_network()
    if key:
        if network == "devnet":
            return HELIUS_DEVNET_URL_TEMPLATE.format(key=key)
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return DEVNET_RPC_URL if network == "devnet" else MAINNET_RPC_URL


def get_webhook_secret() -> str:
    """Return PUMP_WEBHOOK_SECRET; empty string when unset (webhook then refuses all calls)."""
    load_pumpwatch_env()
    return (os.getenv("PUMP_WEBHOOK_SECRET") or "").strip()


def get_database_url() -> str:
    """Return PUMPWATCH_DB_URL or DATABASE_URL if set; else SQLite from PUMPWATCH_DB_PATH or default."""
    load_pumpwatch_env()
    url = (os.getenv("PUMPWATCH_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("PUMPWATCH_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def mask_rpc_url(url: str) -> str:
    """Hide the API key in a Helius-style RPC URL for logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
