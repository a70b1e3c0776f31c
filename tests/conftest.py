"""
Pytest fixtures for Pumpwatch tests. Uses a temporary SQLite launch store.
"""

from __future__ import annotations

import struct

import base58
import pytest

NOW = 1_760_000_000.0  # fixed wall clock for scoring tests (2025-10-09)

VALID_MINT = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_MINT_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
CREATOR_HEX = "aa" * 32


def borsh_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def create_v2_data(
    name: str = "Test Coin",
    symbol: str = "TEST",
    uri: str = "https://ipfs.io/ipfs/Qm123",
    creator: bytes = b"\xaa" * 32,
    mayhem: bool | None = False,
) -> bytes:
    """Hand-built create-v2 instruction data."""
    from backend_pumpwatch.solana_listener.parser import CREATE_V2_DISCRIMINATOR

    data = CREATE_V2_DISCRIMINATOR + borsh_string(name) + borsh_string(symbol) + borsh_string(uri) + creator
    if mayhem is not None:
        data += b"\x01" if mayhem else b"\x00"
    return data


def webhook_tx(
    mint: str | None = VALID_MINT,
    signature: str = "sig1",
    timestamp: int = int(NOW) - 60,
    **data_kwargs,
) -> dict:
    """Helius-style enhanced transaction carrying one pump.fun create-v2 instruction."""
    from backend_pumpwatch.solana_listener.parser import PUMP_PROGRAM_ID

    tx = {
        "signature": signature,
        "slot": 321_000_000,
        "timestamp": timestamp,
        "transactionError": None,
        "instructions": [
            {"programId": "ComputeBudget111111111111111111111111111111", "data": "3Dc8EpW7Kr3R"},
            {"programId": PUMP_PROGRAM_ID, "data": base58.b58encode(create_v2_data(**data_kwargs)).decode()},
        ],
        "tokenTransfers": [],
    }
    if mint is not None:
        tx["tokenTransfers"].append({"mint": mint, "tokenAmount": 1_000_000})
    return tx


def launch_item(**overrides) -> dict:
    """Stored feed item (LaunchEvent.to_dict form) for a well-formed launch."""
    item = {
        "kind": "pump_create_v2",
        "mint": VALID_MINT,
        "name": "Test Coin",
        "symbol": "TEST",
        "uri": "https://ipfs.io/ipfs/Qm123",
        "creatorHex": CREATOR_HEX,
        "isMayhem": False,
        "signature": "sig1",
        "slot": 321_000_000,
        "timestamp": int(NOW) - 60,
    }
    item.update(overrides)
    return item


@pytest.fixture
def launch_store(tmp_path, monkeypatch):
    """
    Point the launch store at a temporary SQLite DB and init tables.
    Resets engine cache so each test gets a fresh DB. Unset DB URLs so we use SQLite.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("PUMPWATCH_DB_URL", raising=False)
    monkeypatch.setenv("PUMPWATCH_DB_PATH", str(tmp_path / "pumpwatch.db"))

    import backend_pumpwatch.database.launch_store as store

    store.reset_engine_for_test()
    store.init_db()
    yield store
    store.reset_engine_for_test()


@pytest.fixture
def settings():
    from backend_pumpwatch.config.settings import Settings

    return Settings(webhook_secret="s3cret", rate_limit_max=3, rate_limit_window_sec=10.0)


@pytest.fixture
def app_factory(launch_store, settings):
    """Build an app with no network collaborators; keyword overrides go to create_app."""
    from backend_pumpwatch.api_server.server import create_app

    def build(**kwargs):
        kwargs.setdefault("mint_lookup", None)
        kwargs.setdefault("signal_fetcher", None)
        kwargs.setdefault("clock", lambda: NOW)
        return create_app(kwargs.pop("settings", settings), **kwargs)

    return build


@pytest.fixture
def client(app_factory):
    """FastAPI TestClient. Depends on launch_store so temp DB is set before app runs."""
    from fastapi.testclient import TestClient

    with TestClient(app_factory()) as c:
        yield c


def healthy_bundle(age_hours: float = 48.0, **sections) -> dict:
    """Signal bundle for an established, liquid, organically traded token."""
    now_ms = NOW * 1000
    bundle = {
        "helius": {
            "success": True,
            "metadata": {
                "name": "Test Coin",
                "symbol": "TEST",
                "createdAt": now_ms - age_hours * 3_600_000,
                "isPumpFunOrigin": False,
                "mintAuthority": None,
                "freezeAuthority": None,
            },
            "tokenInfo": {"holders": 800, "liquidity": 80_000, "volume24h": 150_000},
            "holderDistribution": {"top1Pct": 5, "top10Pct": 25, "holdersDelta24hPct": 15, "flipperPct": 10},
            "tradingPatterns": {
                "txCount1h": 40,
                "txCount24h": 600,
                "uniqueTraders24h": 300,
                "buyCount24h": 300,
                "sellCount24h": 250,
                "circularTransferCount": 0,
                "identicalAmountPct": 5,
                "uniformSizePct": 5,
                "botTxPct": 5,
                "recycledWalletPct": 5,
                "devSoldPct": 0,
                "lastTradeAt": now_ms - 60_000,
            },
        },
        "dexscreener": {
            "success": True,
            "priceChange": {"h1": 2, "h6": 5, "h24": 20},
            "volume": {"h24": 150_000},
            "liquidityUsd": 80_000,
            "lpLock": {
                "status": "locked",
                "verified": True,
                "lockedPct": 100,
                "checkedAt": now_ms - 3_600_000,
                "source": "rugcheck",
            },
        },
    }
    for dotted, value in sections.items():
        # helius__tradingPatterns__botTxPct=70 style overrides
        *parents, leaf = dotted.split("__")
        node = bundle
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = value
    return bundle
