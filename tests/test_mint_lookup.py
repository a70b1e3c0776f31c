"""
Tests for SPL mint decoding and the cached, capped mint lookup pass.

RPC is faked with a small async-context client; no network.
"""

from __future__ import annotations

import asyncio
import struct
from types import SimpleNamespace

import pytest
from solders.pubkey import Pubkey

from backend_pumpwatch.onchain.mint_lookup import MINT_ACCOUNT_LEN, MintLookup, TTLCache, parse_mint_account
from conftest import VALID_MINT, VALID_MINT_2

AUTHORITY = "TSLvdd1pWpHVjahSpsvCXUbgwsL3JAcvokwaKt1eokM"


def mint_account_bytes(mint_authority: str | None = None, freeze_authority: str | None = None) -> bytes:
    def coption(key: str | None) -> bytes:
        if key is None:
            return struct.pack("<I", 0) + bytes(32)
        return struct.pack("<I", 1) + bytes(Pubkey.from_string(key))

    return (
        coption(mint_authority)
        + struct.pack("<Q", 1_000_000_000_000_000)
        + bytes([6, 1])
        + coption(freeze_authority)
    )


class FakeClient:
    def __init__(self, accounts: dict[str, bytes | None], fail: set[str] | None = None):
        self.accounts = accounts
        self.fail = fail or set()
        self.calls: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def get_account_info(self, pubkey):
        mint = str(pubkey)
        self.calls.append(mint)
        if mint in self.fail:
            raise ConnectionError("rpc down")
        data = self.accounts.get(mint)
        value = None if data is None else SimpleNamespace(data=data)
        return SimpleNamespace(value=value)


def make_lookup(client: FakeClient, **kwargs) -> MintLookup:
    return MintLookup("https://rpc.example/?api-key=k", client_factory=lambda: client, **kwargs)


def test_parse_mint_account_layout():
    data = mint_account_bytes(mint_authority=AUTHORITY)
    assert len(data) == MINT_ACCOUNT_LEN
    info = parse_mint_account(data)
    assert info.exists is True
    assert info.mint_authority == AUTHORITY
    assert info.freeze_authority is None
    assert info.decimals == 6
    assert info.is_initialized is True
    assert info.supply == 1_000_000_000_000_000


def test_parse_mint_account_accepts_token_2022_extensions():
    info = parse_mint_account(mint_account_bytes(freeze_authority=AUTHORITY) + bytes(100))
    assert info.freeze_authority == AUTHORITY


def test_parse_mint_account_rejects_short_data():
    with pytest.raises(ValueError, match="too short"):
        parse_mint_account(bytes(40))


def test_ttl_cache_expiry():
    now = [0.0]
    cache: TTLCache[str, int] = TTLCache(10, clock=lambda: now[0])
    cache.set("a", 1)
    assert cache.get("a") == 1
    assert "a" in cache
    now[0] = 10.0
    assert cache.get("a", None) is None
    assert "a" not in cache
    assert len(cache) == 0


def test_ttl_cache_set_evicts_expired_entries():
    now = [0.0]
    cache: TTLCache[str, int] = TTLCache(10, clock=lambda: now[0])
    for i in range(1_000):
        cache.set(f"mint-{i}", i)
    now[0] = 10.0
    cache.set("fresh", 1)
    assert len(cache) == 1
    assert cache.get("fresh") == 1


def test_lookup_many_decodes_and_reports_missing_accounts():
    client = FakeClient({VALID_MINT: mint_account_bytes(), VALID_MINT_2: None})
    result = asyncio.run(make_lookup(client).lookup_many([VALID_MINT, VALID_MINT_2]))
    assert result[VALID_MINT].exists is True
    assert result[VALID_MINT].mint_authority is None
    assert result[VALID_MINT_2].exists is False


def test_lookup_many_failure_is_none_and_not_cached():
    client = FakeClient({VALID_MINT: mint_account_bytes()}, fail={VALID_MINT})
    lookup = make_lookup(client)
    assert asyncio.run(lookup.lookup_many([VALID_MINT])) == {VALID_MINT: None}
    assert VALID_MINT not in lookup.cache
    client.fail.clear()
    assert asyncio.run(lookup.lookup_many([VALID_MINT]))[VALID_MINT].exists is True
    assert client.calls == [VALID_MINT, VALID_MINT]


def test_lookup_many_serves_cache_hits_without_rpc():
    client = FakeClient({VALID_MINT: mint_account_bytes()})
    lookup = make_lookup(client)
    asyncio.run(lookup.lookup_many([VALID_MINT]))
    asyncio.run(lookup.lookup_many([VALID_MINT]))
    assert client.calls == [VALID_MINT]


def test_lookup_many_respects_cap_and_skips_invalid():
    client = FakeClient({VALID_MINT: mint_account_bytes(), VALID_MINT_2: mint_account_bytes()})
    result = asyncio.run(make_lookup(client, cap=1).lookup_many(["bogus", VALID_MINT, VALID_MINT, VALID_MINT_2]))
    assert list(result) == [VALID_MINT]
    assert client.calls == [VALID_MINT]
