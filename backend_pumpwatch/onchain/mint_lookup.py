"""
On-chain mint authority lookups for the scored feed.

Fetches SPL mint accounts over Solana RPC and decodes mint / freeze
authority from the raw account data. Lookups are rate-bounded (at most
`cap` mints per pass, newest first as supplied by the caller) and cached by
mint with a short TTL so overlapping feed windows reuse prior results.
RPC failures yield None ("unavailable") and are not cached.
"""

from __future__ import annotations

import asyncio
import struct
import time
from typing import Any, Callable, Generic, Hashable, Iterable, TypeVar

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from backend_pumpwatch.config.env import mask_rpc_url
from backend_pumpwatch.core.validators import is_valid_base58_mint
from backend_pumpwatch.launch_scoring.models import OnchainMintInfo
from backend_pumpwatch.pumpwatch_logging import get_logger

logger = get_logger(__name__)

# SPL Token mint layout: COption<Pubkey> mint_authority, u64 supply, u8 decimals,
# bool is_initialized, COption<Pubkey> freeze_authority
MINT_ACCOUNT_LEN = 82
_MINT_AUTH_OPTION_OFFSET = 0
_MINT_AUTH_OFFSET = 4
_SUPPLY_OFFSET = 36
_DECIMALS_OFFSET = 44
_INITIALIZED_OFFSET = 45
_FREEZE_AUTH_OPTION_OFFSET = 46
_FREEZE_AUTH_OFFSET = 50
PUBKEY_LEN = 32

DEFAULT_LOOKUP_CAP = 30
DEFAULT_CACHE_TTL_SEC = 120.0
MAX_CONCURRENT_RPC = 8

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


def _coption_pubkey(data: bytes, option_offset: int, key_offset: int) -> str | None:
    tag = struct.unpack_from("<I", data, option_offset)[0]
    if tag == 0:
        return None
    return str(Pubkey.from_bytes(data[key_offset : key_offset + PUBKEY_LEN]))


def parse_mint_account(data: bytes) -> OnchainMintInfo:
    """
    Decode SPL mint account data (Token and Token-2022 base layout).

    Raises ValueError when data is shorter than the 82-byte base layout.
    """
    if len(data) < MINT_ACCOUNT_LEN:
        raise ValueError(f"mint account data too short: {len(data)} bytes")
    return OnchainMintInfo(
        exists=True,
        mint_authority=_coption_pubkey(data, _MINT_AUTH_OPTION_OFFSET, _MINT_AUTH_OFFSET),
        supply=struct.unpack_from("<Q", data, _SUPPLY_OFFSET)[0],
        decimals=data[_DECIMALS_OFFSET],
        is_initialized=data[_INITIALIZED_OFFSET] == 1,
        freeze_authority=_coption_pubkey(data, _FREEZE_AUTH_OPTION_OFFSET, _FREEZE_AUTH_OFFSET),
    )


class TTLCache(Generic[K, V]):
    """
    In-process key -> value cache with per-entry expiry.

    Clock is injectable for tests. No persistence across restarts.
    """

    def __init__(self, ttl_sec: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_sec = float(ttl_sec)
        self._clock = clock
        self._entries: dict[K, tuple[V, float]] = {}

    def get(self, key: K, default: Any = _MISSING) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not _MISSING  # type: ignore[arg-type]

    def set(self, key: K, value: V) -> None:
        now = self._clock()
        self._evict_expired(now)
        self._entries[key] = (value, now + self.ttl_sec)

    def _evict_expired(self, now: float) -> None:
        for key in [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class MintLookup:
    """
    Rate-bounded, cached mint account lookups.

    Args:
        rpc_url: Solana RPC endpoint.
        cache: Shared TTL cache (mint -> OnchainMintInfo); created if None.
        cap: Max mints resolved per lookup_many call.
        timeout: Per-request RPC timeout in seconds.
        client_factory: Returns an async-context-manager RPC client exposing
            get_account_info(Pubkey); defaults to solana AsyncClient.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        cache: TTLCache[str, OnchainMintInfo] | None = None,
        cap: int = DEFAULT_LOOKUP_CAP,
        timeout: float = 10.0,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.cache: TTLCache[str, OnchainMintInfo] = cache or TTLCache(DEFAULT_CACHE_TTL_SEC)
        self.cap = max(0, int(cap))
        self.timeout = timeout
        self._client_factory = client_factory or (lambda: AsyncClient(self.rpc_url, timeout=self.timeout))

    async def _fetch(self, client: Any, mint: str, sem: asyncio.Semaphore) -> OnchainMintInfo | None:
        async with sem:
            try:
                resp = await client.get_account_info(Pubkey.from_string(mint))
            except Exception as e:
                logger.warning("mint_lookup_rpc_failed", mint=mint, error=str(e))
                return None
        account = getattr(resp, "value", None)
        if account is None:
            return OnchainMintInfo(exists=False)
        try:
            return parse_mint_account(bytes(account.data))
        except (ValueError, TypeError, struct.error) as e:
            logger.warning("mint_lookup_decode_failed", mint=mint, error=str(e))
            return None

    async def lookup_many(self, mints: Iterable[str]) -> dict[str, OnchainMintInfo | None]:
        """
        Resolve up to `cap` distinct valid mints (in the given order).

        Returns mint -> OnchainMintInfo, or None when the lookup failed.
        Mints past the cap or with an invalid format are absent from the result.
        """
        selected: list[str] = []
        for mint in mints:
            if len(selected) >= self.cap:
                break
            if mint in selected or not is_valid_base58_mint(mint):
                continue
            selected.append(mint)

        results: dict[str, OnchainMintInfo | None] = {}
        pending: list[str] = []
        for mint in selected:
            cached = self.cache.get(mint, _MISSING)
            if cached is _MISSING:
                pending.append(mint)
            else:
                results[mint] = cached

        if pending:
            sem = asyncio.Semaphore(MAX_CONCURRENT_RPC)
            async with self._client_factory() as client:
                fetched = await asyncio.gather(*(self._fetch(client, m, sem) for m in pending))
            for mint, info in zip(pending, fetched):
                results[mint] = info
                if info is not None:
                    self.cache.set(mint, info)

        logger.debug(
            "mint_lookup_pass",
            rpc=mask_rpc_url(self.rpc_url),
            requested=len(selected),
            cache_hits=len(selected) - len(pending),
            fetched=len(pending),
        )
        return results
