"""
Per-token signal fetch for the analyzer: Helius (RPC + DAS), DexScreener and
RugCheck queried concurrently, folded into one signal bundle.

Bundle shape:

    {"helius": {success, metadata, tokenInfo, holderDistribution, tradingPatterns},
     "dexscreener": {success, priceChange, volume, txns, liquidityUsd, fdv,
                     pairCreatedAt, dexId, lpLock}}

holderDistribution is {top1Pct, top10Pct, ownersResolved, excludedAccounts}.
Largest token accounts owned by a program address (bonding curve, pool
authority) or sitting at a burn address are left out of the shares. When the
owner lookup fails, only burn addresses are dropped and ownersResolved is
False.

A provider that fails is reported as {"success": False, "error": "..."}; the
fetch itself never raises for provider trouble. The analyzer only runs once
every provider has resolved or definitively failed.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

import httpx
from solders.pubkey import Pubkey

from backend_pumpwatch.core.exceptions import ProviderError
from backend_pumpwatch.core.validators import is_valid_base58_mint
from backend_pumpwatch.pumpwatch_logging import get_logger

logger = get_logger(__name__)

DEXSCREENER_TOKEN_URL = "https://api.dexscreener.com/latest/dex/tokens/{mint}"
RUGCHECK_REPORT_URL = "https://api.rugcheck.xyz/v1/tokens/{mint}/report"

PUMP_FUN_MINT_SUFFIX = "pump"
PUMP_FUN_MINT_AUTHORITY = "TSLvdd1pWpHVjahSpsvCXUbgwsL3JAcvokwaKt1eokM"

MAX_RETRIES = 2
RETRY_BACKOFF = 0.5
SIGNATURES_LIMIT = 1000
TOP_HOLDERS = 10
LP_LOCKED_PCT = 90.0
LP_UNLOCKED_PCT = 10.0

# Token accounts held here never count as holders
BURN_ADDRESSES = frozenset(
    {
        "1nc1nerator11111111111111111111111111111111",
        "11111111111111111111111111111111",
    }
)

_HOUR_SEC = 3600
_DAY_SEC = 24 * _HOUR_SEC


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    last_err: Exception | None = None
    for attempt in range(MAX_RETRIES):
        try:
            r = await client.request(method, url, **kwargs)
            if r.status_code == 429:
                last_err = ProviderError(url.split("/")[2], "rate limited (429)")
                await asyncio.sleep(RETRY_BACKOFF * (2 ** attempt))
                continue
            return r
        except httpx.HTTPError as e:
            last_err = e
            await asyncio.sleep(RETRY_BACKOFF * (2 ** attempt))
    raise last_err or RuntimeError("request failed")


async def _rpc(client: httpx.AsyncClient, rpc_url: str, method: str, params: Any) -> Any:
    body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
    r = await _request_with_retry(client, "POST", rpc_url, json=body)
    r.raise_for_status()
    data = r.json()
    if "error" in data:
        raise ProviderError("helius", f"{method}: {data['error']}")
    return data.get("result")


def _num(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _failed(provider: str, error: Exception) -> dict[str, Any]:
    logger.warning("signal_provider_failed", provider=provider, error=str(error))
    return {"success": False, "error": str(error)}


def is_program_controlled(owner: str) -> bool:
    """Off-curve owners are PDAs: bonding curves, AMM pool authorities, vaults."""
    if not is_valid_base58_mint(owner):
        return False
    return not Pubkey.from_string(owner).is_on_curve()


def token_account_owner(account: Any) -> str | None:
    """Owner wallet of a jsonParsed SPL token account, or None."""
    if not isinstance(account, dict):
        return None
    data = account.get("data")
    parsed = data.get("parsed") if isinstance(data, dict) else None
    info = parsed.get("info") if isinstance(parsed, dict) else None
    owner = info.get("owner") if isinstance(info, dict) else None
    return owner if isinstance(owner, str) and owner else None


def _is_excluded_holder(address: Any, owner: str | None) -> bool:
    if address in BURN_ADDRESSES:
        return True
    if owner is None:
        return False
    return owner in BURN_ADDRESSES or is_program_controlled(owner)


def summarize_holders(
    largest: list[dict[str, Any]],
    supply: float | None,
    owners: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Top-1 / top-10 supply share from getTokenLargestAccounts.

    With `owners` (token account -> owner wallet), burn accounts and accounts
    owned by a program address (bonding curve, AMM pool) are left out and the
    shares are marked ownersResolved. Without it only burn accounts can be
    dropped and the shares stay unverified.
    """
    amounts: list[float] = []
    excluded = 0
    for entry in largest:
        if not isinstance(entry, dict):
            continue
        amount = _num(entry.get("uiAmount"))
        if amount is None:
            continue
        address = entry.get("address")
        owner = owners.get(address) if owners is not None else None
        if _is_excluded_holder(address, owner):
            excluded += 1
            continue
        amounts.append(amount)
    if not supply or (not amounts and not excluded):
        return {}
    amounts.sort(reverse=True)
    return {
        "top1Pct": round(amounts[0] / supply * 100, 2) if amounts else 0.0,
        "top10Pct": round(sum(amounts[:TOP_HOLDERS]) / supply * 100, 2),
        "ownersResolved": owners is not None,
        "excludedAccounts": excluded,
    }


def _block_times(signatures: list[dict[str, Any]], *, successful_only: bool = False) -> list[float]:
    out: list[float] = []
    for s in signatures:
        if not isinstance(s, dict) or (successful_only and s.get("err")):
            continue
        t = _num(s.get("blockTime"))
        if t is not None:
            out.append(t)
    return out


def summarize_signatures(signatures: list[dict[str, Any]], now: float) -> dict[str, Any]:
    """Activity counts from getSignaturesForAddress entries (blockTime in seconds)."""
    times = _block_times(signatures)
    if not times:
        return {}
    ok_times = _block_times(signatures, successful_only=True)
    return {
        "txCount1h": sum(1 for t in ok_times if now - t <= _HOUR_SEC),
        "txCount24h": sum(1 for t in ok_times if now - t <= _DAY_SEC),
        "lastTradeAt": int(max(times) * 1000),
    }


def pick_main_pair(pairs: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Deepest pool by USD liquidity."""
    candidates = [p for p in pairs if isinstance(p, dict)]
    if not candidates:
        return None
    return max(candidates, key=lambda p: _num((p.get("liquidity") or {}).get("usd")) or 0.0)


def lp_lock_from_report(report: dict[str, Any], now: float) -> dict[str, Any] | None:
    """Fold RugCheck markets[].lp.lpLockedPct into one lock summary; None without markets."""
    pcts = []
    for market in report.get("markets") or []:
        lp = market.get("lp") if isinstance(market, dict) else None
        pct = _num(lp.get("lpLockedPct")) if isinstance(lp, dict) else None
        if pct is not None:
            pcts.append(pct)
    if not pcts:
        return None
    if all(p >= LP_LOCKED_PCT for p in pcts):
        status = "locked"
    elif all(p < LP_UNLOCKED_PCT for p in pcts):
        status = "unlocked"
    else:
        status = "mixed"
    return {
        "status": status,
        "verified": True,
        "lockedPct": round(sum(pcts) / len(pcts), 2),
        "checkedAt": int(now * 1000),
        "source": "rugcheck",
    }


class SignalFetcher:
    """
    Concurrent provider fetch for one mint.

    Args:
        rpc_url: Helius RPC URL (DAS getAsset needs a Helius endpoint).
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
        clock: Unix-seconds clock for activity windows and lock timestamps.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._transport = transport
        self._clock = clock

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _optional_rpc(self, client: httpx.AsyncClient, method: str, params: Any) -> Any:
        try:
            return await _rpc(client, self.rpc_url, method, params)
        except Exception as e:
            logger.debug("signal_rpc_optional_failed", method=method, error=str(e))
            return None

    async def resolve_owners(self, client: httpx.AsyncClient, accounts: list[dict[str, Any]]) -> dict[str, str] | None:
        """Token account -> owner wallet via getMultipleAccounts; None when the call fails."""
        addresses = [a["address"] for a in accounts if isinstance(a, dict) and isinstance(a.get("address"), str)]
        if not addresses:
            return None
        result = await self._optional_rpc(client, "getMultipleAccounts", [addresses, {"encoding": "jsonParsed"}])
        values = result.get("value") if isinstance(result, dict) else None
        if not isinstance(values, list):
            return None
        owners: dict[str, str] = {}
        for address, account in zip(addresses, values):
            owner = token_account_owner(account)
            if owner is not None:
                owners[address] = owner
        return owners

    async def fetch_helius(self, client: httpx.AsyncClient, mint: str) -> dict[str, Any]:
        try:
            asset = await _rpc(client, self.rpc_url, "getAsset", {"id": mint})
            if not isinstance(asset, dict):
                raise ProviderError("helius", "asset not found")
            largest, supply, signatures = await asyncio.gather(
                self._optional_rpc(client, "getTokenLargestAccounts", [mint]),
                self._optional_rpc(client, "getTokenSupply", [mint]),
                self._optional_rpc(client, "getSignaturesForAddress", [mint, {"limit": SIGNATURES_LIMIT}]),
            )
        except Exception as e:
            return _failed("helius", e)

        now = self._clock()
        content = asset.get("content") or {}
        meta = content.get("metadata") or {}
        token_info = asset.get("token_info") or {}
        price = _num((token_info.get("price_info") or {}).get("price_per_token"))
        decimals = _num(token_info.get("decimals"))
        raw_supply = _num(token_info.get("supply"))
        ui_supply = _num(((supply or {}).get("value") or {}).get("uiAmount"))
        if ui_supply is None and raw_supply is not None and decimals is not None:
            ui_supply = raw_supply / (10 ** decimals)
        authorities = {a.get("address") for a in asset.get("authorities") or [] if isinstance(a, dict)}

        out: dict[str, Any] = {
            "success": True,
            "metadata": {
                "name": meta.get("name"),
                "symbol": meta.get("symbol") or token_info.get("symbol"),
                "createdAt": None,
                "isPumpFunOrigin": mint.endswith(PUMP_FUN_MINT_SUFFIX) or PUMP_FUN_MINT_AUTHORITY in authorities,
                "mintAuthority": token_info.get("mint_authority"),
                "freezeAuthority": token_info.get("freeze_authority"),
            },
            "tokenInfo": {
                "priceUsd": price,
                "marketCap": price * ui_supply if price is not None and ui_supply else None,
                "supply": ui_supply,
            },
        }
        accounts = (largest or {}).get("value") or []
        owners = await self.resolve_owners(client, accounts)
        holders = summarize_holders(accounts, ui_supply, owners)
        if holders:
            out["holderDistribution"] = holders
        activity = summarize_signatures(signatures or [], now)
        if activity:
            out["tradingPatterns"] = activity
            oldest = _block_times(signatures)
            # Full page of signatures means the mint is older than the oldest one seen
            if oldest and len(signatures) < SIGNATURES_LIMIT:
                out["metadata"]["createdAt"] = int(min(oldest) * 1000)
        return out

    async def fetch_dexscreener(self, client: httpx.AsyncClient, mint: str) -> dict[str, Any]:
        try:
            r = await _request_with_retry(client, "GET", DEXSCREENER_TOKEN_URL.format(mint=mint))
            r.raise_for_status()
            pair = pick_main_pair(r.json().get("pairs") or [])
            if pair is None:
                raise ProviderError("dexscreener", "no trading pairs")
        except Exception as e:
            return _failed("dexscreener", e)
        return {
            "success": True,
            "dexId": pair.get("dexId"),
            "priceChange": pair.get("priceChange") or {},
            "volume": pair.get("volume") or {},
            "txns": pair.get("txns") or {},
            "liquidityUsd": _num((pair.get("liquidity") or {}).get("usd")),
            "fdv": _num(pair.get("fdv")),
            "pairCreatedAt": pair.get("pairCreatedAt"),
        }

    async def fetch_lp_lock(self, client: httpx.AsyncClient, mint: str) -> dict[str, Any] | None:
        try:
            r = await _request_with_retry(client, "GET", RUGCHECK_REPORT_URL.format(mint=mint))
            r.raise_for_status()
            return lp_lock_from_report(r.json(), self._clock())
        except Exception as e:
            logger.warning("signal_provider_failed", provider="rugcheck", error=str(e))
            return None

    async def fetch(self, mint: str) -> dict[str, Any]:
        """Fetch every provider concurrently and return the signal bundle."""
        started = time.monotonic()
        async with self._client() as client:
            helius, dex, lock = await asyncio.gather(
                self.fetch_helius(client, mint),
                self.fetch_dexscreener(client, mint),
                self.fetch_lp_lock(client, mint),
            )
        if dex.get("success") and lock is not None:
            dex["lpLock"] = lock
        logger.info(
            "signals_fetched",
            mint=mint,
            helius=helius.get("success"),
            dexscreener=dex.get("success"),
            lp_lock=lock.get("status") if lock else None,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return {"helius": helius, "dexscreener": dex}
