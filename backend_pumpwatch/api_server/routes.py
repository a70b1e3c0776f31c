"""
FastAPI router (mounted under /api): launch webhook, launch feeds, token analysis, flag table.

Collaborators (settings, lookups, caches, runner) live on app.state.services,
built by create_app().
"""

from __future__ import annotations

import hmac
import json
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from backend_pumpwatch.analysis_engine import FLAG_EXPLANATIONS, analyze_token
from backend_pumpwatch.api_server.middleware import RETRY_AFTER_SEC, client_ip
from backend_pumpwatch.api_server.services import Services
from backend_pumpwatch.core.exceptions import AnalysisSuperseded, StoreUnavailableError
from backend_pumpwatch.core.validators import is_valid_base58_mint, to_iso_utc
from backend_pumpwatch.database.launch_store import MAX_FEED_LIMIT, clamp_limit, recent_launches, remember_launch
from backend_pumpwatch.launch_scoring.feed_service import FEED_VERSION, build_scored_feed
from backend_pumpwatch.pumpwatch_logging import get_logger
from backend_pumpwatch.solana_listener.parser import iter_webhook_transactions, parse_launch

logger = get_logger(__name__)

router = APIRouter()

SCORED_FEED_CACHE_KEY = "scored-feed"
NO_STORE = {"cache-control": "no-store"}


def get_services(request: Request) -> Services:
    return request.app.state.services


class AnalyzeRequest(BaseModel):
    """POST /api/analyze body: token address plus a caller-supplied signal bundle."""

    address: str = Field(..., min_length=1, max_length=64, description="Token mint (base58)")
    signals: dict[str, Any] = Field(default_factory=dict, description="Provider signal bundle")


@router.post("/pump-webhook")
async def pump_webhook(request: Request, secret: str | None = None) -> dict[str, Any]:
    """
    Receive launch-platform transactions, store new launches.

    Auth: ?secret= must match PUMP_WEBHOOK_SECRET. Body: list of transactions,
    {transactions: [...]} or a single transaction.
    """
    services = get_services(request)
    expected = services.settings.webhook_secret
    if not expected:
        raise HTTPException(status_code=500, detail="missing_PUMP_WEBHOOK_SECRET")
    if not secret or not hmac.compare_digest(secret.encode(), expected.encode()):
        logger.warning("pump_webhook_unauthorized", client=client_ip(request))
        raise HTTPException(status_code=401, detail="unauthorized")

    raw = await request.body()
    if not raw.strip():
        raise HTTPException(status_code=400, detail="missing_body")
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="invalid_json") from e
    if body is None:
        raise HTTPException(status_code=400, detail="missing_body")

    txs = list(iter_webhook_transactions(body))
    launches = 0
    stored = 0
    now = services.clock()
    for tx in txs:
        event = parse_launch(tx, now=now)
        if event is None:
            continue
        launches += 1
        try:
            added = await run_in_threadpool(
                remember_launch, event, cap=services.settings.launch_list_cap, now=now
            )
        except StoreUnavailableError as e:
            raise HTTPException(status_code=502, detail="store_unavailable") from e
        if added:
            stored += 1

    logger.info("pump_webhook_processed", received=len(txs), launches=launches, stored=stored)
    return {"ok": True, "received": len(txs), "launches": launches, "stored": stored}


@router.get("/pump-feed")
async def pump_feed(request: Request, limit: str | None = None) -> JSONResponse:
    """Most recent stored launches, newest first. limit: 1..200, default 50."""
    services = get_services(request)
    try:
        launches = await run_in_threadpool(recent_launches, clamp_limit(limit))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail="feed_error") from e
    return JSONResponse(
        {"ok": True, "updatedUTC": to_iso_utc(services.clock()), "launches": launches},
        headers=NO_STORE,
    )


@router.get("/scored-feed")
async def scored_feed(request: Request) -> JSONResponse:
    """Stored launches scored for integrity; rate limited per client and cached briefly."""
    services = get_services(request)
    ip = client_ip(request)
    if not services.rate_limiter.allow(ip):
        logger.info("scored_feed_rate_limited", client=ip)
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Try again in a few seconds.",
            headers={"retry-after": str(RETRY_AFTER_SEC)},
        )

    cached = services.feed_cache.get(SCORED_FEED_CACHE_KEY, None)
    if cached is not None:
        return JSONResponse(cached, headers={**NO_STORE, "x-cache": "HIT"})

    try:
        items = await run_in_threadpool(recent_launches, MAX_FEED_LIMIT)
    except StoreUnavailableError as e:
        logger.warning("scored_feed_store_unavailable", error=str(e))
        return JSONResponse(
            {"ok": False, "error": "Failed to build scored feed", "detail": str(e), "version": FEED_VERSION},
            status_code=502,
            headers=NO_STORE,
        )
    payload = await build_scored_feed(
        items, services.mint_lookup, settings=services.settings, now=services.clock()
    )
    services.feed_cache.set(SCORED_FEED_CACHE_KEY, payload)
    return JSONResponse(payload, headers={**NO_STORE, "x-cache": "MISS"})


@router.get("/analyze/{address}")
async def analyze_address(address: str, request: Request) -> dict[str, Any]:
    """
    Fetch provider signals for a token and analyze it.

    One in-flight analysis per client; a newer request supersedes this one (409).
    """
    services = get_services(request)
    address = address.strip()
    if not is_valid_base58_mint(address):
        raise HTTPException(status_code=400, detail="invalid_address")
    fetcher = services.signal_fetcher
    if fetcher is None:
        raise HTTPException(status_code=503, detail="signal_providers_not_configured")

    async def run() -> dict[str, Any]:
        bundle = await fetcher.fetch(address)
        return analyze_token(address, bundle, now=services.clock()).to_dict()

    try:
        return await services.runner.submit(client_ip(request), run)
    except AnalysisSuperseded as e:
        raise HTTPException(status_code=409, detail="superseded") from e


@router.post("/analyze")
def analyze_bundle(body: AnalyzeRequest, request: Request) -> dict[str, Any]:
    """Analyze a caller-supplied signal bundle (no provider fetch)."""
    services = get_services(request)
    address = body.address.strip()
    if not address:
        raise HTTPException(status_code=400, detail="address must be non-empty")
    return analyze_token(address, body.signals, now=services.clock()).to_dict()


@router.get("/flags")
def flag_explanations() -> dict[str, Any]:
    """Static "what this means / how to verify" text for every risk flag key."""
    return {"ok": True, "flags": FLAG_EXPLANATIONS}
