"""
FastAPI server — launch webhook, launch feeds and token analysis.

create_app() builds the app and its per-app collaborators (feed cache, rate
limiter, on-chain lookup, signal fetcher, analysis runner); tests pass their
own. Config via env (see config/settings.py).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from backend_pumpwatch import __version__
from backend_pumpwatch.api_server.middleware import SlidingWindowRateLimiter, TTLResponseCache
from backend_pumpwatch.api_server.routes import router
from backend_pumpwatch.api_server.services import Services
from backend_pumpwatch.config.env import mask_rpc_url
from backend_pumpwatch.config.settings import Settings, get_settings
from backend_pumpwatch.core.exceptions import StoreUnavailableError
from backend_pumpwatch.database import init_db
from backend_pumpwatch.ingestion.analysis_runner import AnalysisRunner
from backend_pumpwatch.ingestion.signal_fetcher import SignalFetcher
from backend_pumpwatch.onchain.mint_lookup import MintLookup, TTLCache
from backend_pumpwatch.pumpwatch_logging import get_logger

logger = get_logger(__name__)

# Marks "build from settings"; passing None explicitly disables the collaborator.
_FROM_SETTINGS: Any = object()


def _default_mint_lookup(settings: Settings) -> MintLookup | None:
    if not settings.solana_rpc_url:
        return None
    return MintLookup(
        settings.solana_rpc_url,
        cache=TTLCache(settings.onchain_cache_ttl_sec),
        cap=settings.onchain_lookup_cap,
        timeout=settings.provider_timeout_sec,
    )


def _default_signal_fetcher(settings: Settings) -> SignalFetcher | None:
    # getAsset (DAS) is only served by Helius endpoints
    if not settings.helius_api_key or not settings.solana_rpc_url:
        return None
    return SignalFetcher(settings.solana_rpc_url, timeout=settings.provider_timeout_sec)


def create_app(
    settings: Settings | None = None,
    *,
    mint_lookup: MintLookup | None = _FROM_SETTINGS,
    signal_fetcher: SignalFetcher | None = _FROM_SETTINGS,
    runner: AnalysisRunner | None = None,
    clock: Callable[[], float] = time.time,
    init_store: bool = True,
) -> FastAPI:
    """Build the ASGI app. Collaborators default to ones derived from settings."""
    settings = settings or get_settings()
    services = Services(
        settings=settings,
        feed_cache=TTLResponseCache(settings.scored_feed_cache_ttl_sec),
        rate_limiter=SlidingWindowRateLimiter(settings.rate_limit_max, settings.rate_limit_window_sec),
        mint_lookup=_default_mint_lookup(settings) if mint_lookup is _FROM_SETTINGS else mint_lookup,
        signal_fetcher=_default_signal_fetcher(settings) if signal_fetcher is _FROM_SETTINGS else signal_fetcher,
        runner=runner or AnalysisRunner(),
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create store tables on startup; API keeps serving analysis if the store is down."""
        if init_store:
            try:
                init_db()
            except StoreUnavailableError as e:
                logger.warning("launch_store_init_skip", error=str(e))
        logger.info(
            "api_started",
            rpc=mask_rpc_url(settings.solana_rpc_url) if settings.solana_rpc_url else None,
            onchain_lookup=services.mint_lookup is not None,
            signal_fetcher=services.signal_fetcher is not None,
            webhook_secret_set=bool(settings.webhook_secret),
        )
        yield
        logger.info("api_stopped")

    app = FastAPI(
        title="Pumpwatch API",
        description="Launch-integrity scoring for new pump.fun tokens and ENTER/WAIT/IGNORE/EXIT token analysis.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services
    app.include_router(router, prefix="/api", tags=["Pumpwatch"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    return app
