"""
HTTP helpers — client identity, soft rate limiting, response caching.

Both stores are process-local and lost on restart; they are created per app
by create_app() and can be replaced in tests. Clocks are injectable.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Any, Callable

from starlette.requests import Request

from backend_pumpwatch.onchain.mint_lookup import TTLCache

UNKNOWN_CLIENT = "unknown"
RETRY_AFTER_SEC = 5


def client_ip(request: Request) -> str:
    """Client identity: edge header, first X-Forwarded-For hop, else socket peer."""
    edge = (request.headers.get("x-nf-client-connection-ip") or "").strip()
    if edge:
        return edge
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


class SlidingWindowRateLimiter:
    """
    Per-key sliding-window request log.

    allow() records the hit and returns False once a key has made `max_requests`
    requests within the last `window_sec` seconds. Keys with no hit inside the
    window are dropped, at most once per window.
    """

    def __init__(self, max_requests: int, window_sec: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_requests = max(1, int(max_requests))
        self.window_sec = float(window_sec)
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def _prune(self, hits: deque[float], now: float) -> deque[float]:
        while hits and now - hits[0] >= self.window_sec:
            hits.popleft()
        return hits

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_sec:
            return
        self._last_sweep = now
        for key in [k for k, hits in self._hits.items() if not self._prune(hits, now)]:
            del self._hits[key]

    def allow(self, key: str) -> bool:
        now = self._clock()
        self._sweep(now)
        hits = self._prune(self._hits.get(key) or deque(), now)
        if len(hits) >= self.max_requests:
            return False
        hits.append(now)
        self._hits[key] = hits
        return True

    def remaining(self, key: str) -> int:
        hits = self._hits.get(key)
        used = len(self._prune(hits, self._clock())) if hits is not None else 0
        return max(0, self.max_requests - used)

    def tracked_keys(self) -> int:
        return len(self._hits)

    def reset(self) -> None:
        self._hits.clear()


class TTLResponseCache(TTLCache[str, Any]):
    """Whole-response cache keyed by route; entries expire after ttl_sec."""
