"""
Latest-wins analysis runner.

One in-flight analysis per client: a new submission cancels the previous
task for that client, and a superseded computation can never return its
result over a newer one. No locking is needed; everything runs on one
event loop. A submission is current while its task is the one registered
for the client, and the entry is dropped when that task finishes, so idle
clients leave nothing behind.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from backend_pumpwatch.core.exceptions import AnalysisSuperseded
from backend_pumpwatch.pumpwatch_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AnalysisRunner:
    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[Any]] = {}

    def in_flight(self, client_id: str) -> bool:
        task = self._inflight.get(client_id)
        return task is not None and not task.done()

    def tracked_clients(self) -> int:
        return len(self._inflight)

    async def submit(self, client_id: str, coro_factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run coro_factory() as the client's current analysis.

        Raises AnalysisSuperseded if a newer submission for the same client
        arrives before this one finishes.
        """
        previous = self._inflight.get(client_id)
        if previous is not None and not previous.done():
            previous.cancel()
            logger.info("analysis_superseded", client_id=client_id)

        task: asyncio.Task[Any] = asyncio.ensure_future(coro_factory())
        self._inflight[client_id] = task

        try:
            result = await task
        except asyncio.CancelledError:
            if self._inflight.get(client_id) is not task:
                raise AnalysisSuperseded(f"analysis for {client_id} replaced by a newer request") from None
            raise
        else:
            if self._inflight.get(client_id) is not task:
                raise AnalysisSuperseded(f"analysis for {client_id} replaced by a newer request")
            return result
        finally:
            if self._inflight.get(client_id) is task:
                del self._inflight[client_id]
