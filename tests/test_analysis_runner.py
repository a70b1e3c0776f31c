"""
Tests for the latest-wins analysis runner.
"""

from __future__ import annotations

import asyncio

import pytest

from backend_pumpwatch.core.exceptions import AnalysisSuperseded
from backend_pumpwatch.ingestion.analysis_runner import AnalysisRunner


def test_single_submission_returns_result():
    runner = AnalysisRunner()

    async def work():
        return "done"

    assert asyncio.run(runner.submit("ip1", work)) == "done"
    assert runner.in_flight("ip1") is False
    assert runner.tracked_clients() == 0


def test_newer_submission_supersedes_older():
    runner = AnalysisRunner()

    async def scenario():
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "old"

        async def fast():
            return "new"

        first = asyncio.ensure_future(runner.submit("ip1", slow))
        await asyncio.sleep(0)
        assert runner.in_flight("ip1")
        second = await runner.submit("ip1", fast)
        release.set()
        with pytest.raises(AnalysisSuperseded):
            await first
        return second

    assert asyncio.run(scenario()) == "new"
    assert runner.tracked_clients() == 0


def test_finished_stale_result_never_overwrites_newer():
    runner = AnalysisRunner()

    async def scenario():
        gate = asyncio.Event()

        async def stubborn():
            # Ignores cancellation once and still finishes
            try:
                await gate.wait()
            except asyncio.CancelledError:
                pass
            return "stale"

        async def fresh():
            return "fresh"

        first = asyncio.ensure_future(runner.submit("ip1", stubborn))
        await asyncio.sleep(0)
        assert await runner.submit("ip1", fresh) == "fresh"
        with pytest.raises(AnalysisSuperseded):
            await first

    asyncio.run(scenario())
    assert runner.tracked_clients() == 0


def test_clients_are_independent():
    runner = AnalysisRunner()

    async def scenario():
        async def value(v):
            await asyncio.sleep(0)
            return v

        return await asyncio.gather(
            runner.submit("a", lambda: value(1)),
            runner.submit("b", lambda: value(2)),
        )

    assert asyncio.run(scenario()) == [1, 2]
    assert runner.tracked_clients() == 0


def test_many_clients_leave_no_state_behind():
    runner = AnalysisRunner()

    async def scenario():
        async def value(v):
            await asyncio.sleep(0)
            return v

        results = await asyncio.gather(*(runner.submit(f"ip{i}", lambda i=i: value(i)) for i in range(1_000)))
        assert runner.tracked_clients() == 0
        return results

    assert asyncio.run(scenario()) == list(range(1_000))


def test_failed_analysis_is_untracked():
    runner = AnalysisRunner()

    async def broken():
        raise RuntimeError("provider down")

    with pytest.raises(RuntimeError):
        asyncio.run(runner.submit("ip1", broken))
    assert runner.tracked_clients() == 0
