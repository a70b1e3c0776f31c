"""
Tests for the structured logging setup.
"""

from __future__ import annotations

import json

import backend_pumpwatch.pumpwatch_logging as pumpwatch_logging
from backend_pumpwatch.pumpwatch_logging import LOG_STREAM, get_logger, log_to_stderr

logger = get_logger("tests.logging")


def test_logger_bound_at_import_follows_stream_switch(monkeypatch, capsys):
    monkeypatch.setattr(LOG_STREAM, "name", "stdout")
    logger.info("feed_served", count=3)
    first = capsys.readouterr()
    assert first.err == ""
    line = json.loads(first.out)
    assert line["event_type"] == "feed_served"
    assert line["count"] == 3
    assert line["logger"] == "tests.logging"
    assert line["level"] == "info"
    assert "timestamp" in line

    log_to_stderr()
    logger.info("feed_served", count=4)
    second = capsys.readouterr()
    assert second.out == ""
    assert json.loads(second.err)["count"] == 4


def test_public_surface():
    assert sorted(pumpwatch_logging.__all__) == ["LOG_STREAM", "get_logger", "log_to_stderr"]
