"""
Tests for tolerant signal bundle access.
"""

from __future__ import annotations

from backend_pumpwatch.analysis_engine import SignalBundle
from conftest import NOW


def test_number_accepts_numeric_strings_and_rejects_junk():
    b = SignalBundle({"a": {"n": "12.5", "flag": True, "nan": float("nan"), "txt": "abc", "none": None}}, now=NOW)
    assert b.number("a", "n") == 12.5
    assert b.number("a", "flag") is None
    assert b.number("a", "nan") is None
    assert b.number("a", "txt") is None
    assert b.number("a", "none") is None
    assert b.number("a", "missing", "deeper") is None


def test_has_distinguishes_null_from_absent():
    b = SignalBundle({"m": {"mintAuthority": None}})
    assert b.has("m", "mintAuthority") is True
    assert b.has("m", "freezeAuthority") is False
    assert b.get("m", "mintAuthority", default="x") == "x"


def test_wrong_types_along_the_path_are_absent():
    b = SignalBundle({"helius": "oops", "dexscreener": [1, 2]})
    assert b.section("helius", "tokenInfo") == {}
    assert b.number("dexscreener", "liquidityUsd") is None
    assert SignalBundle.wrap("not a mapping").raw == {}


def test_provider_present_vs_succeeded():
    b = SignalBundle({"helius": {"metadata": {}}, "dexscreener": {"success": False, "error": "x"}})
    assert b.provider_present("helius") is True
    assert b.provider_succeeded("helius") is False
    assert b.provider_present("dexscreener") is False
    assert b.provider_present("absent") is False


def test_age_prefers_helius_created_at_then_pair_created_at():
    now_ms = NOW * 1000
    b = SignalBundle({"dexscreener": {"pairCreatedAt": now_ms - 2 * 3_600_000}}, now=NOW)
    assert b.age_hours() == 2.0
    b = SignalBundle(
        {"helius": {"metadata": {"createdAt": now_ms - 3_600_000}}, "dexscreener": {"pairCreatedAt": 0}},
        now=NOW,
    )
    assert b.age_hours() == 1.0
    assert SignalBundle({}, now=NOW).age_hours() is None


def test_future_timestamps_clamp_to_zero_hours():
    b = SignalBundle({"x": {"t": NOW * 1000 + 10_000}}, now=NOW)
    assert b.hours_since("x", "t") == 0.0
