"""
Tests for launch-integrity scoring: range and reason postconditions, terminal
conditions, purity, monotonicity, creator tiers and the on-chain cross-check.
"""

from __future__ import annotations

import dataclasses

import pytest

from backend_pumpwatch.launch_scoring import (
    VERDICT_CAUTION,
    VERDICT_CLEAN,
    VERDICT_HIGH_RISK,
    VERDICT_UNKNOWN,
    OnchainMintInfo,
    score_launch,
    verdict_for_score,
)
from backend_pumpwatch.launch_scoring.integrity import (
    BASE_SCORE,
    ONCHAIN_UNAVAILABLE_POINTS,
    REASON_MISSING_MINT,
    REASON_NO_SIGNALS,
    REASON_SUSPICIOUS_URI,
    creator_reuse_points,
)
from backend_pumpwatch.solana_listener.models import LaunchEvent
from conftest import CREATOR_HEX, NOW, VALID_MINT

CLEAN_ONCHAIN = OnchainMintInfo(exists=True, mint_authority=None, freeze_authority=None)


def good_event(**overrides) -> LaunchEvent:
    fields = dict(
        mint=VALID_MINT,
        name="Test Coin",
        symbol="TEST",
        uri="https://ipfs.io/ipfs/Qm123",
        creator_hex=CREATOR_HEX,
        signature="sig1",
        slot=1,
        timestamp=NOW - 60,
    )
    fields.update(overrides)
    return LaunchEvent(**fields)


def test_missing_mint_is_terminal():
    event = LaunchEvent(
        mint=None,
        name="X",
        symbol="X",
        uri="https://a.com/m",
        creator_hex="aa" * 32,
        signature="sig1",
        timestamp=NOW,
    )
    token = score_launch(event, now=NOW)
    assert token.score == 100
    assert token.verdict == VERDICT_UNKNOWN
    assert token.reasons == [REASON_MISSING_MINT]


@pytest.mark.parametrize("mint", [None, "", "   "])
def test_missing_mint_ignores_every_other_field(mint):
    event = good_event(mint=mint, is_mayhem=True, symbol="AAAAAAA")
    token = score_launch(event, {CREATOR_HEX: 50}, {CREATOR_HEX}, CLEAN_ONCHAIN, now=NOW)
    assert (token.score, token.verdict, token.reasons) == (100, VERDICT_UNKNOWN, [REASON_MISSING_MINT])


def test_malicious_uri_is_terminal():
    token = score_launch(good_event(uri="javascript:alert(1)"), onchain=CLEAN_ONCHAIN, now=NOW)
    assert token.score == 100
    assert token.verdict == VERDICT_UNKNOWN
    assert token.reasons == [REASON_SUSPICIOUS_URI]
    assert token.mint == VALID_MINT


def test_well_formed_new_creator_scores_clean():
    token = score_launch(good_event(), {CREATOR_HEX: 1}, {CREATOR_HEX}, CLEAN_ONCHAIN, now=NOW)
    assert token.score == BASE_SCORE
    assert token.verdict == VERDICT_CLEAN
    assert token.reasons[0] == REASON_NO_SIGNALS
    assert "Mint authority revoked (supply fixed)" in token.reasons
    assert token.pump_url == f"https://pump.fun/{VALID_MINT}"
    assert token.first_seen_utc.endswith("Z")


def test_unavailable_onchain_adds_small_penalty():
    token = score_launch(good_event(), {CREATOR_HEX: 1}, now=NOW)
    assert token.score == BASE_SCORE + ONCHAIN_UNAVAILABLE_POINTS
    assert token.verdict == VERDICT_CLEAN
    assert any("On-chain checks unavailable" in r for r in token.reasons)


def test_authorities_present_add_points():
    info = OnchainMintInfo(exists=True, mint_authority=VALID_MINT, freeze_authority=VALID_MINT)
    token = score_launch(good_event(), onchain=info, now=NOW)
    assert token.score == BASE_SCORE + 12 + 10
    assert any("Mint authority still present" in r for r in token.reasons)
    assert any("Freeze authority present" in r for r in token.reasons)


def test_mint_not_found_on_chain():
    token = score_launch(good_event(), onchain=OnchainMintInfo(exists=False), now=NOW)
    assert token.score == BASE_SCORE + 45
    assert token.verdict == VERDICT_CAUTION


def test_invalid_mint_without_onchain_confirmation_is_unknown():
    token = score_launch(good_event(mint="not-a-mint"), now=NOW)
    assert token.verdict == VERDICT_UNKNOWN
    assert 0 <= token.score <= 100
    assert any("Mint format looks invalid" in r for r in token.reasons)


def test_score_is_clamped_to_100():
    event = good_event(
        mint="bad",
        name=None,
        symbol="S\u0000YM" * 5,
        uri="http://plain.example/m",
        creator_hex=None,
        signature=None,
        timestamp=None,
        is_mayhem=True,
    )
    token = score_launch(event, onchain=OnchainMintInfo(exists=False), now=NOW)
    assert token.score == 100
    assert len(token.reasons) >= 1


@pytest.mark.parametrize(
    "event",
    [
        LaunchEvent(),
        LaunchEvent(mint=VALID_MINT),
        good_event(name=""),
        good_event(uri="not a uri"),
        good_event(timestamp=float("nan")),
        good_event(creator_hex="zz"),
        good_event(symbol="\U0001F680\U0001F680\U0001F680"),
    ],
)
def test_postconditions_hold_for_degenerate_events(event):
    token = score_launch(event, now=NOW)
    assert 0 <= token.score <= 100
    assert token.reasons
    assert token.verdict in (VERDICT_CLEAN, VERDICT_CAUTION, VERDICT_HIGH_RISK, VERDICT_UNKNOWN)


def test_scoring_is_pure():
    event = good_event()
    counts = {CREATOR_HEX: 3}
    a = score_launch(event, counts, {CREATOR_HEX}, CLEAN_ONCHAIN, now=NOW)
    b = score_launch(event, counts, {CREATOR_HEX}, CLEAN_ONCHAIN, now=NOW)
    assert a == b
    assert counts == {CREATOR_HEX: 3}


@pytest.mark.parametrize(
    "defect",
    [
        {"symbol": None},
        {"name": None},
        {"signature": None},
        {"uri": "http://a.com/m"},
        {"creator_hex": None},
        {"is_mayhem": True},
        {"timestamp": None},
        {"name": "N" * 60},
    ],
)
def test_adding_a_defect_never_lowers_the_score(defect):
    base = score_launch(good_event(), onchain=CLEAN_ONCHAIN, now=NOW)
    worse = score_launch(dataclasses.replace(good_event(), **defect), onchain=CLEAN_ONCHAIN, now=NOW)
    assert worse.score >= base.score


@pytest.mark.parametrize(
    "frequency,points",
    [(11, 30), (10, 20), (6, 20), (5, 10), (3, 10), (2, 0), (1, 0), (0, 0)],
)
def test_creator_frequency_tiers(frequency, points):
    assert creator_reuse_points(frequency) == points


def test_creator_reuse_and_recent_creator_points():
    token = score_launch(good_event(), {CREATOR_HEX: 11}, {CREATOR_HEX}, CLEAN_ONCHAIN, now=NOW)
    assert token.score == BASE_SCORE + 30 + 5
    assert token.signals["creatorFrequency"] == 11
    assert token.signals["creatorRecent"] is True


def test_creator_hex_is_case_insensitive():
    token = score_launch(good_event(creator_hex="AA" * 32), {CREATOR_HEX: 6}, None, CLEAN_ONCHAIN, now=NOW)
    assert token.signals["creatorFrequency"] == 6


@pytest.mark.parametrize(
    "score,verdict",
    [(0, VERDICT_CLEAN), (25, VERDICT_CLEAN), (26, VERDICT_CAUTION), (60, VERDICT_CAUTION), (61, VERDICT_HIGH_RISK)],
)
def test_verdict_buckets(score, verdict):
    assert verdict_for_score(score) == verdict


def test_to_dict_is_flat_feed_item():
    item = score_launch(good_event(), onchain=CLEAN_ONCHAIN, now=NOW).to_dict()
    assert item["mint"] == VALID_MINT
    assert item["pumpUrl"] == f"https://pump.fun/{VALID_MINT}"
    assert item["source"] == "pump-webhook"
    assert item["signals"]["onchain"]["exists"] is True
    assert isinstance(item["reasons"], list)
