"""
Tests for the six analyzer modules against healthy and degraded bundles.
"""

from __future__ import annotations

import pytest

from backend_pumpwatch.analysis_engine import FlagSeverity, FlagStatus, LegacyFlag, SignalBundle
from backend_pumpwatch.analysis_engine.modules import (
    DEFAULT_MODULES,
    MODULE_WEIGHTS,
    DeadVsSleepingModule,
    FakeMoveModule,
    HolderPsychologyModule,
    RugNarrativeModule,
    TooLateModule,
    WorthMyTimeModule,
    weight_for,
)
from backend_pumpwatch.analysis_engine.modules.base import coverage_confidence, fmt_usd
from conftest import NOW, healthy_bundle


def run(module, raw):
    return module.evaluate(SignalBundle(raw, now=NOW))


def flags_by_key(result):
    return {f.key: f for f in result.flags}


def test_weights_sum_to_one_and_cover_every_module():
    assert sum(MODULE_WEIGHTS.values()) == pytest.approx(1.0)
    assert {m.name for m in DEFAULT_MODULES} == set(MODULE_WEIGHTS)
    assert weight_for("not_a_module") == 0.10


def test_helpers():
    assert coverage_confidence(0, 3) == 0.2
    assert coverage_confidence(3, 3) == 1.0
    assert coverage_confidence(5, 0) == 0.2
    assert fmt_usd(1_500) == "$1.5K"
    assert fmt_usd(2_500_000) == "$2.5M"
    assert fmt_usd(12) == "$12"


@pytest.mark.parametrize(
    "module,score",
    [
        (WorthMyTimeModule(), 95),
        (FakeMoveModule(), 80),
        (TooLateModule(), 80),
        (DeadVsSleepingModule(), 80),
        (HolderPsychologyModule(), 90),
        (RugNarrativeModule(), 90),
    ],
)
def test_healthy_bundle_scores(module, score):
    result = run(module, healthy_bundle())
    assert result.score == score
    assert result.confidence == 1.0
    assert result.flags == []
    assert result.reasons


@pytest.mark.parametrize("module", DEFAULT_MODULES)
def test_empty_bundle_never_raises(module):
    result = run(module, {})
    assert 0 <= result.score <= 100
    assert result.confidence == 0.2
    assert result.reasons


def test_worth_my_time_no_data_emits_legacy_flag():
    result = run(WorthMyTimeModule(), {})
    assert result.score == 40
    assert result.flags == [LegacyFlag("data_unavailable")]


def test_worth_my_time_thin_market():
    result = run(
        WorthMyTimeModule(),
        healthy_bundle(helius__tokenInfo__volume24h=1_000, helius__tokenInfo__holders=20),
    )
    assert set(flags_by_key(result)) == {"low_volume", "low_holders"}
    assert result.score == 50 - 20 - 15 + 15


def test_fake_move_circular_and_bots():
    result = run(
        FakeMoveModule(),
        healthy_bundle(helius__tradingPatterns__circularTransferCount=6, helius__tradingPatterns__botTxPct=70),
    )
    flags = flags_by_key(result)
    assert flags["circular_trading"].severity == FlagSeverity.CRITICAL
    assert flags["circular_trading"].status == FlagStatus.VERIFIED
    assert flags["circular_trading"].confidence == pytest.approx(0.72)
    assert flags["bot_pattern"].status == FlagStatus.UNVERIFIED
    assert result.score == 75 - 35 - 25


def test_fake_move_wash_trading_from_few_wallets():
    result = run(
        FakeMoveModule(),
        healthy_bundle(helius__tradingPatterns__txCount24h=1_000, helius__tradingPatterns__uniqueTraders24h=50),
    )
    assert flags_by_key(result)["wash_trading"].severity == FlagSeverity.CRITICAL


def test_fake_move_scripted_sizes_are_legacy_flags():
    result = run(
        FakeMoveModule(),
        healthy_bundle(helius__tradingPatterns__identicalAmountPct=60, helius__tradingPatterns__uniformSizePct=80),
    )
    assert LegacyFlag("identical_amounts") in result.flags
    assert LegacyFlag("uniform_tx_sizes") in result.flags


def test_too_late_post_pump():
    result = run(TooLateModule(), healthy_bundle(dexscreener__priceChange={"h1": 5, "h6": 50, "h24": 400}))
    assert "post_pump" in flags_by_key(result)
    assert result.score == 35


def test_too_late_rolling_over():
    result = run(TooLateModule(), healthy_bundle(dexscreener__priceChange={"h1": -20, "h6": 10, "h24": 150}))
    assert set(flags_by_key(result)) == {"recent_pump", "late_stage_pump"}
    assert result.score == 70 - 20 - 15


def test_too_late_sell_flow_falls_back_to_market_txns():
    bundle = healthy_bundle(dexscreener__txns={"h24": {"buys": 100, "sells": 200}})
    del bundle["helius"]["tradingPatterns"]["buyCount24h"]
    del bundle["helius"]["tradingPatterns"]["sellCount24h"]
    result = run(TooLateModule(), bundle)
    assert "distribution_starting" in flags_by_key(result)
    assert result.score == 55


def test_too_late_phase_transition():
    result = run(TooLateModule(), healthy_bundle(dexscreener__priceChange={"h1": -20, "h6": 40, "h24": 30}))
    assert LegacyFlag("phase_transition") in result.flags


def test_dead_vs_sleeping_idle_tiers():
    now_ms = NOW * 1000
    for hours, key in ((100, "possibly_dead"), (30, "dormant"), (8, "stale_activity")):
        bundle = healthy_bundle(helius__tradingPatterns__lastTradeAt=now_ms - hours * 3_600_000)
        assert key in flags_by_key(run(DeadVsSleepingModule(), bundle))


def test_dead_vs_sleeping_market_only_activity():
    result = run(DeadVsSleepingModule(), {"dexscreener": {"success": True, "volume": {"h24": 5_000}}})
    assert result.flags == [LegacyFlag("unverified_activity")]
    assert result.score == 45


def test_holder_psychology_whale_and_dev_dump():
    result = run(
        HolderPsychologyModule(),
        healthy_bundle(helius__holderDistribution__top1Pct=40, helius__tradingPatterns__devSoldPct=60),
    )
    flags = flags_by_key(result)
    assert flags["whale_dominated"].is_critical
    assert flags["whale_dominated"].status == FlagStatus.VERIFIED
    assert flags["dev_dumping"].is_critical


def test_holder_psychology_unresolved_owner_shares_are_unverified():
    result = run(
        HolderPsychologyModule(),
        healthy_bundle(
            helius__holderDistribution__top1Pct=79.3,
            helius__holderDistribution__top10Pct=81.1,
            helius__holderDistribution__ownersResolved=False,
        ),
    )
    flags = flags_by_key(result)
    assert flags["whale_dominated"].is_critical
    assert flags["whale_dominated"].status == FlagStatus.UNVERIFIED
    assert flags["whale_dominated"].confidence == pytest.approx(0.51)
    assert flags["high_concentration"].status == FlagStatus.UNVERIFIED


def test_holder_psychology_mass_exit_is_unverified_critical():
    result = run(HolderPsychologyModule(), healthy_bundle(helius__holderDistribution__holdersDelta24hPct=-40))
    flag = flags_by_key(result)["mass_exit"]
    assert flag.is_critical
    assert flag.status == FlagStatus.UNVERIFIED


def test_rug_narrative_verified_unlocked_liquidity():
    result = run(RugNarrativeModule(), healthy_bundle(dexscreener__lpLock__status="unlocked"))
    flag = flags_by_key(result)["lp_unlocked"]
    assert flag.is_critical
    assert flag.status == FlagStatus.VERIFIED
    assert result.score == 70 - 45 + 5


def test_rug_narrative_stale_lock_check():
    stale_ms = NOW * 1000 - 30 * 3_600_000
    result = run(
        RugNarrativeModule(),
        healthy_bundle(dexscreener__lpLock__status="unlocked", dexscreener__lpLock__checkedAt=stale_ms),
    )
    flags = flags_by_key(result)
    assert flags["lp_unlocked"].status == FlagStatus.STALE
    assert "lp_stale" in flags
    assert result.score == 70 - 45 - 10 + 5


def test_rug_narrative_tiny_pool_without_lock_data():
    bundle = healthy_bundle(dexscreener__liquidityUsd=1_000)
    del bundle["dexscreener"]["lpLock"]
    flags = flags_by_key(run(RugNarrativeModule(), bundle))
    assert "lp_unknown" in flags
    assert flags["rug_risk_liquidity"].is_critical
    assert flags["rug_risk_liquidity"].status == FlagStatus.UNVERIFIED


def test_rug_narrative_active_authorities():
    result = run(
        RugNarrativeModule(),
        healthy_bundle(helius__metadata__mintAuthority="Auth1111", helius__metadata__freezeAuthority="Auth2222"),
    )
    assert {"mint_authority_active", "freeze_authority_active"} <= set(flags_by_key(result))
    assert result.score == 70 + 15 - 15 - 10
