"""
Dead vs sleeping: tells an abandoned token apart from one that is merely
quiet, using time since the last trade and recent transaction counts.
"""

from __future__ import annotations

from backend_pumpwatch.analysis_engine.models import FlagSeverity, FlagStatus, LegacyFlag, ModuleResult
from backend_pumpwatch.analysis_engine.modules.base import (
    AnalyzerModule,
    ScoreSheet,
    coverage_confidence,
    make_flag,
)
from backend_pumpwatch.analysis_engine.signals import SignalBundle

BASE_SCORE = 65
NO_DATA_SCORE = 50

DEAD_AFTER_HOURS = 72
DORMANT_AFTER_HOURS = 24
STALE_AFTER_HOURS = 6
ACTIVE_TX_24H = 200
ACTIVE_TX_1H = 10

_TP = ("helius", "tradingPatterns")


class DeadVsSleepingModule(AnalyzerModule):
    name = "dead_vs_sleeping"
    emits = frozenset({"possibly_dead", "dormant", "stale_activity", "unverified_activity"})

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        idle_hours = bundle.hours_since(*_TP, "lastTradeAt")
        tx1 = bundle.number(*_TP, "txCount1h")
        tx24 = bundle.number(*_TP, "txCount24h")
        market_volume = bundle.number("dexscreener", "volume", "h24")
        present = sum(v is not None for v in (idle_hours, tx1, tx24))

        if present == 0:
            sheet = ScoreSheet(NO_DATA_SCORE)
            if market_volume is not None and market_volume > 0:
                sheet.add(
                    -5,
                    "Activity only visible in market data, not confirmed on-chain",
                    LegacyFlag("unverified_activity"),
                )
            else:
                sheet.add(0, "Trading activity data unavailable")
            return sheet.result(coverage_confidence(0, 3))

        sheet = ScoreSheet(BASE_SCORE)
        if idle_hours is not None:
            if idle_hours >= DEAD_AFTER_HOURS:
                sheet.add(
                    -35,
                    f"No trades for {idle_hours / 24:.0f} days",
                    make_flag("possibly_dead", FlagSeverity.WARNING, 0.75, FlagStatus.VERIFIED,
                              f"Last trade {idle_hours:.0f}h ago.", "Solscan transactions"),
                )
            elif idle_hours >= DORMANT_AFTER_HOURS:
                sheet.add(
                    -20,
                    f"Dormant: last trade {idle_hours:.0f}h ago",
                    make_flag("dormant", FlagSeverity.WARNING, 0.65, FlagStatus.VERIFIED,
                              f"Last trade {idle_hours:.0f}h ago.", "Solscan transactions"),
                )
            elif idle_hours >= STALE_AFTER_HOURS:
                sheet.add(
                    -10,
                    f"Activity slowing: last trade {idle_hours:.0f}h ago",
                    make_flag("stale_activity", FlagSeverity.WARNING, 0.55, FlagStatus.VERIFIED,
                              f"Last trade {idle_hours:.0f}h ago."),
                )
        elif tx24 is not None and tx24 == 0:
            sheet.add(
                -25,
                "No transactions in the last 24h",
                make_flag("possibly_dead", FlagSeverity.WARNING, 0.5, FlagStatus.UNVERIFIED,
                          "Zero transactions reported for 24h; last trade time unknown."),
            )

        if tx24 is not None and tx24 >= ACTIVE_TX_24H and tx1 is not None and tx1 >= ACTIVE_TX_1H:
            sheet.add(15, f"Active trading: {int(tx24)} transactions in 24h")
        elif tx1 is not None and tx1 > 0 and idle_hours is not None and idle_hours < STALE_AFTER_HOURS:
            sheet.add(5, "Still trading within the last hour")
        return sheet.result(coverage_confidence(present, 3))
