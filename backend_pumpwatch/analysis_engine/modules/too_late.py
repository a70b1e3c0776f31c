"""
Too-late timing: has the move already happened? Looks at price change over
1h/6h/24h and at whether sellers are starting to outnumber buyers.
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

BASE_SCORE = 70
NO_DATA_SCORE = 50

POST_PUMP_24H_PCT = 300
RECENT_PUMP_24H_PCT = 100
RECENT_PUMP_1H_PCT = 50
ROLLOVER_1H_PCT = -10
DISTRIBUTION_SELL_RATIO = 1.5
DISTRIBUTION_MIN_BUYS = 20
PHASE_SWING_6H_PCT = 30
PHASE_DROP_1H_PCT = -15
CALM_RANGE_24H = (-20, 50)

_TP = ("helius", "tradingPatterns")
_TXNS = ("dexscreener", "txns", "h24")


class TooLateModule(AnalyzerModule):
    name = "too_late"
    emits = frozenset({"post_pump", "recent_pump", "late_stage_pump", "distribution_starting", "phase_transition"})

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        h1 = bundle.number("dexscreener", "priceChange", "h1")
        h6 = bundle.number("dexscreener", "priceChange", "h6")
        h24 = bundle.number("dexscreener", "priceChange", "h24")
        buys = bundle.first_number((*_TP, "buyCount24h"), (*_TXNS, "buys"))
        sells = bundle.first_number((*_TP, "sellCount24h"), (*_TXNS, "sells"))
        flow_known = buys is not None and sells is not None
        present = sum(v is not None for v in (h1, h6, h24)) + (1 if flow_known else 0)

        if present == 0:
            sheet = ScoreSheet(NO_DATA_SCORE)
            sheet.add(0, "Price history unavailable; cannot judge entry timing")
            return sheet.result(coverage_confidence(0, 4))

        sheet = ScoreSheet(BASE_SCORE)
        if h24 is not None and h24 >= POST_PUMP_24H_PCT:
            sheet.add(
                -35,
                f"Already up {h24:.0f}% in 24h",
                make_flag("post_pump", FlagSeverity.WARNING, 0.8, FlagStatus.VERIFIED,
                          f"Price change over 24h: +{h24:.0f}%.", "DexScreener chart"),
            )
        elif h24 is not None and h24 >= RECENT_PUMP_24H_PCT:
            sheet.add(
                -20,
                f"Price up {h24:.0f}% in 24h",
                make_flag("recent_pump", FlagSeverity.WARNING, 0.7, FlagStatus.VERIFIED,
                          f"Price change over 24h: +{h24:.0f}%.", "DexScreener chart"),
            )
        elif h1 is not None and h1 >= RECENT_PUMP_1H_PCT:
            sheet.add(
                -15,
                f"Price up {h1:.0f}% in the last hour",
                make_flag("recent_pump", FlagSeverity.WARNING, 0.65, FlagStatus.VERIFIED,
                          f"Price change over 1h: +{h1:.0f}%.", "DexScreener chart"),
            )

        if h24 is not None and h24 >= RECENT_PUMP_24H_PCT and h1 is not None and h1 <= ROLLOVER_1H_PCT:
            sheet.add(
                -15,
                "Pump is rolling over (falling after a large run)",
                make_flag("late_stage_pump", FlagSeverity.WARNING, 0.65, FlagStatus.UNVERIFIED,
                          f"+{h24:.0f}% over 24h but {h1:.0f}% in the last hour."),
            )

        if flow_known and buys >= DISTRIBUTION_MIN_BUYS and sells / buys >= DISTRIBUTION_SELL_RATIO:
            sheet.add(
                -15,
                f"Sellers outnumber buyers {sells / buys:.1f} to 1",
                make_flag("distribution_starting", FlagSeverity.WARNING, 0.6, FlagStatus.UNVERIFIED,
                          f"{int(sells)} sells vs {int(buys)} buys in 24h.", "DexScreener txns"),
            )

        if h6 is not None and h1 is not None and h6 >= PHASE_SWING_6H_PCT and h1 <= PHASE_DROP_1H_PCT:
            sheet.add(-10, "Momentum flipping from up-trend to sell-off", LegacyFlag("phase_transition"))

        if not sheet.flags and h24 is not None and CALM_RANGE_24H[0] <= h24 <= CALM_RANGE_24H[1]:
            sheet.add(10, "Price has not run away yet; entry timing still reasonable")
        return sheet.result(coverage_confidence(present, 4))
