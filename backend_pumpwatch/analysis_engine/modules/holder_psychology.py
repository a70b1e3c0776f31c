"""
Holder psychology: whale concentration, dev selling, holder flight and
flipper behaviour.
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

WHALE_DOMINATED_TOP1_PCT = 30
WHALE_DEPENDENT_TOP1_PCT = 15
HIGH_CONCENTRATION_TOP10_PCT = 70
CONCENTRATED_TOP10_PCT = 50
DISTRIBUTED_TOP10_PCT = 30
DEV_DUMP_PCT = 50
SELL_PRESSURE_RATIO = 2.0
SELL_PRESSURE_MIN_SELLS = 20
MASS_EXIT_DELTA_PCT = -25
DISTRIBUTION_DELTA_PCT = -10
GROWTH_DELTA_PCT = 10
FLIPPER_HEAVY_PCT = 50
# Shares not checked against token-account owners may include pool accounts
UNRESOLVED_CONFIDENCE_FACTOR = 0.6

_HD = ("helius", "holderDistribution")
_TP = ("helius", "tradingPatterns")
_TXNS = ("dexscreener", "txns", "h24")


class HolderPsychologyModule(AnalyzerModule):
    name = "holder_psychology"
    emits = frozenset(
        {
            "whale_dominated",
            "whale_dependent",
            "high_concentration",
            "concentrated_holdings",
            "dev_dumping",
            "selling_pressure",
            "mass_exit",
            "distribution_phase",
            "flipper_heavy",
        }
    )

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        top1 = bundle.number(*_HD, "top1Pct")
        top10 = bundle.number(*_HD, "top10Pct")
        dev_sold = bundle.number(*_TP, "devSoldPct")
        delta = bundle.number(*_HD, "holdersDelta24hPct")
        flippers = bundle.number(*_HD, "flipperPct")
        buys = bundle.first_number((*_TP, "buyCount24h"), (*_TXNS, "buys"))
        sells = bundle.first_number((*_TP, "sellCount24h"), (*_TXNS, "sells"))
        present = sum(v is not None for v in (top1, top10, dev_sold, delta, flippers))
        resolved = bundle.get(*_HD, "ownersResolved") is not False
        share_status = FlagStatus.VERIFIED if resolved else FlagStatus.UNVERIFIED
        share_factor = 1.0 if resolved else UNRESOLVED_CONFIDENCE_FACTOR

        if present == 0:
            sheet = ScoreSheet(NO_DATA_SCORE)
            sheet.add(0, "Holder distribution unavailable")
            return sheet.result(coverage_confidence(0, 5))

        sheet = ScoreSheet(BASE_SCORE)
        if top1 is not None:
            if top1 >= WHALE_DOMINATED_TOP1_PCT:
                sheet.add(
                    -35,
                    f"Largest wallet holds {top1:.0f}% of supply",
                    make_flag("whale_dominated", FlagSeverity.CRITICAL, 0.85 * share_factor, share_status,
                              f"Top holder owns {top1:.1f}% of supply.", "Solscan holders tab"),
                )
            elif top1 >= WHALE_DEPENDENT_TOP1_PCT:
                sheet.add(
                    -15,
                    f"One wallet holds {top1:.0f}% of supply",
                    make_flag("whale_dependent", FlagSeverity.WARNING, 0.7 * share_factor, share_status,
                              f"Top holder owns {top1:.1f}% of supply.", "Solscan holders tab"),
                )

        if top10 is not None:
            if top10 >= HIGH_CONCENTRATION_TOP10_PCT:
                sheet.add(
                    -20,
                    f"Top 10 wallets hold {top10:.0f}% of supply",
                    make_flag("high_concentration", FlagSeverity.WARNING, 0.8 * share_factor, share_status,
                              f"Top 10 holders own {top10:.1f}% of supply.", "Solscan holders tab"),
                )
            elif top10 >= CONCENTRATED_TOP10_PCT:
                sheet.add(-10, f"Top 10 wallets hold {top10:.0f}% of supply", LegacyFlag("concentrated_holdings"))
            elif top10 < DISTRIBUTED_TOP10_PCT:
                sheet.add(10, "Holdings are reasonably distributed")

        if dev_sold is not None and dev_sold >= DEV_DUMP_PCT:
            sheet.add(
                -30,
                f"Creator has sold {dev_sold:.0f}% of their allocation",
                make_flag("dev_dumping", FlagSeverity.CRITICAL, 0.8, FlagStatus.VERIFIED,
                          f"Creator wallet sold {dev_sold:.0f}% of its tokens.", "Solscan creator wallet"),
            )

        if buys is not None and sells is not None and sells >= SELL_PRESSURE_MIN_SELLS:
            if sells >= SELL_PRESSURE_RATIO * max(buys, 1):
                sheet.add(
                    -10,
                    "Heavy selling pressure from holders",
                    make_flag("selling_pressure", FlagSeverity.WARNING, 0.6, FlagStatus.UNVERIFIED,
                              f"{int(sells)} sells vs {int(buys)} buys in 24h."),
                )

        if delta is not None:
            if delta <= MASS_EXIT_DELTA_PCT:
                sheet.add(
                    -25,
                    f"Holder count down {abs(delta):.0f}% in 24h",
                    make_flag("mass_exit", FlagSeverity.CRITICAL, 0.65, FlagStatus.UNVERIFIED,
                              f"Holder count changed {delta:.0f}% over 24h."),
                )
            elif delta <= DISTRIBUTION_DELTA_PCT:
                sheet.add(
                    -10,
                    "Holders steadily leaving",
                    make_flag("distribution_phase", FlagSeverity.WARNING, 0.55, FlagStatus.UNVERIFIED,
                              f"Holder count changed {delta:.0f}% over 24h."),
                )
            elif delta >= GROWTH_DELTA_PCT:
                sheet.add(10, f"Holder count growing ({delta:.0f}% in 24h)")

        if flippers is not None and flippers >= FLIPPER_HEAVY_PCT:
            sheet.add(
                -10,
                f"{flippers:.0f}% of holders are short-term flippers",
                make_flag("flipper_heavy", FlagSeverity.WARNING, 0.55, FlagStatus.UNVERIFIED,
                          f"{flippers:.0f}% of holders sold within minutes of buying."),
            )
        return sheet.result(coverage_confidence(present, 5))
