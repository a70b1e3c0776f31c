"""
Worth-my-time screening: is there enough volume, holders and liquidity for
this token to deserve attention at all?
"""

from __future__ import annotations

from backend_pumpwatch.analysis_engine.models import FlagSeverity, FlagStatus, LegacyFlag, ModuleResult
from backend_pumpwatch.analysis_engine.modules.base import (
    AnalyzerModule,
    ScoreSheet,
    coverage_confidence,
    fmt_usd,
    make_flag,
)
from backend_pumpwatch.analysis_engine.signals import SignalBundle

BASE_SCORE = 50
NO_DATA_SCORE = 40

LOW_VOLUME_USD = 5_000
GOOD_VOLUME_USD = 25_000
STRONG_VOLUME_USD = 100_000

LOW_HOLDERS = 50
GOOD_HOLDERS = 150
STRONG_HOLDERS = 500

SHALLOW_LIQUIDITY_USD = 5_000
GOOD_LIQUIDITY_USD = 15_000
STRONG_LIQUIDITY_USD = 50_000


class WorthMyTimeModule(AnalyzerModule):
    name = "worth_my_time"
    emits = frozenset({"low_volume", "low_holders", "shallow_liquidity", "data_unavailable"})

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        volume = bundle.first_number(("helius", "tokenInfo", "volume24h"), ("dexscreener", "volume", "h24"))
        holders = bundle.first_number(
            ("helius", "tokenInfo", "holders"), ("helius", "holderDistribution", "holderCount")
        )
        liquidity = bundle.first_number(("helius", "tokenInfo", "liquidity"), ("dexscreener", "liquidityUsd"))
        present = sum(v is not None for v in (volume, holders, liquidity))

        if present == 0:
            sheet = ScoreSheet(NO_DATA_SCORE)
            sheet.add(0, "No volume, holder or liquidity data available", LegacyFlag("data_unavailable"))
            return sheet.result(coverage_confidence(0, 3))

        sheet = ScoreSheet(BASE_SCORE)
        if volume is not None:
            if volume < LOW_VOLUME_USD:
                sheet.add(
                    -20,
                    f"24h volume is very low ({fmt_usd(volume)})",
                    make_flag("low_volume", FlagSeverity.WARNING, 0.7, FlagStatus.VERIFIED,
                              f"Only {fmt_usd(volume)} traded in the last 24h.", "DexScreener"),
                )
            elif volume >= STRONG_VOLUME_USD:
                sheet.add(15, f"Strong 24h volume ({fmt_usd(volume)})")
            elif volume >= GOOD_VOLUME_USD:
                sheet.add(8, f"Healthy 24h volume ({fmt_usd(volume)})")

        if holders is not None:
            if holders < LOW_HOLDERS:
                sheet.add(
                    -15,
                    f"Only {int(holders)} holders",
                    make_flag("low_holders", FlagSeverity.WARNING, 0.7, FlagStatus.VERIFIED,
                              f"{int(holders)} wallets hold the token.", "Solscan holders tab"),
                )
            elif holders >= STRONG_HOLDERS:
                sheet.add(15, f"Broad holder base ({int(holders)} holders)")
            elif holders >= GOOD_HOLDERS:
                sheet.add(8, f"Growing holder base ({int(holders)} holders)")

        if liquidity is not None:
            if liquidity < SHALLOW_LIQUIDITY_USD:
                sheet.add(
                    -20,
                    f"Liquidity is shallow ({fmt_usd(liquidity)})",
                    make_flag("shallow_liquidity", FlagSeverity.WARNING, 0.75, FlagStatus.VERIFIED,
                              f"{fmt_usd(liquidity)} pooled liquidity.", "DexScreener"),
                )
            elif liquidity >= STRONG_LIQUIDITY_USD:
                sheet.add(15, f"Deep liquidity ({fmt_usd(liquidity)})")
            elif liquidity >= GOOD_LIQUIDITY_USD:
                sheet.add(5, f"Adequate liquidity ({fmt_usd(liquidity)})")

        return sheet.result(coverage_confidence(present, 3))
