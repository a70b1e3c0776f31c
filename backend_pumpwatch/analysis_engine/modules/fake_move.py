"""
Fake-move detection: circular transfers, wash trading, bots and other
scripted-volume patterns in recent trades.
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

BASE_SCORE = 75
NO_DATA_SCORE = 50

CIRCULAR_CRITICAL_COUNT = 5
CIRCULAR_WARNING_COUNT = 2
WASH_MIN_TX = 100
WASH_TX_PER_TRADER = 8.0
BOT_CRITICAL_PCT = 60
BOT_WARNING_PCT = 35
RECYCLED_WALLET_PCT = 30
IDENTICAL_AMOUNT_PCT = 40
UNIFORM_SIZE_PCT = 50

_TP = ("helius", "tradingPatterns")


class FakeMoveModule(AnalyzerModule):
    name = "fake_move"
    emits = frozenset(
        {
            "circular_trading",
            "wash_trading",
            "bot_pattern",
            "wallet_recycling",
            "identical_amounts",
            "uniform_tx_sizes",
        }
    )

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        circular = bundle.number(*_TP, "circularTransferCount")
        identical = bundle.number(*_TP, "identicalAmountPct")
        uniform = bundle.number(*_TP, "uniformSizePct")
        bot = bundle.number(*_TP, "botTxPct")
        recycled = bundle.number(*_TP, "recycledWalletPct")
        tx24 = bundle.number(*_TP, "txCount24h")
        traders = bundle.number(*_TP, "uniqueTraders24h")
        inputs = (circular, identical, uniform, bot, recycled, traders)
        present = sum(v is not None for v in inputs)

        if present == 0:
            sheet = ScoreSheet(NO_DATA_SCORE)
            sheet.add(0, "Trading pattern data unavailable; volume authenticity unknown")
            return sheet.result(coverage_confidence(0, len(inputs)))

        sheet = ScoreSheet(BASE_SCORE)
        if circular is not None:
            if circular >= CIRCULAR_CRITICAL_COUNT:
                sheet.add(
                    -35,
                    f"{int(circular)} circular transfers between related wallets",
                    make_flag("circular_trading", FlagSeverity.CRITICAL, min(0.95, 0.6 + circular / 50),
                              FlagStatus.VERIFIED,
                              f"{int(circular)} transfers returned to their origin wallet in 24h.",
                              "Solscan token transfers"),
                )
            elif circular >= CIRCULAR_WARNING_COUNT:
                sheet.add(
                    -10,
                    "A few transfers loop back between related wallets",
                    make_flag("circular_trading", FlagSeverity.WARNING, 0.45, FlagStatus.AMBIGUOUS,
                              f"{int(circular)} looping transfers in 24h.", "Solscan token transfers"),
                )

        if tx24 is not None and traders is not None and traders > 0 and tx24 >= WASH_MIN_TX:
            per_trader = tx24 / traders
            if per_trader >= WASH_TX_PER_TRADER:
                sheet.add(
                    -25,
                    f"Volume driven by few wallets ({per_trader:.1f} trades per trader)",
                    make_flag("wash_trading", FlagSeverity.CRITICAL, 0.6, FlagStatus.UNVERIFIED,
                              f"{int(tx24)} trades from {int(traders)} unique wallets.", "DexScreener trades"),
                )

        if bot is not None:
            if bot >= BOT_CRITICAL_PCT:
                sheet.add(
                    -25,
                    f"{bot:.0f}% of transactions look automated",
                    make_flag("bot_pattern", FlagSeverity.CRITICAL, 0.7, FlagStatus.UNVERIFIED,
                              f"{bot:.0f}% of recent transactions match bot timing.", "Solscan transactions"),
                )
            elif bot >= BOT_WARNING_PCT:
                sheet.add(
                    -10,
                    f"Elevated bot activity ({bot:.0f}% of transactions)",
                    make_flag("bot_pattern", FlagSeverity.WARNING, 0.5, FlagStatus.AMBIGUOUS,
                              f"{bot:.0f}% of recent transactions match bot timing."),
                )

        if recycled is not None and recycled >= RECYCLED_WALLET_PCT:
            sheet.add(
                -15,
                f"{recycled:.0f}% of buyers are recycled wallets",
                make_flag("wallet_recycling", FlagSeverity.WARNING, 0.6, FlagStatus.UNVERIFIED,
                          f"{recycled:.0f}% of buys come from wallets that already sold."),
            )
        if identical is not None and identical >= IDENTICAL_AMOUNT_PCT:
            sheet.add(-12, f"{identical:.0f}% of trades use identical amounts", LegacyFlag("identical_amounts"))
        if uniform is not None and uniform >= UNIFORM_SIZE_PCT:
            sheet.add(-10, "Trade sizes are unnaturally uniform", LegacyFlag("uniform_tx_sizes"))

        if not sheet.flags:
            sheet.add(5, "No wash-trading or bot patterns detected in recent trades")
        return sheet.result(coverage_confidence(present, len(inputs)))
