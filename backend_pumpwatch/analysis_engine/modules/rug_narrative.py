"""
Rug narrative: can the creator or liquidity provider pull the rug?
Liquidity-lock state, pool depth and mint / freeze authorities.

Lock flags are emitted freely (the status flag plus lp_stale when the lock
check is old); aggregation keeps only the highest-priority one.
"""

from __future__ import annotations

from backend_pumpwatch.analysis_engine.models import FlagSeverity, FlagStatus, ModuleResult
from backend_pumpwatch.analysis_engine.modules.base import (
    AnalyzerModule,
    ScoreSheet,
    coverage_confidence,
    fmt_usd,
    make_flag,
)
from backend_pumpwatch.analysis_engine.signals import SignalBundle

BASE_SCORE = 70

LP_STALE_AFTER_HOURS = 24
RUG_LIQUIDITY_USD = 2_000

LOCK_LOCKED = "locked"
LOCK_UNLOCKED = "unlocked"
LOCK_MIXED = "mixed"
LOCK_UNKNOWN = "unknown"

_LOCK = ("dexscreener", "lpLock")
_META = ("helius", "metadata")


class RugNarrativeModule(AnalyzerModule):
    name = "rug_narrative"
    emits = frozenset(
        {
            "lp_unlocked",
            "lp_mixed",
            "lp_stale",
            "lp_unverified",
            "lp_unknown",
            "rug_risk_liquidity",
            "mint_authority_active",
            "freeze_authority_active",
        }
    )

    def _lock(self, bundle: SignalBundle, sheet: ScoreSheet) -> str:
        """Score the lock state; returns the normalized status."""
        lock = bundle.section(*_LOCK)
        status = (bundle.text(*_LOCK, "status") or LOCK_UNKNOWN).lower()
        if not lock or status not in (LOCK_LOCKED, LOCK_UNLOCKED, LOCK_MIXED):
            sheet.add(
                -10,
                "Liquidity lock status could not be determined",
                make_flag("lp_unknown", FlagSeverity.WARNING, 0.4, FlagStatus.AMBIGUOUS,
                          "No lock data returned for this token.", "RugCheck"),
            )
            return LOCK_UNKNOWN

        verified = bundle.get(*_LOCK, "verified") is True
        locked_pct = bundle.number(*_LOCK, "lockedPct")
        pct_text = f" ({locked_pct:.0f}% locked)" if locked_pct is not None else ""
        check_age = bundle.hours_since(*_LOCK, "checkedAt")
        stale = check_age is not None and check_age >= LP_STALE_AFTER_HOURS
        flag_status = FlagStatus.STALE if stale else (FlagStatus.VERIFIED if verified else FlagStatus.UNVERIFIED)

        if status == LOCK_UNLOCKED and verified:
            sheet.add(
                -45,
                "Liquidity is not locked and can be pulled",
                make_flag("lp_unlocked", FlagSeverity.CRITICAL, 0.9, flag_status,
                          f"Lock check reports unlocked liquidity{pct_text}.", "RugCheck"),
            )
        elif status == LOCK_UNLOCKED:
            sheet.add(
                -20,
                "Liquidity appears unlocked (not confirmed)",
                make_flag("lp_unverified", FlagSeverity.WARNING, 0.55, flag_status,
                          f"Unconfirmed report of unlocked liquidity{pct_text}.", "RugCheck"),
            )
        elif status == LOCK_MIXED:
            sheet.add(
                -20,
                f"Only part of the liquidity is locked{pct_text}",
                make_flag("lp_mixed", FlagSeverity.WARNING, 0.7, flag_status,
                          f"Pools disagree on lock status{pct_text}.", "DexScreener pools"),
            )
        elif verified:
            sheet.add(15, f"Liquidity locked{pct_text}")
        else:
            sheet.add(
                -8,
                f"Liquidity reported locked but not verified{pct_text}",
                make_flag("lp_unverified", FlagSeverity.WARNING, 0.5, flag_status,
                          "Lock reported by a single unverified source.", "RugCheck"),
            )

        if stale:
            sheet.add(
                -10,
                f"Lock data is {check_age:.0f}h old",
                make_flag("lp_stale", FlagSeverity.WARNING, 0.6, FlagStatus.STALE,
                          f"Last lock check {check_age:.0f}h ago.", "RugCheck"),
            )
        return status

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        sheet = ScoreSheet(BASE_SCORE)
        present = 0

        lock_status = self._lock(bundle, sheet)
        if lock_status != LOCK_UNKNOWN:
            present += 1

        liquidity = bundle.first_number(("dexscreener", "liquidityUsd"), ("helius", "tokenInfo", "liquidity"))
        if liquidity is not None:
            present += 1
            if liquidity < RUG_LIQUIDITY_USD and lock_status in (LOCK_UNLOCKED, LOCK_UNKNOWN):
                lock_verified = lock_status == LOCK_UNLOCKED and bundle.get(*_LOCK, "verified") is True
                sheet.add(
                    -25,
                    f"Tiny unlocked liquidity ({fmt_usd(liquidity)})",
                    make_flag("rug_risk_liquidity", FlagSeverity.CRITICAL, 0.75,
                              FlagStatus.VERIFIED if lock_verified else FlagStatus.UNVERIFIED,
                              f"{fmt_usd(liquidity)} pooled liquidity with no confirmed lock.", "DexScreener"),
                )

        mint_known = bundle.has(*_META, "mintAuthority")
        freeze_known = bundle.has(*_META, "freezeAuthority")
        mint_auth = bundle.text(*_META, "mintAuthority")
        freeze_auth = bundle.text(*_META, "freezeAuthority")
        if mint_known or freeze_known:
            present += 1
        if mint_auth:
            sheet.add(
                -15,
                "Mint authority active: supply can be inflated",
                make_flag("mint_authority_active", FlagSeverity.WARNING, 0.9, FlagStatus.VERIFIED,
                          f"Mint authority: {mint_auth}.", "Solscan mint account"),
            )
        if freeze_auth:
            sheet.add(
                -10,
                "Freeze authority active: holder accounts can be frozen",
                make_flag("freeze_authority_active", FlagSeverity.WARNING, 0.9, FlagStatus.VERIFIED,
                          f"Freeze authority: {freeze_auth}.", "Solscan mint account"),
            )
        if mint_known and freeze_known and not mint_auth and not freeze_auth:
            sheet.add(5, "Mint and freeze authorities revoked")

        return sheet.result(coverage_confidence(present, 3))
