"""
Data-quality grading and token display info for an analysis.
"""

from __future__ import annotations

from typing import Any

from backend_pumpwatch.analysis_engine.models import DataQuality
from backend_pumpwatch.analysis_engine.signals import SignalBundle

# Points: helius present+tokenInfo+holderDistribution (3), market data success+lpLock (2)
HELIUS_POINTS = 3
MARKET_POINTS = 2
FULL_QUALITY_RATIO = 0.7
VERY_NEW_HOURS = 6.0


def data_quality_points(bundle: SignalBundle) -> tuple[int, int]:
    """(achieved, possible) data-quality points."""
    achieved = 0
    if bundle.provider_present("helius"):
        achieved += 1
        if bundle.section("helius", "tokenInfo"):
            achieved += 1
        if bundle.section("helius", "holderDistribution"):
            achieved += 1
    if bundle.provider_succeeded("dexscreener"):
        achieved += 1
        if bundle.section("dexscreener", "lpLock"):
            achieved += 1
    return achieved, HELIUS_POINTS + MARKET_POINTS


def determine_data_quality(bundle: SignalBundle) -> DataQuality:
    achieved, possible = data_quality_points(bundle)
    return DataQuality.FULL if achieved >= possible * FULL_QUALITY_RATIO else DataQuality.PARTIAL


def is_very_new(bundle: SignalBundle) -> bool:
    """Created less than 6 hours ago; unknown age is not very new."""
    age = bundle.age_hours()
    return age is not None and age < VERY_NEW_HOURS


def is_launch_platform_origin(bundle: SignalBundle) -> bool:
    return bundle.get("helius", "metadata", "isPumpFunOrigin") is True


def build_token_info(bundle: SignalBundle) -> dict[str, Any]:
    """Display fields; nulls where the providers had nothing."""
    created = bundle.number("helius", "metadata", "createdAt")
    return {
        "symbol": bundle.text("helius", "metadata", "symbol"),
        "name": bundle.text("helius", "metadata", "name"),
        "holders": bundle.number("helius", "tokenInfo", "holders"),
        "liquidity": bundle.number("helius", "tokenInfo", "liquidity"),
        "volume24h": bundle.number("helius", "tokenInfo", "volume24h"),
        "isPumpFunOrigin": is_launch_platform_origin(bundle),
        "createdAt": int(created) if created is not None else None,
    }
