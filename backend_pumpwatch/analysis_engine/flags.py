"""
Risk flag normalization, aggregation and the explanation table.

Modules may emit flags as bare keys (LegacyFlag, or plain strings) or as full
RiskFlag records. Everything is normalized to RiskFlag before aggregation.
Liquidity-lock flags are mutually exclusive in the output: only the one with
the highest priority survives.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from backend_pumpwatch.analysis_engine.models import (
    FlagSeverity,
    FlagStatus,
    LegacyFlag,
    ModuleResult,
    RiskFlag,
)

LEGACY_FLAG_CONFIDENCE = 0.5

CRITICAL_FLAGS = frozenset(
    {
        "lp_unlocked",
        "rug_risk_liquidity",
        "circular_trading",
        "wash_trading",
        "whale_dominated",
        "dev_dumping",
        "mass_exit",
        "bot_pattern",
    }
)

# Highest priority first
LP_FLAG_PRIORITY = ("lp_unlocked", "lp_mixed", "lp_stale", "lp_unverified", "lp_unknown")

FLAG_LABELS = {
    "lp_unlocked": "LP unlocked (verified)",
    "lp_unverified": "LP lock not verified",
    "lp_mixed": "Multiple pools, lock mixed",
    "lp_stale": "LP lock data outdated",
    "lp_unknown": "LP lock status unknown",
    "whale_dominated": "Whale dominated",
    "high_concentration": "High holder concentration",
    "circular_trading": "Circular trading detected",
    "wash_trading": "Wash trading suspected",
    "bot_pattern": "Bot pattern detected",
    "wallet_recycling": "Wallet recycling detected",
    "shallow_liquidity": "Shallow liquidity",
    "rug_risk_liquidity": "Critical liquidity risk",
    "post_pump": "Already pumped",
    "recent_pump": "Recent pump",
    "distribution_starting": "Distribution starting",
    "dev_dumping": "Dev selling detected",
    "selling_pressure": "Selling pressure",
    "flipper_heavy": "High flipper activity",
    "low_volume": "Low volume",
    "low_holders": "Few holders",
    "identical_amounts": "Identical tx amounts",
    "uniform_tx_sizes": "Uniform tx sizes",
    "phase_transition": "Phase transition risk",
    "possibly_dead": "Possibly abandoned",
    "stale_activity": "Stale activity",
    "dormant": "Dormant token",
    "concentrated_holdings": "Concentrated holdings",
    "late_stage_pump": "Late stage pump",
    "mass_exit": "Mass exit happening",
    "distribution_phase": "Distribution phase",
    "whale_dependent": "Whale dependent",
    "data_unavailable": "Data unavailable",
    "unverified_activity": "Activity unverified",
    "mint_authority_active": "Mint authority active",
    "freeze_authority_active": "Freeze authority active",
}

_SEVERITY_RANK = {FlagSeverity.WARNING: 0, FlagSeverity.CRITICAL: 1}


def format_flag_label(key: str) -> str:
    return FLAG_LABELS.get(key) or key.replace("_", " ")


def severity_for_key(key: str) -> FlagSeverity:
    return FlagSeverity.CRITICAL if key in CRITICAL_FLAGS else FlagSeverity.WARNING


def _clamp_confidence(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, min(1.0, float(value)))


def _coerce_enum(enum_cls: Any, value: Any, default: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


def normalize_flag(flag: RiskFlag | LegacyFlag | str | Mapping[str, Any]) -> RiskFlag:
    """
    Convert any module-boundary flag form to a RiskFlag.

    Legacy keys get confidence 0.5, status unverified and a severity from
    CRITICAL_FLAGS. Raises ValueError when no key can be found.
    """
    if isinstance(flag, RiskFlag):
        return RiskFlag(
            key=flag.key,
            label=flag.label or format_flag_label(flag.key),
            severity=_coerce_enum(FlagSeverity, flag.severity, severity_for_key(flag.key)),
            confidence=_clamp_confidence(flag.confidence, LEGACY_FLAG_CONFIDENCE),
            status=_coerce_enum(FlagStatus, flag.status, FlagStatus.UNVERIFIED),
            evidence=flag.evidence or "",
            check_source=flag.check_source or None,
        )
    if isinstance(flag, Mapping) and flag.get("key") and flag.get("severity"):
        key = str(flag["key"])
        return RiskFlag(
            key=key,
            label=flag.get("label") or format_flag_label(key),
            severity=_coerce_enum(FlagSeverity, flag.get("severity"), severity_for_key(key)),
            confidence=_clamp_confidence(flag.get("confidence"), LEGACY_FLAG_CONFIDENCE),
            status=_coerce_enum(FlagStatus, flag.get("status"), FlagStatus.UNVERIFIED),
            evidence=str(flag.get("evidence") or ""),
            check_source=flag.get("checkSource") or flag.get("check_source") or None,
        )

    if isinstance(flag, LegacyFlag):
        key = flag.key
    elif isinstance(flag, str):
        key = flag
    elif isinstance(flag, Mapping) and flag.get("key"):
        key = str(flag["key"])
    else:
        raise ValueError(f"unrecognized flag: {flag!r}")
    return RiskFlag(
        key=key,
        label=format_flag_label(key),
        severity=severity_for_key(key),
        confidence=LEGACY_FLAG_CONFIDENCE,
        status=FlagStatus.UNVERIFIED,
    )


def _outranks(candidate: RiskFlag, existing: RiskFlag) -> bool:
    """Higher severity wins; on a severity tie, higher confidence wins."""
    c_rank = _SEVERITY_RANK[candidate.severity]
    e_rank = _SEVERITY_RANK[existing.severity]
    if c_rank != e_rank:
        return c_rank > e_rank
    return candidate.confidence > existing.confidence


def aggregate_flags(module_results: Mapping[str, ModuleResult] | Iterable[ModuleResult]) -> list[RiskFlag]:
    """
    Normalize, deduplicate and order the flags of all modules.

    Returns critical flags first, then descending confidence within a tier.
    """
    results = module_results.values() if isinstance(module_results, Mapping) else module_results
    by_key: dict[str, RiskFlag] = {}
    best_lp: RiskFlag | None = None

    for result in results:
        for raw in result.flags or ():
            flag = normalize_flag(raw)
            if flag.key in LP_FLAG_PRIORITY:
                if best_lp is None:
                    best_lp = flag
                    continue
                new_rank = LP_FLAG_PRIORITY.index(flag.key)
                cur_rank = LP_FLAG_PRIORITY.index(best_lp.key)
                if new_rank < cur_rank or (new_rank == cur_rank and _outranks(flag, best_lp)):
                    best_lp = flag
                continue
            existing = by_key.get(flag.key)
            if existing is None or _outranks(flag, existing):
                by_key[flag.key] = flag

    if best_lp is not None:
        by_key[best_lp.key] = best_lp

    return sorted(by_key.values(), key=lambda f: (0 if f.is_critical else 1, -f.confidence))


def _explain(label: str, meaning: str, how_to_verify: str) -> dict[str, str]:
    return {"label": label, "meaning": meaning, "how_to_verify": how_to_verify}


FLAG_EXPLANATIONS: dict[str, dict[str, str]] = {
    "lp_unlocked": _explain(
        FLAG_LABELS["lp_unlocked"],
        "The pooled trading liquidity is not locked. Whoever holds the LP tokens can withdraw it at any time.",
        "Open the pair on a lock checker (RugCheck) and confirm the locked LP percentage.",
    ),
    "lp_mixed": _explain(
        FLAG_LABELS["lp_mixed"],
        "The token trades in several pools and only some of the liquidity is locked.",
        "List every pool on DexScreener and check the lock status of each one.",
    ),
    "lp_stale": _explain(
        FLAG_LABELS["lp_stale"],
        "The last liquidity-lock check is old; the lock may have expired or been removed since.",
        "Re-run the lock check on RugCheck and compare the timestamp.",
    ),
    "lp_unverified": _explain(
        FLAG_LABELS["lp_unverified"],
        "A lock was reported but could not be confirmed against a primary source.",
        "Find the lock transaction on Solscan and confirm the locker program and unlock date.",
    ),
    "lp_unknown": _explain(
        FLAG_LABELS["lp_unknown"],
        "No liquidity-lock information was available for this token.",
        "Look the pair up on RugCheck or DexScreener; treat it as unlocked until proven otherwise.",
    ),
    "rug_risk_liquidity": _explain(
        FLAG_LABELS["rug_risk_liquidity"],
        "Liquidity is tiny and not locked, so a single withdrawal can zero the price.",
        "Check pooled liquidity in USD on DexScreener together with the lock status.",
    ),
    "mint_authority_active": _explain(
        FLAG_LABELS["mint_authority_active"],
        "The mint authority is still set, so new supply can be created at will.",
        "Open the mint account on Solscan and check that Mint Authority is empty.",
    ),
    "freeze_authority_active": _explain(
        FLAG_LABELS["freeze_authority_active"],
        "The freeze authority is still set, so holder token accounts can be frozen.",
        "Open the mint account on Solscan and check that Freeze Authority is empty.",
    ),
    "whale_dominated": _explain(
        FLAG_LABELS["whale_dominated"],
        "A single wallet holds a large share of supply and can crash the price alone.",
        "Check the top holder list on Solscan, excluding pool and burn addresses.",
    ),
    "whale_dependent": _explain(
        FLAG_LABELS["whale_dependent"],
        "Price support depends heavily on one large holder staying in.",
        "Watch the largest holder's wallet for outgoing transfers.",
    ),
    "high_concentration": _explain(
        FLAG_LABELS["high_concentration"],
        "The top 10 wallets hold most of the supply.",
        "Sum the top 10 holder percentages on Solscan or Birdeye.",
    ),
    "concentrated_holdings": _explain(
        FLAG_LABELS["concentrated_holdings"],
        "Holdings are more concentrated than usual for a token of this age.",
        "Compare the top 10 share with similar tokens on Birdeye.",
    ),
    "dev_dumping": _explain(
        FLAG_LABELS["dev_dumping"],
        "The creator wallet has sold a large part of its allocation.",
        "Open the creator wallet on Solscan and review its sells of this token.",
    ),
    "selling_pressure": _explain(
        FLAG_LABELS["selling_pressure"],
        "Sell transactions clearly outnumber buys.",
        "Compare buy and sell counts on the DexScreener pair page.",
    ),
    "mass_exit": _explain(
        FLAG_LABELS["mass_exit"],
        "The number of holders is falling quickly.",
        "Track the holder count over the last day on Birdeye or Solscan.",
    ),
    "distribution_phase": _explain(
        FLAG_LABELS["distribution_phase"],
        "Early holders are steadily handing their bags to newer buyers.",
        "Look at the holder count trend together with the price trend.",
    ),
    "flipper_heavy": _explain(
        FLAG_LABELS["flipper_heavy"],
        "Many holders bought and sold within minutes; few are holding.",
        "Sample recent buyers on Solscan and check how long they held.",
    ),
    "circular_trading": _explain(
        FLAG_LABELS["circular_trading"],
        "Tokens move in loops between related wallets, inflating volume.",
        "Follow a few transfers on Solscan and see if they return to the sender.",
    ),
    "wash_trading": _explain(
        FLAG_LABELS["wash_trading"],
        "Very few wallets generate most of the trades.",
        "Compare transaction count with unique traders on the pair page.",
    ),
    "bot_pattern": _explain(
        FLAG_LABELS["bot_pattern"],
        "A large share of transactions has automated, bot-like timing.",
        "Check the trade list for bursts in the same block from fresh wallets.",
    ),
    "wallet_recycling": _explain(
        FLAG_LABELS["wallet_recycling"],
        "The same wallets keep re-entering to simulate new demand.",
        "Look for repeated buyer addresses in the recent trade list.",
    ),
    "identical_amounts": _explain(
        FLAG_LABELS["identical_amounts"],
        "Many trades use exactly the same amount, a common scripted-volume sign.",
        "Sort recent trades by size and look for repeated values.",
    ),
    "uniform_tx_sizes": _explain(
        FLAG_LABELS["uniform_tx_sizes"],
        "Trade sizes are unnaturally uniform.",
        "Compare trade sizes in the recent trade list.",
    ),
    "post_pump": _explain(
        FLAG_LABELS["post_pump"],
        "The price has already multiplied; late entries carry the most downside.",
        "Check the 24h price change on DexScreener.",
    ),
    "recent_pump": _explain(
        FLAG_LABELS["recent_pump"],
        "The price moved sharply in the last hours.",
        "Check the 1h and 6h price changes on DexScreener.",
    ),
    "late_stage_pump": _explain(
        FLAG_LABELS["late_stage_pump"],
        "After a large run the price is starting to roll over.",
        "Compare the 1h change with the 24h change on the chart.",
    ),
    "distribution_starting": _explain(
        FLAG_LABELS["distribution_starting"],
        "Sellers are starting to outnumber buyers after a move up.",
        "Compare recent buy and sell counts on DexScreener.",
    ),
    "phase_transition": _explain(
        FLAG_LABELS["phase_transition"],
        "Momentum is flipping direction; the trend is unstable.",
        "Watch the 1h candle structure against the 6h trend.",
    ),
    "low_volume": _explain(
        FLAG_LABELS["low_volume"],
        "Very little trading volume in the last 24h.",
        "Check 24h volume on DexScreener.",
    ),
    "low_holders": _explain(
        FLAG_LABELS["low_holders"],
        "Only a handful of wallets hold the token.",
        "Check the holder count on Solscan.",
    ),
    "shallow_liquidity": _explain(
        FLAG_LABELS["shallow_liquidity"],
        "Pool liquidity is thin, so small trades move the price a lot.",
        "Check pooled liquidity on DexScreener.",
    ),
    "data_unavailable": _explain(
        FLAG_LABELS["data_unavailable"],
        "Market data providers returned nothing for this token.",
        "Search the mint on DexScreener and Solscan directly.",
    ),
    "possibly_dead": _explain(
        FLAG_LABELS["possibly_dead"],
        "No trades for days; the project may be abandoned.",
        "Check the time of the last trade on the pair page.",
    ),
    "dormant": _explain(
        FLAG_LABELS["dormant"],
        "Trading has paused for a day or more.",
        "Check recent trades and the project's social channels.",
    ),
    "stale_activity": _explain(
        FLAG_LABELS["stale_activity"],
        "Activity has slowed down noticeably in the last hours.",
        "Compare 1h and 24h transaction counts.",
    ),
    "unverified_activity": _explain(
        FLAG_LABELS["unverified_activity"],
        "Activity is only reported by market data and could not be confirmed on-chain.",
        "Open the token's recent transactions on Solscan.",
    ),
}


def explain_flag(key: str) -> dict[str, str]:
    """Explanation entry for a flag key; generic text for unknown keys."""
    entry = FLAG_EXPLANATIONS.get(key)
    if entry is not None:
        return dict(entry)
    return _explain(
        format_flag_label(key),
        "No detailed explanation is available for this flag.",
        "Inspect the token on Solscan and DexScreener.",
    )
