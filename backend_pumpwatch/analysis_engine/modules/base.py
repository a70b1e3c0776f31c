"""
Shared contract and helpers for analyzer modules.

Each module consumes the whole SignalBundle and returns a ModuleResult. A
module never raises for missing inputs: it scores what is present and lowers
its confidence by the share of inputs it could not read.
"""

from __future__ import annotations

from backend_pumpwatch.analysis_engine.flags import format_flag_label
from backend_pumpwatch.analysis_engine.models import (
    FlagSeverity,
    FlagStatus,
    LegacyFlag,
    ModuleResult,
    RiskFlag,
)
from backend_pumpwatch.analysis_engine.signals import SignalBundle

# Confidence floor with no inputs; full coverage reaches 1.0
MIN_CONFIDENCE = 0.2


def coverage_confidence(present: int, total: int) -> float:
    if total <= 0:
        return MIN_CONFIDENCE
    share = max(0, min(present, total)) / total
    return round(MIN_CONFIDENCE + (1.0 - MIN_CONFIDENCE) * share, 3)


def fmt_usd(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:.0f}"


def make_flag(
    key: str,
    severity: FlagSeverity,
    confidence: float,
    status: FlagStatus,
    evidence: str,
    check_source: str | None = None,
) -> RiskFlag:
    return RiskFlag(
        key=key,
        label=format_flag_label(key),
        severity=severity,
        confidence=confidence,
        status=status,
        evidence=evidence,
        check_source=check_source,
    )


class ScoreSheet:
    """Running score for one module: start at a base, apply deltas, clamp on finish."""

    def __init__(self, base: float) -> None:
        self.score = float(base)
        self.reasons: list[str] = []
        self.flags: list[RiskFlag | LegacyFlag] = []

    def add(self, delta: float, reason: str | None = None, flag: RiskFlag | LegacyFlag | None = None) -> None:
        self.score += delta
        if reason:
            self.reasons.append(reason)
        if flag is not None:
            self.flags.append(flag)

    def result(self, confidence: float) -> ModuleResult:
        return ModuleResult(
            score=max(0.0, min(100.0, self.score)),
            confidence=max(0.0, min(1.0, confidence)),
            reasons=self.reasons,
            flags=self.flags,
        )


class AnalyzerModule:
    """
    Base class for the analyzer strategies.

    Subclasses set `name` (weight lookup key) and `emits` (every flag key the
    module can produce) and implement evaluate().
    """

    name: str = ""
    emits: frozenset[str] = frozenset()

    def evaluate(self, bundle: SignalBundle) -> ModuleResult:
        raise NotImplementedError
