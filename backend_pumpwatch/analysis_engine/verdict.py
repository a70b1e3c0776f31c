"""
Verdict decision tree for the token analyzer.

Evaluated in strict priority order, first match wins:

1. verified critical flag                         -> EXIT
2. rug_narrative < 35                              -> EXIT
3. fake_move < 30 and a fake-volume flag present   -> EXIT
4. strong weighted score, no critical flag, full data -> ENTER
5. moderate weighted score with acceptable rug risk   -> WAIT
6. otherwise                                       -> IGNORE

Then: partial data caps confidence at MEDIUM. A very new token resolved to ENTER
is LOW confidence, and when it came from the launch platform its note is the
volatility warning instead of the limited-history one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from backend_pumpwatch.analysis_engine.models import (
    ConfidenceLevel,
    DataQuality,
    FlagStatus,
    ModuleResult,
    RiskFlag,
    Verdict,
)

NEUTRAL_MODULE_SCORE = 50.0
FAKE_VOLUME_FLAGS = frozenset({"circular_trading", "wash_trading", "bot_pattern"})

EXIT_RUG_MAX = 35
EXIT_FAKE_MOVE_MAX = 30
ENTER_WEIGHTED_MIN = 68
ENTER_FAKE_MOVE_MIN = 55
ENTER_TOO_LATE_MIN = 50
ENTER_RUG_MIN = 55
WAIT_WEIGHTED_MIN = 50
WAIT_RUG_MIN = 45
WAIT_TOO_LATE_BELOW = 55
WAIT_FAKE_MOVE_MIN = 45
IGNORE_WEAK_WEIGHTED = 40
IGNORE_MAX_FLAGS = 4

NOTE_EXIT_CRITICAL = "Critical verified risk detected — avoid this token."
NOTE_EXIT_RUG = "Rug risk signals too high — exit or avoid."
NOTE_EXIT_FAKE = "Fake volume patterns detected — likely manipulation."
NOTE_ENTER_VERY_NEW = "Very new token — limited history to verify. Size accordingly."
NOTE_ENTER_NARROWING = "Entry window may be narrowing — watch for distribution signs."
NOTE_WAIT_MOVED = "Already moved significantly — wait for pullback or confirmation."
NOTE_WAIT_VOLUME = "Some volume patterns unclear — monitor for organic confirmation."
NOTE_WAIT_TOO_EARLY = "Too early to assess reliably — check back in a few hours."
NOTE_WAIT_MIXED = "Mixed signals — wait for clearer setup."
NOTE_IGNORE_WEAK = "Insufficient quality signals — not worth your attention."
NOTE_IGNORE_FLAGS = "Too many risk flags to justify attention."
NOTE_NEW_LAUNCH_VOLATILE = "New pump.fun token — high volatility expected."


@dataclass(frozen=True)
class VerdictDecision:
    verdict: Verdict
    confidence: ConfidenceLevel
    timing_note: str | None
    rule: int
    """Priority (1..6) of the rule that matched."""


def module_score(module_results: Mapping[str, ModuleResult], name: str) -> float:
    """Score of a module, neutral 50 when the module did not run."""
    result = module_results.get(name)
    if result is None or result.score is None:
        return NEUTRAL_MODULE_SCORE
    return float(result.score)


def _level(avg_conf: float, high: float, medium: float | None = None) -> ConfidenceLevel:
    if avg_conf >= high:
        return ConfidenceLevel.HIGH
    if medium is None or avg_conf >= medium:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def determine_verdict(
    weighted_score: float,
    avg_confidence: float,
    module_results: Mapping[str, ModuleResult],
    flags: list[RiskFlag],
    data_quality: DataQuality,
    *,
    is_launch_platform: bool = False,
    very_new: bool = False,
) -> VerdictDecision:
    fake_move = module_score(module_results, "fake_move")
    too_late = module_score(module_results, "too_late")
    rug = module_score(module_results, "rug_narrative")
    has_critical = any(f.is_critical for f in flags)

    if any(f.is_critical and f.status == FlagStatus.VERIFIED for f in flags):
        verdict, confidence, note, rule = Verdict.EXIT, _level(avg_confidence, 0.7), NOTE_EXIT_CRITICAL, 1
    elif rug < EXIT_RUG_MAX:
        verdict, confidence, note, rule = Verdict.EXIT, _level(avg_confidence, 0.6), NOTE_EXIT_RUG, 2
    elif fake_move < EXIT_FAKE_MOVE_MAX and any(f.key in FAKE_VOLUME_FLAGS for f in flags):
        verdict, confidence, note, rule = Verdict.EXIT, ConfidenceLevel.MEDIUM, NOTE_EXIT_FAKE, 3
    elif (
        weighted_score >= ENTER_WEIGHTED_MIN
        and fake_move >= ENTER_FAKE_MOVE_MIN
        and too_late >= ENTER_TOO_LATE_MIN
        and rug >= ENTER_RUG_MIN
        and not has_critical
        and data_quality == DataQuality.FULL
    ):
        verdict, confidence, note, rule = Verdict.ENTER, _level(avg_confidence, 0.7, 0.5), None, 4
        if very_new:
            confidence = ConfidenceLevel.LOW
            note = NOTE_ENTER_VERY_NEW
        elif too_late < 60:
            note = NOTE_ENTER_NARROWING
    elif (
        weighted_score >= WAIT_WEIGHTED_MIN
        and rug >= WAIT_RUG_MIN
        and (too_late < WAIT_TOO_LATE_BELOW or fake_move >= WAIT_FAKE_MOVE_MIN)
    ):
        verdict, rule = Verdict.WAIT, 5
        confidence = ConfidenceLevel.MEDIUM if avg_confidence >= 0.6 else ConfidenceLevel.LOW
        if too_late < 50:
            note = NOTE_WAIT_MOVED
        elif fake_move < 55:
            note = NOTE_WAIT_VOLUME
        elif very_new:
            note = NOTE_WAIT_TOO_EARLY
        else:
            note = NOTE_WAIT_MIXED
    else:
        verdict, rule = Verdict.IGNORE, 6
        confidence = ConfidenceLevel.MEDIUM if avg_confidence >= 0.6 else ConfidenceLevel.LOW
        note = None
        if weighted_score < IGNORE_WEAK_WEIGHTED:
            note = NOTE_IGNORE_WEAK
        elif len(flags) > IGNORE_MAX_FLAGS:
            note = NOTE_IGNORE_FLAGS

    if data_quality == DataQuality.PARTIAL and confidence == ConfidenceLevel.HIGH:
        confidence = ConfidenceLevel.MEDIUM

    if is_launch_platform and very_new and verdict == Verdict.ENTER:
        note = NOTE_NEW_LAUNCH_VOLATILE

    return VerdictDecision(verdict=verdict, confidence=confidence, timing_note=note, rule=rule)
