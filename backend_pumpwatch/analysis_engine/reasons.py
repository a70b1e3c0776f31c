"""
Reason selection: pick 3 to 5 explanation bullets for the final verdict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from backend_pumpwatch.analysis_engine.models import ModuleResult, Verdict

MIN_REASON_CONFIDENCE = 0.3
MIN_REASONS = 3
MAX_REASONS = 5
DEDUPE_PREFIX_LEN = 30
ENTER_STRONG_SCORE = 60
EXIT_PRIORITY_MODULES = frozenset({"rug_narrative", "fake_move"})

# First entry is the primary filler; the rest top the list up to MIN_REASONS
VERDICT_FILLERS: dict[Verdict, tuple[str, ...]] = {
    Verdict.ENTER: (
        "Structural signals look acceptable",
        "No verified critical risk detected",
        "Data coverage is sufficient for a call",
    ),
    Verdict.WAIT: (
        "Timing or signal clarity needs improvement",
        "Setup is not confirmed yet",
        "Re-check once more trading data is in",
    ),
    Verdict.IGNORE: (
        "Not enough evidence to warrant attention",
        "Signals are too weak to act on",
        "Nothing here stands out from the noise",
    ),
    Verdict.EXIT: (
        "Risk signals outweigh potential upside",
        "Downside risk is not worth the exposure",
        "Protect capital first on tokens like this",
    ),
}


@dataclass(frozen=True)
class TaggedReason:
    text: str
    module: str
    score: float
    confidence: float


def collect_reasons(module_results: Mapping[str, ModuleResult]) -> list[TaggedReason]:
    out: list[TaggedReason] = []
    for name, result in module_results.items():
        for text in result.reasons or ():
            if isinstance(text, str) and text.strip():
                out.append(TaggedReason(text.strip(), name, result.score, result.confidence))
    return out


def _sort_key(verdict: Verdict, weight_for: Callable[[str], float]) -> Callable[[TaggedReason], tuple]:
    def key(r: TaggedReason) -> tuple:
        relevance = -(r.confidence * weight_for(r.module))
        if verdict == Verdict.EXIT:
            return (0 if r.module in EXIT_PRIORITY_MODULES else 1, relevance)
        if verdict == Verdict.ENTER:
            return (0 if r.score >= ENTER_STRONG_SCORE else 1, relevance)
        return (relevance,)

    return key


def _prefix(text: str) -> str:
    return text.lower()[:DEDUPE_PREFIX_LEN]


def select_best_reasons(
    reasons: list[TaggedReason],
    verdict: Verdict,
    weight_for: Callable[[str], float],
) -> list[str]:
    """
    Filter, rank, dedupe and cap the reason pool; always returns 3..5 strings.

    Near-duplicates are detected by their lowercase 30-character prefix.
    """
    pool = [r for r in reasons if r.confidence >= MIN_REASON_CONFIDENCE]
    pool.sort(key=_sort_key(verdict, weight_for))

    selected: list[str] = []
    seen: set[str] = set()
    for reason in pool:
        prefix = _prefix(reason.text)
        if prefix in seen:
            continue
        seen.add(prefix)
        selected.append(reason.text)
        if len(selected) >= MAX_REASONS:
            break

    for filler in VERDICT_FILLERS[verdict]:
        if len(selected) >= MIN_REASONS:
            break
        if _prefix(filler) not in seen:
            seen.add(_prefix(filler))
            selected.append(filler)
    return selected[:MAX_REASONS]
