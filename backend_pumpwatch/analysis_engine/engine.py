"""
Token analyzer orchestration.

Runs every module over one SignalBundle, combines module scores with fixed
weights, aggregates flags, decides the verdict and picks the explanation
bullets. Pure and synchronous once the bundle is in hand.
"""

from __future__ import annotations

import time
from typing import Any, Iterable, Mapping

from backend_pumpwatch.analysis_engine.flags import aggregate_flags
from backend_pumpwatch.analysis_engine.models import AnalysisResult, ModuleResult
from backend_pumpwatch.analysis_engine.modules import DEFAULT_MODULES, AnalyzerModule, weight_for
from backend_pumpwatch.analysis_engine.quality import (
    build_token_info,
    determine_data_quality,
    is_launch_platform_origin,
    is_very_new,
)
from backend_pumpwatch.analysis_engine.reasons import collect_reasons, select_best_reasons
from backend_pumpwatch.analysis_engine.signals import SignalBundle
from backend_pumpwatch.analysis_engine.verdict import determine_verdict
from backend_pumpwatch.pumpwatch_logging import get_logger

logger = get_logger(__name__)

VERY_NEW_CONFIDENCE_CAP = 0.55


def failed_module_result(name: str, error: Exception) -> ModuleResult:
    """Worst-case stand-in for a module that raised."""
    return ModuleResult(score=0.0, confidence=0.0, reasons=[f"Module {name} failed: {error}"], flags=[])


def run_modules(bundle: SignalBundle, modules: Iterable[AnalyzerModule]) -> dict[str, ModuleResult]:
    results: dict[str, ModuleResult] = {}
    for module in modules:
        try:
            results[module.name] = module.evaluate(bundle)
        except Exception as e:
            logger.warning("analysis_module_failed", module=module.name, error=str(e))
            results[module.name] = failed_module_result(module.name, e)
    return results


def combine_scores(module_results: Mapping[str, ModuleResult]) -> tuple[float, float]:
    """(weighted score, unweighted mean confidence); (0, 0) with no modules."""
    if not module_results:
        return 0.0, 0.0
    total_weight = 0.0
    weighted = 0.0
    conf_sum = 0.0
    for name, result in module_results.items():
        w = weight_for(name)
        weighted += result.score * w
        total_weight += w
        conf_sum += result.confidence
    weighted_score = weighted / total_weight if total_weight > 0 else 0.0
    return weighted_score, conf_sum / len(module_results)


def analyze_token(
    address: str,
    signals: SignalBundle | Mapping[str, Any] | None,
    *,
    now: float | None = None,
    modules: Iterable[AnalyzerModule] | None = None,
) -> AnalysisResult:
    """
    Analyze one token from its signal bundle.

    Args:
        address: Token mint; echoed back, not validated here.
        signals: Raw provider bundle or a prepared SignalBundle.
        now: Unix seconds (token age and result timestamp); defaults to now.
        modules: Override the module set (tests); defaults to all six.

    Returns:
        AnalysisResult with 3..5 reasons and deduplicated, ordered flags.
    """
    now = time.time() if now is None else now
    bundle = signals if isinstance(signals, SignalBundle) else SignalBundle.wrap(signals, now=now)

    module_results = run_modules(bundle, DEFAULT_MODULES if modules is None else modules)
    weighted_score, avg_confidence = combine_scores(module_results)
    flags = aggregate_flags(module_results)
    data_quality = determine_data_quality(bundle)
    very_new = is_very_new(bundle)
    if very_new:
        avg_confidence = min(avg_confidence, VERY_NEW_CONFIDENCE_CAP)

    decision = determine_verdict(
        weighted_score,
        avg_confidence,
        module_results,
        flags,
        data_quality,
        is_launch_platform=is_launch_platform_origin(bundle),
        very_new=very_new,
    )
    reasons = select_best_reasons(collect_reasons(module_results), decision.verdict, weight_for)

    logger.info(
        "token_analyzed",
        mint=address,
        verdict=decision.verdict.value,
        confidence=decision.confidence.value,
        rule=decision.rule,
        weighted_score=round(weighted_score, 1),
        flags=[f.key for f in flags],
        data_quality=data_quality.value,
    )
    return AnalysisResult(
        address=address,
        verdict=decision.verdict,
        confidence=decision.confidence,
        reasons=reasons,
        risk_flags=flags,
        timing_note=decision.timing_note,
        data_quality=data_quality,
        module_scores={name: r.summary() for name, r in module_results.items()},
        token_info=build_token_info(bundle),
        timestamp=int(now * 1000),
    )
