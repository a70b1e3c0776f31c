"""
Analysis engine package — multi-module token analyzer.

Six heuristic modules score a provider signal bundle; their results are
combined into an ENTER / WAIT / IGNORE / EXIT verdict with confidence,
deduplicated risk flags and 3-5 explanation bullets.
"""

from backend_pumpwatch.analysis_engine.models import (
    AnalysisResult,
    ConfidenceLevel,
    DataQuality,
    FlagSeverity,
    FlagStatus,
    LegacyFlag,
    ModuleResult,
    RiskFlag,
    Verdict,
)
from backend_pumpwatch.analysis_engine.signals import SignalBundle
from backend_pumpwatch.analysis_engine.flags import (
    CRITICAL_FLAGS,
    FLAG_EXPLANATIONS,
    LP_FLAG_PRIORITY,
    aggregate_flags,
    explain_flag,
    normalize_flag,
)
from backend_pumpwatch.analysis_engine.engine import analyze_token

__all__ = [
    "AnalysisResult",
    "CRITICAL_FLAGS",
    "ConfidenceLevel",
    "DataQuality",
    "FLAG_EXPLANATIONS",
    "FlagSeverity",
    "FlagStatus",
    "LP_FLAG_PRIORITY",
    "LegacyFlag",
    "ModuleResult",
    "RiskFlag",
    "SignalBundle",
    "Verdict",
    "aggregate_flags",
    "analyze_token",
    "explain_flag",
    "normalize_flag",
]
