"""
Data models for the token analyzer.

Responsibilities:
- Risk flags in both module-boundary forms (bare legacy key, full record).
- Per-module results and the final AnalysisResult served by the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class FlagSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class FlagStatus(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    STALE = "stale"
    AMBIGUOUS = "ambiguous"


class Verdict(str, Enum):
    ENTER = "ENTER"
    WAIT = "WAIT"
    IGNORE = "IGNORE"
    EXIT = "EXIT"


class ConfidenceLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class DataQuality(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


@dataclass(frozen=True)
class LegacyFlag:
    """Bare flag identifier; severity and label are inferred at aggregation."""

    key: str


@dataclass
class RiskFlag:
    """
    Structured risk flag.

    Every flag carries how sure the emitting module is (confidence) and
    whether the underlying fact was checked against a primary source (status).
    """

    key: str
    label: str
    severity: FlagSeverity
    confidence: float
    status: FlagStatus = FlagStatus.UNVERIFIED
    evidence: str = ""
    """Plain-English explanation of what was observed."""
    check_source: str | None = None
    """Where a user can verify the claim themselves."""

    @property
    def is_critical(self) -> bool:
        return self.severity == FlagSeverity.CRITICAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "severity": self.severity.value,
            "confidence": round(self.confidence, 3),
            "status": self.status.value,
            "evidence": self.evidence,
            "checkSource": self.check_source,
        }


Flag = Union[RiskFlag, LegacyFlag]


@dataclass
class ModuleResult:
    """
    Output of one analyzer module.

    score: 0..100, higher is more favorable. confidence: 0..1, drops as the
    module's inputs go missing.
    """

    score: float
    confidence: float
    reasons: list[str] = field(default_factory=list)
    flags: list[Flag] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {"score": round(self.score), "confidence": round(self.confidence, 3)}


@dataclass(frozen=True)
class AnalysisResult:
    """
    Final analyzer output for one token.

    Constructed once per request and never mutated; to_dict() is the API form.
    """

    address: str
    verdict: Verdict
    confidence: ConfidenceLevel
    reasons: list[str]
    risk_flags: list[RiskFlag]
    timing_note: str | None
    data_quality: DataQuality
    module_scores: dict[str, dict[str, Any]]
    token_info: dict[str, Any]
    timestamp: int
    """Unix milliseconds when the analysis was produced."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": {"address": self.address},
            "verdict": self.verdict.value,
            "confidence": self.confidence.value,
            "reasons": list(self.reasons),
            "riskFlags": [f.to_dict() for f in self.risk_flags],
            "timingNote": self.timing_note,
            "dataQuality": self.data_quality.value,
            "moduleScores": self.module_scores,
            "tokenInfo": self.token_info,
            "timestamp": self.timestamp,
        }
