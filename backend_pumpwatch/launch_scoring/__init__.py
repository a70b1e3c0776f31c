"""
Launch-integrity scoring — per-launch risk score, verdict bucket and reasons.
"""

from backend_pumpwatch.launch_scoring.batch import build_creator_counts, recent_creators, score_feed
from backend_pumpwatch.launch_scoring.integrity import score_launch, verdict_for_score
from backend_pumpwatch.launch_scoring.models import (
    VERDICT_CAUTION,
    VERDICT_CLEAN,
    VERDICT_HIGH_RISK,
    VERDICT_UNKNOWN,
    VERDICTS,
    OnchainMintInfo,
    ScoredToken,
)

__all__ = [
    "OnchainMintInfo",
    "ScoredToken",
    "VERDICTS",
    "VERDICT_CAUTION",
    "VERDICT_CLEAN",
    "VERDICT_HIGH_RISK",
    "VERDICT_UNKNOWN",
    "build_creator_counts",
    "recent_creators",
    "score_feed",
    "score_launch",
    "verdict_for_score",
]
