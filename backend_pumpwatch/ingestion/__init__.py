"""
Ingestion package — per-token signal fetch and latest-wins analysis runs.
"""

from backend_pumpwatch.ingestion.analysis_runner import AnalysisRunner
from backend_pumpwatch.ingestion.signal_fetcher import SignalFetcher

__all__ = ["AnalysisRunner", "SignalFetcher"]
