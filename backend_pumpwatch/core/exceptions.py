"""
Application-level exceptions.

Scoring code never raises for malformed input; these are raised by the
collaborators around it (decoder, providers, store, analysis runner) and
mapped to HTTP responses by the API server.
"""

from __future__ import annotations


class PumpwatchError(Exception):
    """Base class for all backend_pumpwatch errors."""


class LaunchDecodeError(PumpwatchError):
    """Instruction data is not a decodable create-v2 payload."""


class ProviderError(PumpwatchError):
    """A signal provider (Helius, DexScreener, RugCheck) failed or returned junk."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class StoreUnavailableError(PumpwatchError):
    """Launch store could not be read or written."""


class AnalysisSuperseded(PumpwatchError):
    """A newer analysis request from the same client replaced this one."""
