"""
Analyzer module registry and fixed combination weights.
"""

from __future__ import annotations

from backend_pumpwatch.analysis_engine.modules.base import AnalyzerModule
from backend_pumpwatch.analysis_engine.modules.dead_vs_sleeping import DeadVsSleepingModule
from backend_pumpwatch.analysis_engine.modules.fake_move import FakeMoveModule
from backend_pumpwatch.analysis_engine.modules.holder_psychology import HolderPsychologyModule
from backend_pumpwatch.analysis_engine.modules.rug_narrative import RugNarrativeModule
from backend_pumpwatch.analysis_engine.modules.too_late import TooLateModule
from backend_pumpwatch.analysis_engine.modules.worth_my_time import WorthMyTimeModule

DEFAULT_MODULE_WEIGHT = 0.10

MODULE_WEIGHTS = {
    "worth_my_time": 0.15,
    "fake_move": 0.25,
    "too_late": 0.20,
    "dead_vs_sleeping": 0.10,
    "holder_psychology": 0.15,
    "rug_narrative": 0.15,
}

DEFAULT_MODULES: tuple[AnalyzerModule, ...] = (
    WorthMyTimeModule(),
    FakeMoveModule(),
    TooLateModule(),
    DeadVsSleepingModule(),
    HolderPsychologyModule(),
    RugNarrativeModule(),
)


def weight_for(name: str) -> float:
    return MODULE_WEIGHTS.get(name, DEFAULT_MODULE_WEIGHT)


def emitted_flag_keys(modules: tuple[AnalyzerModule, ...] = DEFAULT_MODULES) -> frozenset[str]:
    """Every flag key the given modules can emit."""
    keys: set[str] = set()
    for module in modules:
        keys |= module.emits
    return frozenset(keys)


__all__ = [
    "AnalyzerModule",
    "DEFAULT_MODULES",
    "DEFAULT_MODULE_WEIGHT",
    "DeadVsSleepingModule",
    "FakeMoveModule",
    "HolderPsychologyModule",
    "MODULE_WEIGHTS",
    "RugNarrativeModule",
    "TooLateModule",
    "WorthMyTimeModule",
    "emitted_flag_keys",
    "weight_for",
]
