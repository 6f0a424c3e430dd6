"""
Signal detection module.

Per-strategy Armed/Triggered detectors driven by a strategy dispatch table.
"""

from .machine import SignalDetector
from .models import (
    Classification,
    DetectorRuntimeState,
    DetectorState,
    EntrySignal,
    StrategyConfig,
    StrategyTag,
    SubOrder,
)
from .strategies import STRATEGY_TABLE, StrategyRule, get_rule, substitute_for

__all__ = [
    "SignalDetector",
    "Classification",
    "DetectorRuntimeState",
    "DetectorState",
    "EntrySignal",
    "StrategyConfig",
    "StrategyTag",
    "SubOrder",
    "STRATEGY_TABLE",
    "StrategyRule",
    "get_rule",
    "substitute_for",
]
