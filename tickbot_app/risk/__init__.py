"""
Risk management module.

Martingale staking, recovery substitution, fast mode and aggregate
take-profit / stop-loss enforcement.
"""

from .manager import RiskManager
from .models import (
    AggregateLedger,
    LimitBreach,
    RecoveryState,
    RiskDecision,
    RiskStatus,
    StakePlan,
)

__all__ = [
    "RiskManager",
    "AggregateLedger",
    "LimitBreach",
    "RecoveryState",
    "RiskDecision",
    "RiskStatus",
    "StakePlan",
]
