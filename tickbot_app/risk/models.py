"""
Risk data models.

Stake plan and recovery state are immutable and replaced on every outcome;
the aggregate ledger is mutable and shared between the lifecycle manager
(which records profits) and the risk manager (which checks limits).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..state.models import StrategyConfig


class RiskStatus(str, Enum):
    """Result of applying one contract outcome."""
    RESET = "reset"          # Win: martingale back to base
    LOSS = "loss"            # Loss: level raised
    RECOVERY = "recovery"    # Loss: level raised, recovery substitution active
    FLAT = "flat"            # Fast mode: stake unchanged
    UNKNOWN = "unknown"      # Outcome unknown: nothing changed


@dataclass(frozen=True)
class StakePlan:
    """Martingale stake progression."""
    base_stake: float = 1.0
    multiplier: float = 2.0
    level: int = 0
    max_level: int = 5

    @property
    def current_stake(self) -> float:
        return round(self.base_stake * self.multiplier ** self.level, 2)

    def with_level(self, level: int) -> "StakePlan":
        return StakePlan(
            base_stake=self.base_stake,
            multiplier=self.multiplier,
            level=level,
            max_level=self.max_level,
        )


@dataclass(frozen=True)
class RecoveryState:
    """Recovery mode bookkeeping; active only while a loss is uncleared."""
    active: bool = False
    attempts: int = 0
    max_attempts: int = 3
    original_strategy: Optional[StrategyConfig] = None
    substitute_strategy: Optional[StrategyConfig] = None

    def with_activated(self, original: StrategyConfig,
                       substitute: StrategyConfig) -> "RecoveryState":
        return RecoveryState(
            active=True,
            attempts=1,
            max_attempts=self.max_attempts,
            original_strategy=original,
            substitute_strategy=substitute,
        )

    def with_attempt(self) -> "RecoveryState":
        return RecoveryState(
            active=True,
            attempts=self.attempts + 1,
            max_attempts=self.max_attempts,
            original_strategy=self.original_strategy,
            substitute_strategy=self.substitute_strategy,
        )

    def cleared(self) -> "RecoveryState":
        return RecoveryState(max_attempts=self.max_attempts)


@dataclass(frozen=True)
class RiskDecision:
    """Staking decision after one outcome."""
    status: RiskStatus
    next_stake: float
    level: int
    recovery_active: bool = False
    recovery_attempts: int = 0
    loss_streak: int = 0
    reason: str = ""


@dataclass(frozen=True)
class LimitBreach:
    """Aggregate take-profit or stop-loss crossing."""
    limit: str               # "take_profit" or "stop_loss"
    total_profit: float
    threshold: float

    @property
    def message(self) -> str:
        label = "Take profit" if self.limit == "take_profit" else "Stop loss"
        return f"{label} reached: total {self.total_profit:.2f} (limit {self.threshold:.2f})"


@dataclass
class AggregateLedger:
    """Realized and unrealized profit across contracts."""
    realized_profit: float = 0.0
    open_profit: dict = field(default_factory=dict)   # contract_id -> unrealized profit
    take_profit: Optional[float] = None
    stop_loss: Optional[float] = None
    wins: int = 0
    losses: int = 0
    total_won: float = 0.0
    total_lost: float = 0.0

    @property
    def total(self) -> float:
        return self.realized_profit + sum(self.open_profit.values())

    @property
    def trade_count(self) -> int:
        return self.wins + self.losses

    def update_open(self, contract_id: str, profit: float) -> None:
        """Record the latest unrealized profit of an open contract."""
        self.open_profit[contract_id] = profit

    def realize(self, contract_id: str, profit: float) -> None:
        """Move a settled contract's profit into the realized total."""
        self.open_profit.pop(contract_id, None)
        self.realized_profit += profit
        if profit > 0:
            self.wins += 1
            self.total_won += profit
        else:
            self.losses += 1
            self.total_lost += -profit

    def drop(self, contract_id: str) -> None:
        """Forget an open contract whose outcome will never be known."""
        self.open_profit.pop(contract_id, None)

    def reset(self) -> None:
        """Clear all totals; limits are kept."""
        self.realized_profit = 0.0
        self.open_profit.clear()
        self.wins = 0
        self.losses = 0
        self.total_won = 0.0
        self.total_lost = 0.0
