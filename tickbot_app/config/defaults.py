"""Default configuration parameters for the tick decision engine."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FeedParams:
    """Tick feed and rolling buffer parameters."""
    buffer_size: int = 1000                  # Digit/price FIFO capacity
    history_count: int = 1000                # Ticks fetched to seed precision
    default_precision: int = 2               # Used when history is unavailable


@dataclass(frozen=True)
class DetectorParams:
    """Entry signal detector thresholds."""
    parity_threshold: int = 4                # Opposites before an even/odd entry
    over_under_threshold: int = 4            # Opposites before an over/under entry
    movement_threshold: int = 2              # Opposites before rise/fall, higher/lower
    dual_confirm_ticks: int = 2              # Consecutive qualifying digits for dual barrier
    average_window: int = 5                  # Prices in the higher/lower moving average
    tick_interval: Optional[int] = None      # Buy every N ticks instead of waiting for a signal


@dataclass(frozen=True)
class MartingaleParams:
    """Martingale stake progression."""
    base_stake: float = 1.0
    multiplier: float = 2.0
    max_level: int = 5                       # Loss level past which trading halts


@dataclass(frozen=True)
class RecoveryParams:
    """Recovery mode substitution after a loss."""
    enabled: bool = True
    max_attempts: int = 3
    trade_type: Optional[str] = None         # None uses the per-strategy substitute
    target_digit: Optional[int] = None


@dataclass(frozen=True)
class LimitParams:
    """Aggregate profit/loss limits."""
    take_profit: Optional[float] = None
    stop_loss: Optional[float] = None


@dataclass(frozen=True)
class ExecutionParams:
    """Contract execution parameters."""
    duration: int = 1                        # Contract duration in ticks
    duration_unit: str = "t"
    completion_timeout_s: float = 60.0       # Wait for settlement before giving up
    fast_mode: bool = False                  # Jet mode: flat stake, no settlement wait
    fast_mode_delay_s: float = 0.2           # Pause between fast mode trades
    error_backoff_s: float = 1.0             # Pause after a failed purchase
    currency: str = "USD"


@dataclass(frozen=True)
class AccumulatorParams:
    """Accumulator contract parameters."""
    growth_rate: float = 0.01
    take_profit: Optional[float] = None      # Close once accrued profit reaches this


@dataclass(frozen=True)
class EngineConfig:
    """Complete default configuration."""
    feed: FeedParams
    detector: DetectorParams
    martingale: MartingaleParams
    recovery: RecoveryParams
    limits: LimitParams
    execution: ExecutionParams
    accumulator: AccumulatorParams


def get_default_config() -> EngineConfig:
    """Get the default configuration instance."""
    return EngineConfig(
        feed=FeedParams(),
        detector=DetectorParams(),
        martingale=MartingaleParams(),
        recovery=RecoveryParams(),
        limits=LimitParams(),
        execution=ExecutionParams(),
        accumulator=AccumulatorParams(),
    )
