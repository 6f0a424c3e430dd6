"""Immutable engine state published to presentation layers"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything a dashboard needs after a tick or contract update"""
    symbol: Optional[str] = None
    digit_histogram: tuple = field(default_factory=lambda: (0.0,) * 10)
    even_odd: tuple = (0.0, 0.0)
    rise_fall: tuple = (0.0, 0.0)
    higher_lower: tuple = (0.0, 0.0)
    over_under: tuple = field(default_factory=lambda: ((0.0, 0.0),) * 10)
    last_digit: Optional[int] = None
    most_frequent_digit: Optional[int] = None
    least_frequent_digit: Optional[int] = None
    last_price: Optional[float] = None
    current_stake: float = 0.0
    martingale_level: int = 0
    recovery_active: bool = False
    loss_streak: int = 0
    max_loss_streak: int = 0
    aggregate_profit: float = 0.0
    wins: int = 0
    losses: int = 0
    open_contracts: int = 0
    status_text: str = ""
    ticks_processed: int = 0
    running: bool = False
    fast_mode: bool = False
    strategy: Optional[str] = None
    tick_interval: Optional[int] = None
    bulk_running: bool = False
    halted_reason: Optional[str] = None
    band_upper: Optional[float] = None
    band_lower: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation"""
        return {
            "symbol": self.symbol,
            "digit_histogram": [round(p, 2) for p in self.digit_histogram],
            "even_odd": [round(p, 2) for p in self.even_odd],
            "rise_fall": [round(p, 2) for p in self.rise_fall],
            "higher_lower": [round(p, 2) for p in self.higher_lower],
            "over_under": [[round(o, 2), round(u, 2)] for o, u in self.over_under],
            "last_digit": self.last_digit,
            "most_frequent_digit": self.most_frequent_digit,
            "least_frequent_digit": self.least_frequent_digit,
            "last_price": self.last_price,
            "current_stake": self.current_stake,
            "martingale_level": self.martingale_level,
            "recovery_active": self.recovery_active,
            "loss_streak": self.loss_streak,
            "max_loss_streak": self.max_loss_streak,
            "aggregate_profit": round(self.aggregate_profit, 2),
            "wins": self.wins,
            "losses": self.losses,
            "open_contracts": self.open_contracts,
            "status_text": self.status_text,
            "ticks_processed": self.ticks_processed,
            "running": self.running,
            "fast_mode": self.fast_mode,
            "strategy": self.strategy,
            "tick_interval": self.tick_interval,
            "bulk_running": self.bulk_running,
            "halted_reason": self.halted_reason,
            "band_upper": self.band_upper,
            "band_lower": self.band_lower,
        }
