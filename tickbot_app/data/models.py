"""
Canonical data models for normalized ticks.

This module defines the immutable tick produced for every accepted quote and
the bounded rolling buffers that hold the recent digit and price history.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from tickbot_app.config.defaults import FeedParams


@dataclass(frozen=True)
class Tick:
    """Normalized tick with the digit derived at the symbol's precision."""
    symbol: str
    raw_price: Union[str, float, int]   # Quote exactly as received
    epoch: Optional[int]                # Gateway epoch in seconds
    decimal_precision: int              # Decimals used for formatting
    price: float                        # Parsed numeric price
    digit: Optional[int]                # Last significant digit, None if unparseable

    @property
    def formatted(self) -> str:
        """Price formatted to the tick's decimal precision."""
        return f"{self.price:.{self.decimal_precision}f}"


@dataclass
class TickBuffers:
    """Rolling digit and price history for the live symbol."""

    capacity: int = FeedParams().buffer_size
    digits: deque = field(default=None)  # deque[int]
    prices: deque = field(default=None)  # deque[float]

    def __post_init__(self):
        """Initialize bounded collections if not provided."""
        if self.capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {self.capacity}")
        if self.digits is None:
            self.digits = deque(maxlen=self.capacity)
        if self.prices is None:
            self.prices = deque(maxlen=self.capacity)

    def append(self, tick: Tick) -> None:
        """Append a tick, evicting the oldest entries on overflow."""
        if tick.digit is not None:
            self.digits.append(tick.digit)
        self.prices.append(tick.price)

    def seed(self, digits: Iterable[int], prices: Iterable[float]) -> None:
        """Replace buffer contents with seed history (newest entries kept)."""
        self.clear()
        self.digits.extend(d for d in digits if 0 <= d <= 9)
        self.prices.extend(prices)

    def clear(self) -> None:
        """Drop all buffered history."""
        self.digits.clear()
        self.prices.clear()

    @property
    def last_digit(self) -> Optional[int]:
        return self.digits[-1] if self.digits else None

    @property
    def last_price(self) -> Optional[float]:
        return self.prices[-1] if self.prices else None

    def __len__(self) -> int:
        return len(self.digits)


@dataclass(frozen=True)
class NormalizationResult:
    """Result of normalizing one raw quote payload."""

    # Normalized tick (None if invalid/skipped)
    tick: Optional[Tick] = None

    # Processing metadata
    success: bool = True
    error_msg: Optional[str] = None
    skipped_reason: Optional[str] = None

    @classmethod
    def success_with_tick(cls, tick: Tick):
        """Create successful result with tick."""
        return cls(tick=tick, success=True)

    @classmethod
    def error(cls, error_msg: str):
        """Create error result."""
        return cls(success=False, error_msg=error_msg)

    @classmethod
    def skipped(cls, reason: str):
        """Create skipped result."""
        return cls(success=True, skipped_reason=reason)
