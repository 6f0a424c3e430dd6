"""
Accumulator barrier band.

An accumulator contract stays alive while every new price lands strictly
inside a band centred on the previous price. The band's half-width depends
on the symbol and the growth rate; each in-band tick accrues
``stake * growth_rate`` of profit.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_BAND_SYMBOL = "R_100"

# Band half-width per symbol, keyed by growth rate in percent
BARRIER_OFFSETS: dict[str, dict[int, float]] = {
    "R_100": {1: 0.661, 2: 0.617, 3: 0.579, 4: 0.551, 5: 0.524},
    "1HZ100V": {1: 0.482, 2: 0.450, 3: 0.422, 4: 0.402, 5: 0.382},
    "R_75": {1: 27.42066, 2: 25.63562, 3: 24.02000, 4: 22.84321, 5: 21.73109},
    "1HZ75V": {1: 1.500, 2: 1.401, 3: 1.315, 4: 1.249, 5: 1.188},
    "R_50": {1: 0.03713, 2: 0.03472, 3: 0.03258, 4: 0.03099, 5: 0.02950},
    "1HZ50V": {1: 38.997, 2: 36.424, 3: 34.156, 4: 32.504, 5: 30.940},
    "R_25": {1: 0.4006, 2: 0.3744, 3: 0.3511, 4: 0.3340, 5: 0.3179},
    "1HZ25V": {1: 74.442, 2: 69.600, 3: 65.294, 4: 62.130, 5: 59.130},
    "R_10": {1: 0.3539, 2: 0.3308, 3: 0.3102, 4: 0.2952, 5: 0.2810},
    "1HZ10V": {1: 0.411, 2: 0.384, 3: 0.360, 4: 0.343, 5: 0.326},
    "1HZ15V": {1: 0.8721, 2: 0.8149, 3: 0.7642, 4: 0.7270, 5: 0.6920},
    "1HZ30V": {1: 0.7603, 2: 0.7107, 3: 0.6664, 4: 0.6341, 5: 0.6033},
    "1HZ90V": {1: 8.6700, 2: 8.1028, 3: 7.5993, 4: 7.2337, 5: 6.8843},
}


def _growth_percent(growth_rate: float) -> int:
    """Map 0.01..0.05 (or 1..5) to the integer percent key."""
    percent = growth_rate * 100 if growth_rate < 1 else growth_rate
    key = int(round(percent))
    if key not in (1, 2, 3, 4, 5):
        raise ValueError(f"growth_rate must be 1%-5%, got {growth_rate}")
    return key


def get_barrier_offset(symbol: Optional[str], growth_rate: float) -> float:
    """Band half-width for symbol; unknown symbols use the R_100 row."""
    row = BARRIER_OFFSETS.get(symbol or DEFAULT_BAND_SYMBOL)
    if row is None:
        logger.debug("No band offsets for symbol, using default", symbol=symbol,
                     default_symbol=DEFAULT_BAND_SYMBOL)
        row = BARRIER_OFFSETS[DEFAULT_BAND_SYMBOL]
    return row[_growth_percent(growth_rate)]


def is_within_band(price: float, upper: float, lower: float) -> bool:
    """Strictly inside the open interval (lower, upper)."""
    return lower < price < upper


@dataclass(frozen=True)
class BarrierBand:
    """Band around the previous price."""
    previous_price: float
    offset: float
    upper: float
    lower: float

    @classmethod
    def update(cls, previous_price: float, growth_rate: float,
               symbol: Optional[str] = None) -> "BarrierBand":
        """Band for the next tick given the previous price."""
        offset = get_barrier_offset(symbol, growth_rate)
        # Decimal keeps 1000.00 + 0.661 exactly 1000.661
        base = Decimal(str(previous_price))
        delta = Decimal(str(offset))
        return cls(
            previous_price=previous_price,
            offset=offset,
            upper=float(base + delta),
            lower=float(base - delta),
        )

    def contains(self, price: float) -> bool:
        return is_within_band(price, self.upper, self.lower)


@dataclass(frozen=True)
class AccumulatorTick:
    """Result of one tick against an accumulator band."""
    price: float
    band: BarrierBand
    in_band: bool
    in_band_ticks: int
    profit: float
    payout: float
    close_reason: Optional[str] = None      # "breach" or "take_profit"


class AccumulatorTracker:
    """Tracks accrued profit of one open accumulator contract."""

    def __init__(self, contract_id: str, stake: float, growth_rate: float,
                 symbol: Optional[str] = None, previous_price: Optional[float] = None,
                 take_profit: Optional[float] = None):
        self.contract_id = contract_id
        self.stake = stake
        self.growth_rate = growth_rate
        self.symbol = symbol
        self.previous_price = previous_price
        self.take_profit = take_profit

        self.in_band_ticks = 0
        self.profit = 0.0
        self.closed = False

        # Fail fast on unsupported growth rates
        _growth_percent(growth_rate)

    @property
    def payout(self) -> float:
        return self.stake + self.profit

    @property
    def band(self) -> Optional[BarrierBand]:
        if self.previous_price is None:
            return None
        return BarrierBand.update(self.previous_price, self.growth_rate, self.symbol)

    def on_tick(self, price: float) -> Optional[AccumulatorTick]:
        """
        Evaluate a new price against the band built from the previous one.

        Returns None for the first price seen (no band yet) and after the
        tracker has requested a close.
        """
        if self.closed:
            return None
        band = self.band
        self.previous_price = price
        if band is None:
            return None

        in_band = band.contains(price)
        close_reason = None
        if in_band:
            self.in_band_ticks += 1
            self.profit = self.in_band_ticks * self.stake * self.growth_rate
            if self.take_profit is not None and self.profit >= self.take_profit:
                close_reason = "take_profit"
        else:
            close_reason = "breach"

        if close_reason is not None:
            self.closed = True
            logger.info("Accumulator close requested", contract_id=self.contract_id,
                        reason=close_reason, price=price, upper=band.upper, lower=band.lower,
                        in_band_ticks=self.in_band_ticks, profit=round(self.profit, 2))

        return AccumulatorTick(
            price=price,
            band=band,
            in_band=in_band,
            in_band_ticks=self.in_band_ticks,
            profit=self.profit,
            payout=self.payout,
            close_reason=close_reason,
        )
