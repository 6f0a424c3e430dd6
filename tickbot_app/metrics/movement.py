"""Price movement classification for rise/fall and higher/lower strategies"""

from enum import Enum
from typing import Optional, Sequence


class Movement(str, Enum):
    """Direction of a price relative to a reference."""
    RISE = "rise"
    FALL = "fall"
    HIGHER = "higher"
    LOWER = "lower"


def price_movement(previous: float, current: float) -> Movement:
    """
    Pairwise movement between consecutive prices.

    An unchanged price is a FALL: it never satisfies a rise.
    """
    return Movement.RISE if current > previous else Movement.FALL


def moving_average(prices: Sequence[float], window: int) -> Optional[float]:
    """Mean of the ``window`` prices preceding the latest one"""
    if window <= 0 or len(prices) < window + 1:
        return None
    reference = list(prices)[-window - 1:-1]
    return sum(reference) / window


def movement_vs_average(prices: Sequence[float], window: int = 5) -> Optional[Movement]:
    """
    Latest price against the mean of the preceding ``window`` prices.

    With fewer than ``window`` prior prices the previous price is the
    reference. A price equal to the reference counts as LOWER. Returns None
    for fewer than two prices.
    """
    if len(prices) < 2:
        return None
    average = moving_average(prices, window)
    if average is None:
        average = prices[-2]
    return Movement.HIGHER if prices[-1] > average else Movement.LOWER


def rise_fall_split(prices: Sequence[float]) -> tuple[float, float]:
    """
    (rise %, fall %) over consecutive price pairs.

    Unchanged pairs are left out of both sides so the split reflects actual
    moves; returns (0, 0) when no pair moved.
    """
    rises = falls = 0
    values = list(prices)
    for previous, current in zip(values, values[1:]):
        if current > previous:
            rises += 1
        elif current < previous:
            falls += 1
    moved = rises + falls
    if moved == 0:
        return 0.0, 0.0
    return rises * 100.0 / moved, falls * 100.0 / moved


def higher_lower_split(prices: Sequence[float], window: int = 5) -> tuple[float, float]:
    """
    (higher %, lower %) combining pairwise moves with a moving-average test.

    Every consecutive pair votes by direction (unchanged pairs abstain), and
    every price from index ``window`` on votes against the mean of the
    preceding ``window`` prices, with ties voting lower.
    """
    values = list(prices)
    higher = lower = 0
    for previous, current in zip(values, values[1:]):
        if current > previous:
            higher += 1
        elif current < previous:
            lower += 1
    for index in range(window, len(values)):
        average = sum(values[index - window:index]) / window
        if values[index] > average:
            higher += 1
        else:
            lower += 1
    total = higher + lower
    if total == 0:
        return 0.0, 0.0
    return higher * 100.0 / total, lower * 100.0 / total
