"""Feature engine: digit distributions and price movement statistics"""

from .calculator import MetricsCalculator
from .digits import digit_histogram, even_odd_split, over_under_counts, over_under_table
from .movement import (
    Movement,
    higher_lower_split,
    moving_average,
    movement_vs_average,
    price_movement,
    rise_fall_split,
)

__all__ = [
    "MetricsCalculator",
    "Movement",
    "digit_histogram",
    "even_odd_split",
    "over_under_counts",
    "over_under_table",
    "price_movement",
    "moving_average",
    "movement_vs_average",
    "rise_fall_split",
    "higher_lower_split",
]
