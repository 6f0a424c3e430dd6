"""Data models for feature computations"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class FeatureSnapshot:
    """Statistical features of the rolling digit/price buffers"""
    digit_count: int = 0
    price_count: int = 0
    digit_histogram: tuple = field(default_factory=lambda: (0.0,) * 10)
    even_odd: tuple = (0.0, 0.0)                   # (even %, odd %)
    rise_fall: tuple = (0.0, 0.0)                  # (rise %, fall %)
    higher_lower: tuple = (0.0, 0.0)               # (higher %, lower %)
    over_under: tuple = field(default_factory=lambda: ((0.0, 0.0),) * 10)
    last_digit: Optional[int] = None

    def has_digits(self) -> bool:
        return self.digit_count > 0

    def most_frequent_digit(self) -> Optional[int]:
        """Digit with the highest share, lowest digit on ties"""
        if not self.has_digits():
            return None
        return max(range(10), key=lambda d: (self.digit_histogram[d], -d))

    def least_frequent_digit(self) -> Optional[int]:
        """Digit with the lowest share, lowest digit on ties"""
        if not self.has_digits():
            return None
        return min(range(10), key=lambda d: (self.digit_histogram[d], d))

    def to_dict(self) -> dict[str, Any]:
        """Plain representation with percentages rounded to 2 decimals"""
        return {
            "digit_count": self.digit_count,
            "digit_histogram": [round(p, 2) for p in self.digit_histogram],
            "even_odd": [round(p, 2) for p in self.even_odd],
            "rise_fall": [round(p, 2) for p in self.rise_fall],
            "higher_lower": [round(p, 2) for p in self.higher_lower],
            "over_under": [[round(o, 2), round(u, 2)] for o, u in self.over_under],
            "last_digit": self.last_digit,
        }
