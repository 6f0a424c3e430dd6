"""Feature calculator coordinating all per-tick statistics"""

from typing import Optional, Sequence

from ..config.defaults import DetectorParams
from ..errors import MetricsCalculationError
from ..models.metrics import FeatureSnapshot
from .digits import digit_histogram, even_odd_split, over_under_table
from .movement import higher_lower_split, rise_fall_split


class MetricsCalculator:
    """
    Computes the feature snapshot from the rolling buffers.

    Stateless apart from caching the last snapshot; recomputed on every tick.
    """

    def __init__(self, params: Optional[DetectorParams] = None):
        self.params = params or DetectorParams()
        self.last_snapshot: Optional[FeatureSnapshot] = None

    def compute(self, digits: Sequence[int], prices: Sequence[float]) -> FeatureSnapshot:
        """
        Compute digit and price features.

        Args:
            digits: Digit buffer, oldest first
            prices: Price buffer, oldest first

        Returns:
            FeatureSnapshot with all ratios in percent
        """
        digits = list(digits)
        prices = list(prices)
        self._validate_digits(digits)

        try:
            snapshot = FeatureSnapshot(
                digit_count=len(digits),
                price_count=len(prices),
                digit_histogram=tuple(digit_histogram(digits)),
                even_odd=even_odd_split(digits),
                rise_fall=rise_fall_split(prices),
                higher_lower=higher_lower_split(prices, self.params.average_window),
                over_under=tuple(over_under_table(digits)),
                last_digit=digits[-1] if digits else None,
            )
        except (TypeError, ValueError, ZeroDivisionError) as e:
            raise MetricsCalculationError(
                f"Feature computation failed: {str(e)}",
                metric_name="features",
                calculation_input={"digit_count": len(digits), "price_count": len(prices)}
            ) from e

        self.last_snapshot = snapshot
        return snapshot

    def get_last_snapshot(self) -> Optional[FeatureSnapshot]:
        """Get the last computed snapshot"""
        return self.last_snapshot

    def reset(self):
        """Forget the cached snapshot"""
        self.last_snapshot = None

    def _validate_digits(self, digits: list) -> None:
        for digit in digits:
            if not isinstance(digit, int) or isinstance(digit, bool) or not 0 <= digit <= 9:
                raise MetricsCalculationError(
                    f"Invalid digit in buffer: {digit!r}",
                    metric_name="digit_histogram",
                    calculation_input={"digit": repr(digit)}
                )
