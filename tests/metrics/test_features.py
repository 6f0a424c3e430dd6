"""Tests for digit and price feature computations."""

import pytest

from tickbot_app.errors import MetricsCalculationError
from tickbot_app.metrics import (
    MetricsCalculator,
    Movement,
    digit_histogram,
    even_odd_split,
    higher_lower_split,
    moving_average,
    movement_vs_average,
    over_under_counts,
    over_under_table,
    price_movement,
    rise_fall_split,
)


class TestDigitStatistics:
    """Test digit histogram and parity/over-under splits."""

    def test_histogram_sums_to_hundred(self):
        digits = [0, 1, 1, 2, 3, 5, 8, 8, 8, 9, 4]
        histogram = digit_histogram(digits)

        assert len(histogram) == 10
        assert sum(histogram) == pytest.approx(100.0)
        assert histogram[8] == pytest.approx(300 / 11)
        assert histogram[6] == 0.0

    def test_empty_buffer_is_all_zero(self):
        assert digit_histogram([]) == [0.0] * 10
        assert even_odd_split([]) == (0.0, 0.0)
        assert over_under_table([]) == [(0.0, 0.0)] * 10

    def test_even_odd_complement(self):
        even, odd = even_odd_split([1, 3, 5, 7, 2])

        assert even == pytest.approx(20.0)
        assert odd == pytest.approx(80.0)
        assert even + odd == pytest.approx(100.0)

    def test_over_under_counts_strict(self):
        counts = over_under_counts([0, 5, 9])

        assert counts[0] == (2, 0)
        assert counts[5] == (1, 1)
        assert counts[9] == (0, 2)

    def test_over_under_percentages(self):
        table = over_under_table([0, 5, 9])

        over, under = table[5]
        assert over == pytest.approx(100 / 3)
        assert under == pytest.approx(100 / 3)


class TestPriceMovement:
    """Test rise/fall and higher/lower classification."""

    def test_unchanged_price_is_fall(self):
        assert price_movement(100.0, 100.1) == Movement.RISE
        assert price_movement(100.0, 100.0) == Movement.FALL
        assert price_movement(100.0, 99.9) == Movement.FALL

    def test_moving_average_excludes_latest(self):
        prices = [1.0, 2.0, 3.0, 4.0, 5.0, 100.0]

        assert moving_average(prices, 5) == pytest.approx(3.0)
        assert moving_average(prices[:5], 5) is None

    def test_movement_vs_average(self):
        prices = [1.0, 2.0, 3.0, 4.0, 5.0]

        assert movement_vs_average(prices + [3.5]) == Movement.HIGHER
        assert movement_vs_average(prices + [3.0]) == Movement.LOWER
        assert movement_vs_average(prices + [2.0]) == Movement.LOWER

    def test_short_history_compares_previous_price(self):
        assert movement_vs_average([10.0]) is None
        assert movement_vs_average([10.0, 10.5]) == Movement.HIGHER
        assert movement_vs_average([10.0, 10.0]) == Movement.LOWER

    def test_rise_fall_ignores_ties(self):
        rise, fall = rise_fall_split([1.0, 2.0, 2.0, 1.0, 3.0])

        assert rise == pytest.approx(200 / 3)
        assert fall == pytest.approx(100 / 3)
        assert rise_fall_split([5.0, 5.0, 5.0]) == (0.0, 0.0)

    def test_higher_lower_ties_vote_lower(self):
        higher, lower = higher_lower_split([1.0] * 6, window=5)

        assert higher == 0.0
        assert lower == pytest.approx(100.0)


class TestMetricsCalculator:
    """Test the feature snapshot calculator."""

    def test_empty_buffers(self):
        snapshot = MetricsCalculator().compute([], [])

        assert not snapshot.has_digits()
        assert snapshot.last_digit is None
        assert snapshot.most_frequent_digit() is None
        assert snapshot.rise_fall == (0.0, 0.0)

    def test_snapshot_contents(self):
        calculator = MetricsCalculator()
        snapshot = calculator.compute([2, 2, 7], [1.0, 1.5, 1.2])

        assert snapshot.digit_count == 3
        assert snapshot.price_count == 3
        assert snapshot.last_digit == 7
        assert snapshot.most_frequent_digit() == 2
        assert snapshot.least_frequent_digit() == 0
        assert snapshot.rise_fall == (50.0, 50.0)
        assert calculator.get_last_snapshot() is snapshot

        data = snapshot.to_dict()
        assert data["even_odd"] == [66.67, 33.33]
        assert len(data["over_under"]) == 10

    def test_invalid_digit_raises(self):
        calculator = MetricsCalculator()

        with pytest.raises(MetricsCalculationError) as exc_info:
            calculator.compute([1, 12], [1.0, 2.0])

        assert exc_info.value.metric_name == "digit_histogram"
        assert calculator.get_last_snapshot() is None

    def test_reset_forgets_snapshot(self):
        calculator = MetricsCalculator()
        calculator.compute([1], [1.0])
        calculator.reset()

        assert calculator.get_last_snapshot() is None
