"""Tests for the entry signal detector and strategy table."""

import pytest

from tickbot_app.config.defaults import DetectorParams
from tickbot_app.state import (
    DetectorState,
    SignalDetector,
    StrategyConfig,
    StrategyTag,
    SubOrder,
    get_rule,
    substitute_for,
)


def feed_digits(detector, digits):
    """Feed digits in order, returning every emitted signal."""
    signals = []
    for digit in digits:
        signal = detector.evaluate(digit)
        if signal is not None:
            signals.append(signal)
    return signals


def feed_prices(detector, prices):
    signals = []
    for index in range(1, len(prices) + 1):
        signal = detector.observe_tick(None, prices[:index])
        if signal is not None:
            signals.append(signal)
    return signals


class TestCounterStrategies:
    """Test K-opposites-then-target strategies."""

    def test_even_fires_after_four_odds(self):
        detector = SignalDetector(StrategyConfig.even_odd("even"))

        signals = feed_digits(detector, [1, 3, 5, 7, 2])

        assert len(signals) == 1
        assert signals[0].trade_type == "DIGITEVEN"
        assert signals[0].prediction is None
        assert signals[0].strategy_tag == StrategyTag.EVEN_ODD
        assert signals[0].reason.startswith("even:")
        assert detector.state == DetectorState.TRIGGERED

    def test_streak_too_short_resets(self):
        detector = SignalDetector(StrategyConfig.even_odd("odd"))

        assert feed_digits(detector, [2, 4, 6, 1]) == []
        assert detector.opposite_count == 0
        assert detector.is_armed

    def test_under_eight_needs_four_opposites(self):
        detector = SignalDetector(StrategyConfig.over_under(8, "under"))

        assert feed_digits(detector, [8, 9, 8, 1]) == []

        signals = feed_digits(detector, [8, 9, 9, 8, 3])
        assert len(signals) == 1
        assert signals[0].trade_type == "DIGITUNDER"
        assert signals[0].prediction == 8

    def test_longer_streak_still_fires(self):
        detector = SignalDetector(StrategyConfig.over_under(2, "over"))

        signals = feed_digits(detector, [0, 1, 2, 0, 1, 2, 7])

        assert len(signals) == 1
        assert signals[0].trade_type == "DIGITOVER"
        assert "after 6 opposite" in signals[0].reason

    def test_custom_threshold(self):
        params = DetectorParams(parity_threshold=2)
        detector = SignalDetector(StrategyConfig.even_odd("even"), params)

        assert detector.threshold == 2
        assert len(feed_digits(detector, [1, 1, 0])) == 1


class TestMovementStrategies:
    """Test rise/fall and higher/lower detection."""

    def test_unchanged_price_counts_as_fall(self):
        detector = SignalDetector(StrategyConfig.rise_fall("rise"))

        signals = feed_prices(detector, [100.0, 100.0, 100.0, 100.5])

        assert len(signals) == 1
        assert signals[0].trade_type == "CALL"

    def test_fall_strategy_buys_put(self):
        detector = SignalDetector(StrategyConfig.rise_fall("fall"))

        signals = feed_prices(detector, [100.0, 100.1, 100.2, 100.1])

        assert len(signals) == 1
        assert signals[0].trade_type == "PUT"

    def test_single_price_is_not_observed(self):
        detector = SignalDetector(StrategyConfig.rise_fall("rise"))

        assert detector.observe_tick(3, [100.0]) is None
        assert detector.runtime.observations == 0

    def test_higher_carries_barrier_offset(self):
        detector = SignalDetector(StrategyConfig.higher_lower(0.05, "higher"))

        signals = feed_prices(detector, [10.0, 9.9, 9.8, 10.5])

        assert len(signals) == 1
        assert signals[0].trade_type == "CALL"
        assert signals[0].barrier == "+0.05"

    def test_lower_uses_negative_offset(self):
        detector = SignalDetector(StrategyConfig.higher_lower(-0.1, "lower"))

        signals = feed_prices(detector, [10.0, 10.1, 10.2, 10.0])

        assert len(signals) == 1
        assert signals[0].trade_type == "PUT"
        assert signals[0].barrier == "-0.1"


class TestInstantAndPatternStrategies:
    """Test differs/matches and dual barrier detection."""

    def test_differs_fires_on_first_occurrence(self):
        detector = SignalDetector(StrategyConfig.differs(3))

        signals = feed_digits(detector, [1, 2, 3])

        assert len(signals) == 1
        assert signals[0].trade_type == "DIGITDIFF"
        assert signals[0].prediction == 3

    def test_matches_fires_on_first_occurrence(self):
        detector = SignalDetector(StrategyConfig.matches(7))

        signals = feed_digits(detector, [7])

        assert signals[0].trade_type == "DIGITMATCH"
        assert signals[0].prediction == 7

    def test_dual_barrier_needs_consecutive_digits(self):
        detector = SignalDetector(StrategyConfig.dual_barrier(4, 5))

        assert feed_digits(detector, [4, 9, 5]) == []

        signals = feed_digits(detector, [4])
        assert len(signals) == 1
        assert signals[0].orders == (SubOrder("DIGITUNDER", 4), SubOrder("DIGITOVER", 5))


class TestDetectorLifecycle:
    """Test triggered, rearm and reset transitions."""

    def test_triggered_ignores_observations(self):
        detector = SignalDetector(StrategyConfig.differs(3))
        feed_digits(detector, [3])

        assert feed_digits(detector, [3, 3, 3]) == []
        assert detector.runtime.triggers == 1

    def test_rearm_allows_next_signal(self):
        detector = SignalDetector(StrategyConfig.differs(3))
        feed_digits(detector, [3])
        detector.rearm()

        assert detector.is_armed
        assert len(feed_digits(detector, [3])) == 1
        assert detector.runtime.triggers == 2

    def test_fire_now_ignores_counters(self):
        detector = SignalDetector(StrategyConfig.over_under(8, "under"))

        signal = detector.fire_now("every 3 ticks")

        assert signal.trade_type == "DIGITUNDER"
        assert signal.prediction == 8
        assert signal.reason == "under-8: every 3 ticks"
        assert not detector.is_armed
        assert detector.fire_now("every 3 ticks") is None

    def test_reset_clears_counters(self):
        detector = SignalDetector(StrategyConfig.even_odd("even"))
        feed_digits(detector, [1, 3, 5])
        detector.reset()

        assert detector.opposite_count == 0
        assert detector.runtime.observations == 0
        assert detector.is_armed


class TestStrategyConfig:
    """Test strategy validation and the dispatch table."""

    @pytest.mark.parametrize("factory", [
        lambda: StrategyConfig.even_odd("both"),
        lambda: StrategyConfig.rise_fall("up"),
        lambda: StrategyConfig.differs(10),
        lambda: StrategyConfig.matches(-1),
        lambda: StrategyConfig.over_under(9, "over"),
        lambda: StrategyConfig.over_under(0, "under"),
        lambda: StrategyConfig.over_under(5, "sideways"),
        lambda: StrategyConfig.higher_lower(0, "higher"),
        lambda: StrategyConfig.dual_barrier(6, 5),
    ])
    def test_invalid_configs_rejected(self, factory):
        with pytest.raises(ValueError):
            factory()

    def test_labels(self):
        assert StrategyConfig.over_under(8, "under").label == "under-8"
        assert StrategyConfig.even_odd("even").label == "even"
        assert StrategyConfig.higher_lower(0.05, "higher").label == "higher+0.05"
        assert StrategyConfig.dual_barrier(4, 5).label == "under-4/over-5"
        assert StrategyConfig.differs(3).label == "differs-3"

    def test_every_tag_has_a_rule(self):
        for tag in StrategyTag:
            assert get_rule(tag) is not None

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValueError):
            get_rule("martingale")

    def test_recovery_substitutes(self):
        assert substitute_for(StrategyConfig.over_under(8, "under")) == \
            StrategyConfig.over_under(5, "under")
        assert substitute_for(StrategyConfig.over_under(2, "over")) == \
            StrategyConfig.over_under(5, "over")
        assert substitute_for(StrategyConfig.differs(3)) == StrategyConfig.over_under(5, "under")
        assert substitute_for(StrategyConfig.matches(3)) == StrategyConfig.over_under(5, "under")
        assert substitute_for(StrategyConfig.even_odd("even")) is None
        assert not get_rule(StrategyTag.RISE_FALL).recovery_eligible

    def test_dual_barrier_pairs_recover_into_each_other(self):
        assert get_rule(StrategyTag.DUAL_BARRIER).recovery_eligible
        assert substitute_for(StrategyConfig.dual_barrier(4, 5)) == StrategyConfig.dual_barrier(3, 6)
        assert substitute_for(StrategyConfig.dual_barrier(3, 6)) == StrategyConfig.dual_barrier(4, 5)
        assert substitute_for(StrategyConfig.dual_barrier(2, 7)) == StrategyConfig.dual_barrier(4, 5)

    def test_dual_barrier_rule_builds_legs(self):
        rule = get_rule(StrategyTag.DUAL_BARRIER)

        assert rule.orders(StrategyConfig.dual_barrier(3, 6)) == (
            SubOrder("DIGITUNDER", 3), SubOrder("DIGITOVER", 6))
        assert get_rule(StrategyTag.EVEN_ODD).orders(StrategyConfig.even_odd("odd")) == ()
