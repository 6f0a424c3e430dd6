"""Tests for quote parsing, precision inference and digit extraction."""

import math

import pytest

from tickbot_app.data.normalizer import (
    TickNormalizer,
    extract_last_digit,
    format_price,
    infer_precision,
    parse_quote,
)
from tickbot_app.errors import MalformedTickError


class TestInferPrecision:
    """Test precision seeding from history."""

    def test_maximum_fraction_length_wins(self):
        assert infer_precision(["1234.5", "1234.56", "1234.567"]) == 3

    def test_float_history(self):
        assert infer_precision([1234.5, 1234.56]) == 2

    def test_integer_quotes_have_no_decimals(self):
        assert infer_precision(["100", 101]) == 0

    def test_empty_history_uses_default(self):
        assert infer_precision([]) == 2
        assert infer_precision([], default=4) == 4

    def test_garbage_entries_are_ignored(self):
        assert infer_precision(["abc", None, "10.123", "nan"]) == 3


class TestDigitExtraction:
    """Test last significant digit rules."""

    def test_trailing_zero_restored_by_formatting(self):
        assert format_price(1234.5, 2) == "1234.50"
        assert extract_last_digit(format_price(1234.5, 2)) == 0

    def test_fractional_part_last_character(self):
        assert extract_last_digit("1234.567") == 7

    def test_integer_part_when_no_fraction(self):
        assert extract_last_digit("1234") == 4

    def test_integer_part_when_fraction_empty(self):
        assert extract_last_digit("1234.") == 4

    def test_empty_string_has_no_digit(self):
        assert extract_last_digit("") is None


class TestParseQuote:
    """Test quote validation."""

    @pytest.mark.parametrize("raw", ["abc", None, True, "nan", "inf", 0, -1.5, math.inf])
    def test_unusable_quotes_raise(self, raw):
        with pytest.raises(MalformedTickError):
            parse_quote(raw)

    def test_string_and_number_quotes(self):
        assert parse_quote("1000.25") == 1000.25
        assert parse_quote(7) == 7.0


class TestTickNormalizer:
    """Test payload normalization."""

    def test_build_tick_uses_precision(self):
        normalizer = TickNormalizer(precision=2)
        tick = normalizer.build_tick("R_100", "1234.5", epoch=1700000000)

        assert tick.price == 1234.5
        assert tick.digit == 0
        assert tick.decimal_precision == 2
        assert tick.formatted == "1234.50"
        assert tick.epoch == 1700000000

    def test_higher_precision_digit(self):
        tick = TickNormalizer(precision=3).build_tick("R_50", 1234.567)
        assert tick.digit == 7

    def test_normalize_success(self):
        result = TickNormalizer(2).normalize(
            {"symbol": "R_100", "quote": 1000.13, "epoch": 1700000000}, "R_100")

        assert result.success
        assert result.skipped_reason is None
        assert result.tick.digit == 3

    def test_other_symbol_is_skipped(self):
        result = TickNormalizer(2).normalize({"symbol": "R_50", "quote": 1.0}, "R_100")

        assert result.success
        assert result.tick is None
        assert "R_50" in result.skipped_reason

    def test_no_subscription_skips_everything(self):
        result = TickNormalizer(2).normalize({"symbol": "R_100", "quote": 1.0}, None)
        assert result.tick is None
        assert result.skipped_reason

    def test_malformed_quote_is_an_error(self):
        result = TickNormalizer(2).normalize({"symbol": "R_100", "quote": "n/a"}, "R_100")

        assert not result.success
        assert result.tick is None
        assert result.error_msg

    def test_unparsable_epoch_dropped(self):
        result = TickNormalizer(2).normalize(
            {"symbol": "R_100", "quote": 10.5, "epoch": "soon"}, "R_100")
        assert result.tick.epoch is None
