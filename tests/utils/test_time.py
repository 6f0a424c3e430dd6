"""Tests for epoch conversion helpers."""

from datetime import datetime, timezone

import pytest

from tickbot_app.utils.time import epoch_to_datetime, utc_now


class TestEpochConversion:
    """Test gateway epoch conversion."""

    def test_integer_epoch(self):
        result = epoch_to_datetime(1700000000)

        assert result == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_string_epoch(self):
        assert epoch_to_datetime("1700000000") == epoch_to_datetime(1700000000)

    @pytest.mark.parametrize("epoch", [None, "", "soon", float("inf"), 10 ** 20])
    def test_unusable_epoch(self, epoch):
        assert epoch_to_datetime(epoch) is None

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is timezone.utc
