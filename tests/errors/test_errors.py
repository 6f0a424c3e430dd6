"""Tests for the error classification hierarchy."""

from tickbot_app.errors import (
    ConfigurationError,
    DataQualityError,
    GatewayError,
    GatewayRejectionError,
    LifecycleError,
    LimitReachedError,
    MalformedTickError,
    MartingaleCapExceeded,
    MetricsCalculationError,
    RecoveryExhausted,
    SlotOccupiedError,
    SystemFailureError,
    TradingHaltError,
    TransientConnectionError,
    UnknownContractError,
)


class TestErrorClassification:
    """Test error classification system."""

    def test_data_quality_errors_are_recoverable(self):
        error = MalformedTickError("bad quote", raw_quote="abc", symbol="R_100")

        assert isinstance(error, DataQualityError)
        assert error.recoverable is True
        assert error.raw_quote == "abc"
        assert error.context == {}

    def test_gateway_errors(self):
        transient = TransientConnectionError("socket closed", retry_count=2, operation="ticks")
        rejection = GatewayRejectionError("Insufficient balance", code="InsufficientBalance",
                                          operation="buy")

        assert isinstance(transient, GatewayError)
        assert isinstance(rejection, GatewayError)
        assert transient.retry_count == 2
        assert transient.operation == "ticks"
        assert rejection.code == "InsufficientBalance"
        assert str(rejection) == "Insufficient balance"

    def test_halt_errors_are_not_recoverable(self):
        halts = [
            MartingaleCapExceeded("cap", level=6, max_level=5),
            RecoveryExhausted("exhausted", attempts=4, max_attempts=3),
            LimitReachedError("tp", limit="take_profit", total_profit=10.5),
        ]

        for error in halts:
            assert isinstance(error, TradingHaltError)
            assert error.recoverable is False
        assert halts[0].level == 6
        assert halts[1].max_attempts == 3
        assert halts[2].limit == "take_profit"

    def test_lifecycle_errors(self):
        occupied = SlotOccupiedError("busy", open_contracts=["1"])
        unknown = UnknownContractError("missing", contract_id="9")

        assert isinstance(occupied, LifecycleError)
        assert occupied.open_contracts == ["1"]
        assert unknown.contract_id == "9"

    def test_system_failures(self):
        error = MetricsCalculationError("broken", metric_name="digit_histogram",
                                        calculation_input={"digit": "12"})

        assert isinstance(error, SystemFailureError)
        assert error.recoverable is False
        assert error.metric_name == "digit_histogram"

    def test_configuration_error_carries_details(self):
        error = ConfigurationError("Invalid limits", errors=["limits.take_profit"])

        assert error.errors == ["limits.take_profit"]
        assert ConfigurationError("plain").errors == []
