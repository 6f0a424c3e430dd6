"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_feed_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate tick feed parameters."""
        errors = []

        if "buffer_size" in params:
            value = params["buffer_size"]
            if not _is_int(value) or value <= 0 or value > 5000:
                errors.append(ValidationError(
                    field="feed.buffer_size",
                    message="Must be an integer between 1 and 5000",
                    value=value
                ))

        if "history_count" in params:
            value = params["history_count"]
            if not _is_int(value) or value < 0 or value > 5000:
                errors.append(ValidationError(
                    field="feed.history_count",
                    message="Must be an integer between 0 and 5000",
                    value=value
                ))

        if "default_precision" in params:
            value = params["default_precision"]
            if not _is_int(value) or value < 0 or value > 10:
                errors.append(ValidationError(
                    field="feed.default_precision",
                    message="Must be an integer between 0 and 10",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_detector_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate signal detector thresholds."""
        errors = []

        for name in ("parity_threshold", "over_under_threshold",
                     "movement_threshold", "dual_confirm_ticks", "average_window"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value <= 0:
                    errors.append(ValidationError(
                        field=f"detector.{name}",
                        message="Must be a positive integer",
                        value=value
                    ))

        value = params.get("tick_interval")
        if value is not None and (not _is_int(value) or value < 1):
            errors.append(ValidationError(
                field="detector.tick_interval",
                message="Must be an integer >= 1 or null",
                value=value
            ))

        return errors

    @staticmethod
    def validate_martingale_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate martingale parameters."""
        errors = []

        if "base_stake" in params:
            value = params["base_stake"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="martingale.base_stake",
                    message="Must be a positive number",
                    value=value
                ))

        if "multiplier" in params:
            value = params["multiplier"]
            if not _is_number(value) or value < 1:
                errors.append(ValidationError(
                    field="martingale.multiplier",
                    message="Must be a number >= 1",
                    value=value
                ))

        if "max_level" in params:
            value = params["max_level"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="martingale.max_level",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_recovery_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate recovery parameters."""
        errors = []

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ValidationError(
                field="recovery.enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        if "max_attempts" in params:
            value = params["max_attempts"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="recovery.max_attempts",
                    message="Must be a positive integer",
                    value=value
                ))

        trade_type = params.get("trade_type")
        if trade_type is not None and trade_type not in ("DIGITOVER", "DIGITUNDER"):
            errors.append(ValidationError(
                field="recovery.trade_type",
                message="Must be DIGITOVER or DIGITUNDER",
                value=trade_type
            ))

        target = params.get("target_digit")
        if target is not None and (not _is_int(target) or not 0 <= target <= 9):
            errors.append(ValidationError(
                field="recovery.target_digit",
                message="Must be a digit between 0 and 9",
                value=target
            ))

        return errors

    @staticmethod
    def validate_limit_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate aggregate take-profit / stop-loss limits."""
        errors = []

        for name in ("take_profit", "stop_loss"):
            value = params.get(name)
            if value is not None and (not _is_number(value) or value <= 0):
                errors.append(ValidationError(
                    field=f"limits.{name}",
                    message="Must be a positive number or null",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_execution_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate execution parameters."""
        errors = []

        if "duration" in params:
            value = params["duration"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="execution.duration",
                    message="Must be a positive integer",
                    value=value
                ))

        if "completion_timeout_s" in params:
            value = params["completion_timeout_s"]
            if not _is_number(value) or value < 1 or value > 600:
                errors.append(ValidationError(
                    field="execution.completion_timeout_s",
                    message="Must be a number between 1 and 600",
                    value=value
                ))

        for name in ("fast_mode_delay_s", "error_backoff_s"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value < 0:
                    errors.append(ValidationError(
                        field=f"execution.{name}",
                        message="Must be a non-negative number",
                        value=value
                    ))

        if "fast_mode" in params and not isinstance(params["fast_mode"], bool):
            errors.append(ValidationError(
                field="execution.fast_mode",
                message="Must be a boolean",
                value=params["fast_mode"]
            ))

        return errors

    @staticmethod
    def validate_accumulator_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate accumulator parameters."""
        errors = []

        if "growth_rate" in params:
            value = params["growth_rate"]
            if value not in (0.01, 0.02, 0.03, 0.04, 0.05):
                errors.append(ValidationError(
                    field="accumulator.growth_rate",
                    message="Must be one of 0.01, 0.02, 0.03, 0.04, 0.05",
                    value=value
                ))

        value = params.get("take_profit")
        if value is not None and (not _is_number(value) or value <= 0):
            errors.append(ValidationError(
                field="accumulator.take_profit",
                message="Must be a positive number or null",
                value=value
            ))

        return errors

    @staticmethod
    def validate_bulk_order(index: int, order: dict[str, Any]) -> list[ValidationError]:
        """Validate one bulk order row (fields of a BulkOrder)."""
        errors = []
        row = f"bulk[{index}]"

        if not order.get("trade_type"):
            errors.append(ValidationError(
                field=f"{row}.trade_type",
                message="Trade type missing",
                value=order.get("trade_type")
            ))

        if not order.get("symbol"):
            errors.append(ValidationError(
                field=f"{row}.symbol",
                message="Symbol missing",
                value=order.get("symbol")
            ))

        stake = order.get("stake")
        if not _is_number(stake) or stake <= 0:
            errors.append(ValidationError(
                field=f"{row}.stake",
                message="Must be a positive number",
                value=stake
            ))

        duration = order.get("duration")
        if duration is not None and (not _is_int(duration) or not 1 <= duration <= 10):
            errors.append(ValidationError(
                field=f"{row}.duration",
                message="Ticks must be between 1 and 10",
                value=duration
            ))

        prediction = order.get("prediction")
        if prediction is not None and (not _is_int(prediction) or not 0 <= prediction <= 9):
            errors.append(ValidationError(
                field=f"{row}.prediction",
                message="Must be a digit between 0 and 9",
                value=prediction
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "feed" in config:
            errors.extend(ConfigValidator.validate_feed_params(config["feed"]))

        if "detector" in config:
            errors.extend(ConfigValidator.validate_detector_params(config["detector"]))

        if "martingale" in config:
            errors.extend(ConfigValidator.validate_martingale_params(config["martingale"]))

        if "recovery" in config:
            errors.extend(ConfigValidator.validate_recovery_params(config["recovery"]))

        if "limits" in config:
            errors.extend(ConfigValidator.validate_limit_params(config["limits"]))

        if "execution" in config:
            errors.extend(ConfigValidator.validate_execution_params(config["execution"]))

        if "accumulator" in config:
            errors.extend(ConfigValidator.validate_accumulator_params(config["accumulator"]))

        return errors
