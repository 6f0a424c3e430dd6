"""
Error classification system for the tick decision engine.

This module provides a structured exception hierarchy for the different kinds
of failures encountered while ingesting ticks, talking to the trading gateway
and enforcing risk limits.
"""

from .data_quality import (
    DataQualityError,
    MalformedTickError,
)
from .gateway import (
    GatewayError,
    TransientConnectionError,
    GatewayRejectionError,
)
from .trading import (
    TradingHaltError,
    MartingaleCapExceeded,
    RecoveryExhausted,
    LimitReachedError,
    LifecycleError,
    SlotOccupiedError,
    UnknownContractError,
    ConfigurationError,
)
from .system_failures import (
    SystemFailureError,
    MetricsCalculationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MalformedTickError",
    # Gateway Errors
    "GatewayError",
    "TransientConnectionError",
    "GatewayRejectionError",
    # Trading Halts
    "TradingHaltError",
    "MartingaleCapExceeded",
    "RecoveryExhausted",
    "LimitReachedError",
    # Lifecycle
    "LifecycleError",
    "SlotOccupiedError",
    "UnknownContractError",
    # Configuration
    "ConfigurationError",
    # System Failures
    "SystemFailureError",
    "MetricsCalculationError",
]
