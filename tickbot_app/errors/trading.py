"""
Trading failure classifications.

Halt errors stop auto-trading and require the operator to restart the
engine. Lifecycle errors describe misuse of the active contract slot.
"""

from typing import Optional, Dict, Any


class TradingHaltError(Exception):
    """Base class for conditions that are fatal for auto-trading."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class MartingaleCapExceeded(TradingHaltError):
    """Loss streak pushed the martingale level past its configured maximum."""

    def __init__(self, message: str, level: Optional[int] = None,
                 max_level: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.level = level
        self.max_level = max_level


class RecoveryExhausted(TradingHaltError):
    """Recovery mode ran out of attempts without a win."""

    def __init__(self, message: str, attempts: Optional[int] = None,
                 max_attempts: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.max_attempts = max_attempts


class LimitReachedError(TradingHaltError):
    """Aggregate take-profit or stop-loss reached."""

    def __init__(self, message: str, limit: Optional[str] = None,
                 total_profit: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.limit = limit
        self.total_profit = total_profit


class LifecycleError(Exception):
    """Base class for contract lifecycle misuse."""

    def __init__(self, message: str, contract_id: Optional[str] = None):
        super().__init__(message)
        self.contract_id = contract_id


class SlotOccupiedError(LifecycleError):
    """A purchase was attempted while another contract is still open."""

    def __init__(self, message: str, open_contracts: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.open_contracts = open_contracts or []


class UnknownContractError(LifecycleError):
    """Operation referenced a contract that is not tracked."""


class ConfigurationError(Exception):
    """Invalid engine configuration."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []
