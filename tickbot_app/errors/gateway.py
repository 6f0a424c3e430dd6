"""
Gateway error classifications.

Transient errors are retried by the transport layer, never by the engine.
Rejections fail a single purchase attempt and leave the engine armed.
"""

from typing import Optional, Dict, Any


class GatewayError(Exception):
    """Base class for failures reported by the trading gateway."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.operation = operation
        self.context = context or {}


class TransientConnectionError(GatewayError):
    """Subscribe/unsubscribe or connectivity failure."""

    def __init__(self, message: str, retry_count: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_count = retry_count
        self.recoverable = True


class GatewayRejectionError(GatewayError):
    """Purchase rejected by the gateway (invalid barrier, insufficient funds...)."""

    def __init__(self, message: str, code: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code
        self.recoverable = True
