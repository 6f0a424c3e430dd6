"""
Data quality error classifications for tick processing.

These exceptions describe quotes that cannot be turned into a usable tick.
They are always handled at the feed boundary and never stop the engine.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedTickError(DataQualityError):
    """Quote exists but is not a usable price."""

    def __init__(self, message: str, raw_quote: Optional[str] = None,
                 symbol: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_quote = raw_quote
        self.symbol = symbol

