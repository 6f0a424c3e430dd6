"""
Quote normalization and last-digit extraction.

The last digit of a tick is read from the quote formatted to the symbol's
decimal precision, so trailing zeros that the gateway drops (``1234.5`` at
precision 2 is ``1234.50``) still produce the correct digit. Precision is
inferred once per symbol from seed history.
"""

import math
from typing import Any, Iterable, Optional, Union

import structlog

from ..errors import MalformedTickError
from ..utils.time import epoch_to_datetime
from .models import NormalizationResult, Tick

logger = structlog.get_logger(__name__)

DEFAULT_PRECISION = 2


def _fraction_length(quote: Union[str, float, int]) -> int:
    """Number of fractional characters in the quote's textual form."""
    text = quote if isinstance(quote, str) else repr(quote)
    text = text.strip()
    if "e" in text.lower():
        # Scientific notation, fall back to a fixed rendering
        text = format(float(text), "f").rstrip("0")
    if "." not in text:
        return 0
    return len(text.split(".", 1)[1])


def infer_precision(quotes: Iterable[Union[str, float, int]],
                    default: int = DEFAULT_PRECISION) -> int:
    """
    Maximum fractional length seen across historical quotes.

    Unparsable entries are ignored. Returns ``default`` when no usable quote
    is present.
    """
    best: Optional[int] = None
    for quote in quotes:
        try:
            parse_quote(quote)
        except MalformedTickError:
            continue
        length = _fraction_length(quote)
        best = length if best is None else max(best, length)
    return default if best is None else best


def format_price(price: float, precision: int) -> str:
    """Format a price with exactly ``precision`` decimals."""
    return f"{price:.{precision}f}"


def extract_last_digit(formatted: str) -> Optional[int]:
    """
    Last character of the fractional part, or of the integer part when the
    fractional part is absent or empty.

    Returns None when that character is not a digit.
    """
    if not formatted:
        return None
    integer_part, _, fraction = formatted.partition(".")
    source = fraction if fraction else integer_part
    if not source:
        return None
    last = source[-1]
    return int(last) if last.isdigit() else None


def parse_quote(raw: Any) -> float:
    """Parse a raw quote into a finite positive price."""
    if isinstance(raw, bool) or raw is None:
        raise MalformedTickError(f"Quote is not numeric: {raw!r}", raw_quote=repr(raw))
    try:
        price = float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedTickError(f"Quote is not numeric: {raw!r}", raw_quote=repr(raw)) from e
    if not math.isfinite(price) or price <= 0:
        raise MalformedTickError(f"Quote out of range: {raw!r}", raw_quote=repr(raw))
    return price


class TickNormalizer:
    """Turns raw tick payloads into normalized ticks for one symbol at a time."""

    def __init__(self, precision: int = DEFAULT_PRECISION):
        self.precision = precision

    def build_tick(self, symbol: str, raw_quote: Any, epoch: Optional[int] = None) -> Tick:
        """Build a tick, raising MalformedTickError for unusable quotes."""
        try:
            price = parse_quote(raw_quote)
        except MalformedTickError as e:
            e.symbol = symbol
            raise
        digit = extract_last_digit(format_price(price, self.precision))
        return Tick(
            symbol=symbol,
            raw_price=raw_quote,
            epoch=epoch,
            decimal_precision=self.precision,
            price=price,
            digit=digit,
        )

    def normalize(self, payload: dict[str, Any], expected_symbol: Optional[str]) -> NormalizationResult:
        """
        Normalize a gateway tick payload.

        Payloads for other symbols are skipped; a late tick from a previous
        subscription must not reach the new symbol's buffers.
        """
        if not isinstance(payload, dict):
            return NormalizationResult.error(f"Tick payload is not a mapping: {type(payload).__name__}")

        symbol = payload.get("symbol")
        if expected_symbol is None or symbol != expected_symbol:
            return NormalizationResult.skipped(f"symbol {symbol!r} is not subscribed")

        raw_epoch = payload.get("epoch")
        epoch = int(float(raw_epoch)) if epoch_to_datetime(raw_epoch) is not None else None
        try:
            tick = self.build_tick(symbol, payload.get("quote"), epoch)
        except MalformedTickError as e:
            logger.debug("Malformed tick dropped", symbol=symbol, raw_quote=e.raw_quote, error=str(e))
            return NormalizationResult.error(str(e))

        return NormalizationResult.success_with_tick(tick)
