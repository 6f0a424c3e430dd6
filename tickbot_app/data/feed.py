"""
Live tick feed for a single symbol.

TickFeed owns the tick subscription, seeds the symbol's decimal precision
from history and appends every accepted tick to the rolling buffers before
handing it to the downstream callback. Only one symbol is live at a time;
switching symbols clears the buffers and reseeds precision.
"""

import asyncio
from typing import Any, Callable, Optional

import structlog

from ..config.defaults import FeedParams
from ..errors import GatewayError, MalformedTickError, TransientConnectionError
from ..gateway.base import TradingGateway
from .models import Tick, TickBuffers
from .normalizer import TickNormalizer, infer_precision

logger = structlog.get_logger(__name__)

TickCallback = Callable[[Tick], None]


class TickFeed:
    """Single-symbol tick subscription with precision seeding and bounded buffers."""

    def __init__(self, gateway: TradingGateway, params: Optional[FeedParams] = None,
                 on_tick: Optional[TickCallback] = None):
        self.gateway = gateway
        self.params = params or FeedParams()
        self.on_tick = on_tick

        self.buffers = TickBuffers(capacity=self.params.buffer_size)
        self.normalizer = TickNormalizer(precision=self.params.default_precision)

        self.symbol: Optional[str] = None
        self.subscription_id: Optional[str] = None

        # Counters survive symbol switches
        self.ticks_processed = 0
        self.dropped_ticks = 0

        self._switch_lock = asyncio.Lock()

    @property
    def precision(self) -> int:
        return self.normalizer.precision

    @property
    def is_subscribed(self) -> bool:
        return self.subscription_id is not None

    async def subscribe(self, symbol: str, default_precision: Optional[int] = None) -> None:
        """
        Seed precision for symbol and start its tick stream.

        Raises:
            TransientConnectionError: If the tick subscription cannot be opened.
        """
        async with self._switch_lock:
            await self._subscribe_locked(symbol, default_precision)

    async def switch_symbol(self, symbol: str, default_precision: Optional[int] = None) -> None:
        """Atomically replace the live symbol, discarding all buffered history."""
        async with self._switch_lock:
            await self._stop_locked()
            self.buffers.clear()
            await self._subscribe_locked(symbol, default_precision)

    async def stop(self) -> None:
        """Cancel the tick subscription. Unsubscribe failures are logged, not raised."""
        async with self._switch_lock:
            await self._stop_locked()

    def handle_quote(self, payload: dict[str, Any]) -> Optional[Tick]:
        """
        Gateway tick handler.

        Normalizes the payload, appends it to the buffers and forwards it to
        the tick callback. Malformed quotes are counted and dropped.
        """
        result = self.normalizer.normalize(payload, self.symbol)

        if not result.success:
            self.dropped_ticks += 1
            logger.debug("Tick dropped", symbol=self.symbol, reason=result.error_msg,
                         dropped_ticks=self.dropped_ticks)
            return None

        if result.skipped_reason:
            logger.debug("Tick skipped", reason=result.skipped_reason)
            return None

        tick = result.tick
        self.buffers.append(tick)
        self.ticks_processed += 1

        if self.on_tick is not None:
            self.on_tick(tick)
        return tick

    async def _subscribe_locked(self, symbol: str, default_precision: Optional[int]) -> None:
        if self.subscription_id is not None:
            await self._stop_locked()

        fallback = self.params.default_precision if default_precision is None else default_precision
        await self._seed(symbol, fallback)

        # Ticks are accepted only once the symbol is set
        self.symbol = symbol
        try:
            self.subscription_id = await self.gateway.subscribe_ticks(symbol, self.handle_quote)
        except TransientConnectionError as e:
            logger.error("Tick subscription failed", symbol=symbol, error=str(e),
                         error_type=type(e).__name__)
            self.symbol = None
            raise

        logger.info("Tick feed subscribed", symbol=symbol, precision=self.precision,
                    seeded_ticks=len(self.buffers))

    async def _seed(self, symbol: str, fallback_precision: int) -> None:
        """Infer decimal precision from history and seed the buffers."""
        try:
            history = await self.gateway.fetch_history(symbol, self.params.history_count)
        except GatewayError as e:
            logger.warning("History fetch failed, using default precision", symbol=symbol,
                           precision=fallback_precision, error=str(e),
                           error_type=type(e).__name__)
            self.normalizer.precision = fallback_precision
            self.buffers.clear()
            return

        self.normalizer.precision = infer_precision(history, default=fallback_precision)

        digits = []
        prices = []
        for quote in history:
            try:
                tick = self.normalizer.build_tick(symbol, quote)
            except MalformedTickError:
                continue
            prices.append(tick.price)
            if tick.digit is not None:
                digits.append(tick.digit)
        self.buffers.seed(digits, prices)
        self.ticks_processed += len(prices)

    async def _stop_locked(self) -> None:
        subscription_id = self.subscription_id
        symbol = self.symbol
        self.subscription_id = None
        self.symbol = None
        if subscription_id is None:
            return
        try:
            await self.gateway.unsubscribe(subscription_id)
            logger.info("Tick feed unsubscribed", symbol=symbol, subscription_id=subscription_id)
        except GatewayError as e:
            logger.warning("Tick unsubscribe failed", symbol=symbol, subscription_id=subscription_id,
                           error=str(e), error_type=type(e).__name__)
