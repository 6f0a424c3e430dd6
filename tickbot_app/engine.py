"""
Main trading engine coordinator.

Orchestrates the tick pipeline and the auto-trading loop, coordinating the
tick feed, feature computation, signal detection, risk management and the
contract lifecycle.
"""

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import EngineConfig, RecoveryParams, get_default_config
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .data.feed import TickFeed
from .data.models import Tick
from .errors import (
    ConfigurationError,
    GatewayError,
    GatewayRejectionError,
    LimitReachedError,
    MetricsCalculationError,
    SlotOccupiedError,
    TradingHaltError,
    TransientConnectionError,
    UnknownContractError,
)
from .execution.barrier import AccumulatorTracker, BarrierBand
from .execution.lifecycle import ContractLifecycleManager
from .execution.models import (
    BulkMode,
    BulkOrder,
    BulkResult,
    BulkRowStatus,
    Contract,
    ContractOutcome,
)
from .gateway.base import Session, TradingGateway
from .metrics.calculator import MetricsCalculator
from .models.metrics import FeatureSnapshot
from .models.snapshot import EngineSnapshot
from .publishing.base import SnapshotPublisher
from .risk.manager import RiskManager
from .risk.models import AggregateLedger
from .state.machine import SignalDetector
from .state.models import EntrySignal, StrategyConfig

logger = structlog.get_logger(__name__)


class TradingEngine:
    """
    Coordinator for the tick decision and contract lifecycle pipeline.

    Tick → Features → Signal → Stake → Contract → Outcome → Stake/Re-arm
    """

    def __init__(self, gateway: TradingGateway, config: Optional[EngineConfig] = None,
                 publishers: Optional[list[SnapshotPublisher]] = None,
                 token: Optional[str] = None) -> None:
        """Initialize the engine and its components."""
        self.config = config or get_default_config()
        self.gateway = gateway
        self.token = token
        self.session: Optional[Session] = None

        self.feed = TickFeed(gateway, self.config.feed, on_tick=self.on_tick)
        self.calculator = MetricsCalculator(self.config.detector)
        self.risk = RiskManager(self.config.martingale, self.config.recovery,
                                fast_mode=self.config.execution.fast_mode)
        self.ledger = AggregateLedger(take_profit=self.config.limits.take_profit,
                                      stop_loss=self.config.limits.stop_loss)
        self.lifecycle = ContractLifecycleManager(gateway, self.ledger, self.config.execution)
        self.lifecycle.add_listener(self._on_contract_event)

        self.publishers: list[SnapshotPublisher] = list(publishers or [])

        self.strategy: Optional[StrategyConfig] = None
        self.detector: Optional[SignalDetector] = None
        self.symbol: Optional[str] = None

        self.running = False
        self.status_text = "Idle"
        self.halted_reason: Optional[str] = None

        self.band: Optional[BarrierBand] = None
        self.accumulator: Optional[AccumulatorTracker] = None

        self.tick_interval = self.config.detector.tick_interval
        self.bulk_running = False

        self._trade_task: Optional[asyncio.Task] = None
        self._stop_requested = False
        self._bulk_stop_requested = False
        self._ticks_since_entry = 0
        self._tasks: set = set()

        logger.info("Trading engine initialized", fast_mode=self.risk.fast_mode,
                    base_stake=self.config.martingale.base_stake)

    @classmethod
    def from_config(cls, gateway: TradingGateway, symbol: str,
                    overrides: Optional[dict[str, Any]] = None,
                    config_dir: Optional[Path] = None, **kwargs) -> "TradingEngine":
        """
        Build an engine from defaults, instrument overrides and runtime overrides.

        Raises:
            ConfigurationError: If the merged configuration is invalid.
        """
        loader = ConfigLoader.create(config_dir)
        config = loader.build_engine_config(symbol, overrides)
        engine = cls(gateway, config=config, **kwargs)
        engine.symbol = symbol
        return engine

    # Commands

    def select_strategy(self, strategy: StrategyConfig) -> None:
        """Select the entry strategy; the detector starts armed with empty counters."""
        self.strategy = strategy
        self.detector = SignalDetector(strategy, self.config.detector)
        self.risk.set_strategy(strategy)
        self._set_status(f"Strategy selected: {strategy.label}")

    def set_stake(self, base_stake: float, multiplier: Optional[float] = None,
                  max_level: Optional[int] = None) -> bool:
        """Replace the stake plan. Refused while auto-trading runs."""
        if self.running:
            logger.warning("Stake change refused while running", base_stake=base_stake)
            return False
        self.risk.configure_stake(base_stake, multiplier, max_level)
        self._set_status(f"Stake set to {self.risk.current_stake:.2f}")
        return True

    def set_limits(self, take_profit: Optional[float] = None,
                   stop_loss: Optional[float] = None) -> None:
        """
        Set aggregate take-profit / stop-loss (None disables a limit).

        Raises:
            ConfigurationError: If a limit is not a positive number.
        """
        errors = ConfigValidator.validate_limit_params(
            {"take_profit": take_profit, "stop_loss": stop_loss})
        if errors:
            raise ConfigurationError("Invalid limits", errors=errors)
        self.ledger.take_profit = take_profit
        self.ledger.stop_loss = stop_loss
        logger.info("Limits set", take_profit=take_profit, stop_loss=stop_loss)

    def set_fast_mode(self, enabled: bool) -> bool:
        """Toggle fast mode. Refused while auto-trading runs."""
        if self.running:
            logger.warning("Fast mode toggle refused while running", fast_mode=enabled)
            self._set_status("Stop auto trading before changing fast mode")
            return False
        self.risk.set_fast_mode(enabled)
        self._set_status("Fast mode on" if enabled else "Fast mode off")
        return True

    def set_recovery(self, enabled: bool, trade_type: Optional[str] = None,
                     target_digit: Optional[int] = None,
                     max_attempts: Optional[int] = None) -> None:
        """
        Configure recovery substitution.

        Raises:
            ConfigurationError: If the recovery parameters are invalid.
        """
        values = {
            "enabled": enabled,
            "trade_type": trade_type,
            "target_digit": target_digit,
            "max_attempts": self.risk.recovery_params.max_attempts if max_attempts is None
            else max_attempts,
        }
        errors = ConfigValidator.validate_recovery_params(values)
        if errors:
            raise ConfigurationError("Invalid recovery parameters", errors=errors)
        self.risk.configure_recovery(RecoveryParams(**values))
        logger.info("Recovery configured", **values)

    def set_tick_interval(self, interval: Optional[int]) -> bool:
        """
        Buy every ``interval`` ticks instead of waiting for entry signals.

        None returns to signal-driven entries. Refused while auto-trading runs.

        Raises:
            ConfigurationError: If the interval is not an integer >= 1.
        """
        errors = ConfigValidator.validate_detector_params({"tick_interval": interval})
        if errors:
            raise ConfigurationError("Invalid tick interval", errors=errors)
        if self.running:
            logger.warning("Tick interval change refused while running", tick_interval=interval)
            return False
        self.tick_interval = interval
        self._ticks_since_entry = 0
        self._set_status(f"Trading every {interval} ticks" if interval else "Trading on signals")
        return True

    async def select_market(self, symbol: str) -> bool:
        """
        Switch the live symbol. Buffers are cleared and precision reseeded.

        Returns False when the tick subscription could not be opened.
        """
        try:
            await self.feed.switch_symbol(symbol)
        except TransientConnectionError as e:
            logger.error("Market selection failed", symbol=symbol, error=str(e),
                         error_type=type(e).__name__)
            self._set_status(f"Could not subscribe to {symbol}: {e}")
            return False

        self.symbol = symbol
        self.lifecycle.symbol = symbol
        self.calculator.reset()
        self.band = None
        self._ticks_since_entry = 0
        if self.detector is not None:
            self.detector.reset()
        self._set_status(f"Watching {symbol}")
        return True

    async def start(self) -> None:
        """
        Start auto-trading on the selected market and strategy.

        Raises:
            ConfigurationError: No strategy or market selected.
            GatewayRejectionError: Authorization was refused.
        """
        if self.running:
            return
        if self.strategy is None or self.detector is None:
            raise ConfigurationError("Select a strategy before starting")
        if not self.feed.is_subscribed:
            if self.symbol is None:
                raise ConfigurationError("Select a market before starting")
            if not await self.select_market(self.symbol):
                return

        if self.token and self.session is None:
            try:
                self.session = await self.gateway.authorize(self.token)
            except GatewayRejectionError as e:
                self._set_status(f"Authorization failed: {e}")
                raise
            self.lifecycle.params = self._with_currency(self.session.currency)

        self.risk.reset()
        self.ledger.reset()
        self.detector.reset()
        self.halted_reason = None
        self._stop_requested = False
        self._ticks_since_entry = 0
        self.running = True

        logger.info("Auto trading started", symbol=self.symbol, strategy=self.strategy.label,
                    stake=self.risk.current_stake, fast_mode=self.risk.fast_mode)
        self._set_status(f"Auto trading {self.strategy.label} on {self.symbol}")

    async def stop(self, reason: str = "Auto trading stopped") -> None:
        """
        Stop auto-trading.

        Cancels the trade in flight, releases all contract and tick
        subscriptions and clears the buffers.
        """
        self._stop_requested = True
        self._bulk_stop_requested = True
        self.running = False

        task = self._trade_task
        self._trade_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self.lifecycle.cancel_all()
        await self.feed.stop()
        self.feed.buffers.clear()
        self.accumulator = None
        if self.detector is not None:
            self.detector.reset()

        logger.info("Auto trading stopped", reason=reason, halted_reason=self.halted_reason,
                    total_profit=round(self.ledger.total, 2))
        self._set_status(reason)

    async def open_accumulator(self, stake: Optional[float] = None,
                               growth_rate: Optional[float] = None,
                               take_profit: Optional[float] = None) -> Contract:
        """
        Buy an accumulator contract that is closed on band breach.

        Raises:
            ConfigurationError: Unsupported growth rate or take-profit.
            SlotOccupiedError: Another contract is open.
            GatewayRejectionError: The gateway refused the purchase.
        """
        params = self.config.accumulator
        stake = self.risk.plan.base_stake if stake is None else stake
        growth_rate = params.growth_rate if growth_rate is None else growth_rate
        take_profit = params.take_profit if take_profit is None else take_profit

        errors = ConfigValidator.validate_accumulator_params(
            {"growth_rate": growth_rate, "take_profit": take_profit})
        if errors:
            raise ConfigurationError("Invalid accumulator parameters", errors=errors)

        contract = await self.lifecycle.execute("ACCU", None, stake, growth_rate=growth_rate)
        self.accumulator = AccumulatorTracker(
            contract.contract_id, stake, growth_rate, symbol=self.symbol,
            previous_price=self.feed.buffers.last_price, take_profit=take_profit,
        )
        self._set_status(f"Accumulator {contract.contract_id} open at {growth_rate:.0%}")
        return contract

    async def run_bulk(self, orders: list[BulkOrder],
                       mode: BulkMode = BulkMode.SIMULTANEOUS) -> list[BulkResult]:
        """
        Buy a list of independent orders outside the auto-trading loop.

        Rows without a symbol trade the selected market. Outcomes count
        towards the aggregate ledger but never move the martingale level.
        ``stop`` skips the rows not yet bought.

        Raises:
            ConfigurationError: Auto-trading is running, the list is empty or
                a row is invalid.
            SlotOccupiedError: A contract is already open.
        """
        if self.running or self.bulk_running:
            raise ConfigurationError("Stop auto trading before running bulk orders")
        if not orders:
            raise ConfigurationError("No bulk orders configured")

        rows = [order if order.symbol else replace(order, symbol=self.symbol) for order in orders]
        errors = []
        for index, order in enumerate(rows):
            errors.extend(ConfigValidator.validate_bulk_order(index, order.to_dict()))
        if errors:
            raise ConfigurationError("Invalid bulk orders", errors=errors)

        mode = BulkMode(mode)
        self.bulk_running = True
        self._bulk_stop_requested = False
        self._set_status(f"Bulk {mode.value}: {len(rows)} orders")
        try:
            results = await self.lifecycle.execute_bulk(
                rows, mode, should_stop=lambda: self._bulk_stop_requested)
        finally:
            self.bulk_running = False

        settled = [r for r in results if r.status == BulkRowStatus.SETTLED]
        profit = sum(r.profit for r in results)
        self._set_status(f"Bulk done: {len(settled)}/{len(results)} settled, {profit:+.2f}")
        return results

    # Tick pipeline

    def on_tick(self, tick: Tick) -> None:
        """Per-tick pipeline: features, band, signal detection, snapshot."""
        buffers = self.feed.buffers
        try:
            self.calculator.compute(buffers.digits, buffers.prices)
        except MetricsCalculationError as e:
            logger.error("Feature computation failed", symbol=tick.symbol, error=str(e),
                         error_type=type(e).__name__, metric=e.metric_name)
            return

        self._update_band(tick)

        if self.running and not self._stop_requested and self.detector is not None:
            signal = self._next_signal(tick)
            if signal is not None:
                self._trade_task = self._spawn(self._execute_signal(signal))

        self._publish()

    def _next_signal(self, tick: Tick) -> Optional[EntrySignal]:
        if self.tick_interval:
            # Ticks keep counting while a trade is in flight
            self._ticks_since_entry += 1
            if self._ticks_since_entry < self.tick_interval or self._trade_in_flight():
                return None
            self._ticks_since_entry = 0
            return self.detector.fire_now(f"every {self.tick_interval} ticks")
        if self._trade_in_flight():
            return None
        return self.detector.observe_tick(tick.digit, self.feed.buffers.prices)

    def _update_band(self, tick: Tick) -> None:
        tracker = self.accumulator
        if tracker is not None:
            result = tracker.on_tick(tick.price)
            if result is not None and result.close_reason is not None:
                self._spawn(self._close_accumulator(tracker.contract_id, result.close_reason))

        growth_rate = tracker.growth_rate if tracker else self.config.accumulator.growth_rate
        self.band = BarrierBand.update(tick.price, growth_rate, tick.symbol)

    # Auto-trading

    async def _execute_signal(self, signal: EntrySignal) -> None:
        if self._stop_requested:
            return
        entry = self.risk.plan_entry(signal)
        self._set_status(f"Entry: {entry.reason} @ {entry.stake:.2f}")

        orders = entry.orders
        try:
            if len(orders) > 1:
                contracts = await self.lifecycle.execute_many(orders, entry.stake)
            else:
                contract = await self.lifecycle.execute(
                    orders[0].trade_type, orders[0].prediction, entry.stake,
                    barrier=orders[0].barrier, allow_concurrent=self.risk.fast_mode,
                )
                contracts = [contract]
        except SlotOccupiedError as e:
            logger.warning("Entry skipped, slot occupied", open_contracts=e.open_contracts)
            self._rearm()
            return
        except GatewayError as e:
            logger.warning("Entry failed", trade_type=entry.trade_type, stake=entry.stake,
                           error=str(e), error_type=type(e).__name__)
            self._set_status(f"Purchase failed: {e}")
            await asyncio.sleep(self.config.execution.error_backoff_s)
            self._rearm()
            return

        if self._stop_requested:
            return

        if self.risk.fast_mode:
            # Settlement is awaited in the background; the next entry does not wait for it
            self._spawn(self._settle(contracts))
            await asyncio.sleep(self.config.execution.fast_mode_delay_s)
            self._rearm()
            return

        await self._settle(contracts)
        if self.running:
            self._rearm()

    async def _settle(self, contracts: list[Contract]) -> None:
        """Wait for every leg of one entry and apply the combined outcome once."""
        outcomes = await asyncio.gather(
            *(self.lifecycle.await_completion(c.contract_id) for c in contracts))
        if self._stop_requested or not self.running:
            return
        self._apply_outcomes(outcomes)

    def _apply_outcomes(self, outcomes: list[ContractOutcome]) -> None:
        """Feed the combined outcome of one entry into the risk manager."""
        known = [o for o in outcomes if o.is_known]
        if not known:
            for outcome in outcomes:
                self.risk.on_unknown_outcome(outcome.contract_id)
            self._set_status("Outcome unknown, stake unchanged")
            return

        profit = sum(o.profit for o in known)
        try:
            decision = self.risk.on_outcome(profit > 0, profit)
        except TradingHaltError as e:
            self._halt(e)
            return

        result = "Won" if profit > 0 else "Lost"
        self._set_status(f"{result} {profit:+.2f}, next stake {decision.next_stake:.2f}")

    def _on_contract_event(self, contract: Contract, outcome: Optional[ContractOutcome]) -> None:
        """Lifecycle listener: accumulator release and aggregate limits."""
        if (outcome is not None and self.accumulator is not None
                and contract.contract_id == self.accumulator.contract_id):
            self.accumulator = None

        breach = self.risk.check_limits(self.ledger)
        if breach is not None and self.running:
            self._halt(LimitReachedError(breach.message, limit=breach.limit,
                                         total_profit=breach.total_profit))
            return
        self._publish()

    def _halt(self, error: TradingHaltError) -> None:
        """Stop auto-trading after a halting condition."""
        if self._stop_requested:
            return
        self.halted_reason = str(error)
        self.running = False
        self._stop_requested = True
        logger.warning("Auto trading halted", reason=self.halted_reason,
                       error_type=type(error).__name__,
                       total_profit=round(self.ledger.total, 2))
        self._set_status(f"Halted: {self.halted_reason}")
        self._spawn(self.stop(reason=f"Halted: {self.halted_reason}"))

    async def _close_accumulator(self, contract_id: str, reason: str) -> None:
        try:
            await self.lifecycle.close(contract_id)
        except (GatewayError, UnknownContractError) as e:
            logger.warning("Accumulator close failed", contract_id=contract_id, reason=reason,
                           error=str(e), error_type=type(e).__name__)

    def _rearm(self) -> None:
        if self.detector is not None:
            self.detector.rearm()

    def _trade_in_flight(self) -> bool:
        return self._trade_task is not None and not self._trade_task.done()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _with_currency(self, currency: str):
        return replace(self.lifecycle.params, currency=currency)

    # Snapshots

    def add_publisher(self, publisher: SnapshotPublisher) -> None:
        self.publishers.append(publisher)

    def snapshot(self) -> EngineSnapshot:
        """Immutable view of the current engine state."""
        features = self.calculator.get_last_snapshot() or FeatureSnapshot()
        return EngineSnapshot(
            symbol=self.symbol,
            digit_histogram=features.digit_histogram,
            even_odd=features.even_odd,
            rise_fall=features.rise_fall,
            higher_lower=features.higher_lower,
            over_under=features.over_under,
            last_digit=features.last_digit,
            most_frequent_digit=features.most_frequent_digit(),
            least_frequent_digit=features.least_frequent_digit(),
            last_price=self.feed.buffers.last_price,
            current_stake=self.risk.current_stake,
            martingale_level=self.risk.level,
            recovery_active=self.risk.recovery.active,
            loss_streak=self.risk.loss_streak,
            max_loss_streak=self.risk.max_loss_streak,
            aggregate_profit=self.ledger.total,
            wins=self.ledger.wins,
            losses=self.ledger.losses,
            open_contracts=len(self.lifecycle.active_contracts),
            status_text=self.status_text,
            ticks_processed=self.feed.ticks_processed,
            running=self.running,
            fast_mode=self.risk.fast_mode,
            strategy=self.strategy.label if self.strategy else None,
            tick_interval=self.tick_interval,
            bulk_running=self.bulk_running,
            halted_reason=self.halted_reason,
            band_upper=self.band.upper if self.band else None,
            band_lower=self.band.lower if self.band else None,
        )

    def _set_status(self, text: str) -> None:
        self.status_text = text
        self._publish()

    def _publish(self) -> None:
        if not self.publishers:
            return
        snapshot = self.snapshot()
        for publisher in self.publishers:
            publisher.publish_safely(snapshot)
