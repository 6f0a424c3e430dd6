"""
Contract lifecycle management.

ContractLifecycleManager purchases contracts through the gateway, owns every
contract status subscription, feeds profits into the aggregate ledger and
resolves completion futures when a terminal update arrives. At most one
non-terminal contract is allowed unless the caller explicitly asks for
concurrency (dual-barrier legs, fast mode, bulk orders).
"""

import asyncio
from collections import OrderedDict
from typing import Any, Callable, Optional, Sequence

import structlog

from ..config.defaults import ExecutionParams
from ..errors import (
    GatewayError,
    GatewayRejectionError,
    LifecycleError,
    SlotOccupiedError,
    TransientConnectionError,
    UnknownContractError,
)
from ..gateway.base import PurchaseRequest, TradingGateway
from ..risk.models import AggregateLedger
from ..state.models import SubOrder
from .models import (
    BulkMode,
    BulkOrder,
    BulkResult,
    BulkRowStatus,
    Contract,
    ContractOutcome,
    ContractStatus,
    ContractUpdate,
)

logger = structlog.get_logger(__name__)

ContractListener = Callable[[Contract, Optional[ContractOutcome]], None]

MAX_REMEMBERED_OUTCOMES = 100


class ContractLifecycleManager:
    """Purchase, track and settle contracts against a trading gateway."""

    def __init__(self, gateway: TradingGateway, ledger: Optional[AggregateLedger] = None,
                 params: Optional[ExecutionParams] = None, symbol: Optional[str] = None):
        self.gateway = gateway
        self.ledger = ledger if ledger is not None else AggregateLedger()
        self.params = params or ExecutionParams()
        self.symbol = symbol

        self._contracts: dict[str, Contract] = {}
        self._waiters: dict[str, asyncio.Future] = {}
        self._outcomes: OrderedDict = OrderedDict()
        self._listeners: list[ContractListener] = []
        self._pending_purchases = 0
        self._tasks: set = set()

    @property
    def active_contracts(self) -> list[Contract]:
        return list(self._contracts.values())

    @property
    def has_open_contract(self) -> bool:
        """True while any contract is non-terminal or a purchase is in flight."""
        return bool(self._contracts) or self._pending_purchases > 0

    def add_listener(self, listener: ContractListener) -> None:
        """
        Register a callback for contract updates.

        Called with ``(contract, None)`` for open updates and with
        ``(contract, outcome)`` once the contract is terminal or abandoned.
        """
        self._listeners.append(listener)

    def get_outcome(self, contract_id: str) -> Optional[ContractOutcome]:
        return self._outcomes.get(contract_id)

    async def execute(self, trade_type: str, prediction: Optional[int], stake: float, *,
                      barrier: Optional[str] = None, growth_rate: Optional[float] = None,
                      symbol: Optional[str] = None,
                      duration: Optional[int] = None,
                      allow_concurrent: bool = False) -> Contract:
        """
        Buy a contract and subscribe to its status stream.

        Raises:
            SlotOccupiedError: Another contract is open and concurrency was not allowed.
            GatewayRejectionError: The gateway refused the purchase.
        """
        if not allow_concurrent and self.has_open_contract:
            raise SlotOccupiedError(
                "A contract is already open",
                open_contracts=[c.contract_id for c in self._contracts.values()],
            )

        symbol = symbol or self.symbol
        if symbol is None:
            raise ValueError("No symbol selected for purchase")

        request = PurchaseRequest(
            contract_type=trade_type,
            amount=stake,
            symbol=symbol,
            duration=self.params.duration if duration is None else duration,
            duration_unit=self.params.duration_unit,
            currency=self.params.currency,
            prediction=prediction,
            barrier=barrier,
            growth_rate=growth_rate,
        )

        self._pending_purchases += 1
        try:
            receipt = await self.gateway.buy(request)
        except GatewayRejectionError as e:
            logger.warning("Purchase rejected", trade_type=trade_type, stake=stake,
                           error=str(e), code=e.code, error_type=type(e).__name__)
            raise
        finally:
            self._pending_purchases -= 1

        contract = Contract(
            contract_id=receipt.contract_id,
            trade_type=trade_type,
            stake=stake,
            prediction=prediction,
            barrier=barrier,
            buy_price=receipt.buy_price,
        )
        self._contracts[contract.contract_id] = contract
        self._waiters[contract.contract_id] = asyncio.get_running_loop().create_future()
        logger.info("Contract purchased", contract_id=contract.contract_id,
                    trade_type=trade_type, prediction=prediction, stake=stake,
                    buy_price=receipt.buy_price)

        try:
            subscription_id = await self.gateway.subscribe_contract(
                contract.contract_id, self.handle_update)
        except TransientConnectionError as e:
            # Contract stays tracked; its completion wait ends in an unknown outcome
            logger.error("Contract subscription failed", contract_id=contract.contract_id,
                         error=str(e), error_type=type(e).__name__)
            return contract

        contract.subscription_id = subscription_id
        if contract.is_terminal:
            await self._unsubscribe(subscription_id, contract.contract_id)
        return contract

    async def execute_many(self, orders: Sequence[SubOrder], stake: float, *,
                           symbol: Optional[str] = None) -> list[Contract]:
        """
        Buy sibling contracts concurrently.

        Legs that fail are logged and skipped; if every leg fails the first
        error is raised.
        """
        if self.has_open_contract:
            raise SlotOccupiedError(
                "A contract is already open",
                open_contracts=[c.contract_id for c in self._contracts.values()],
            )

        results = await asyncio.gather(
            *(self.execute(order.trade_type, order.prediction, stake, barrier=order.barrier,
                           symbol=symbol, allow_concurrent=True)
              for order in orders),
            return_exceptions=True,
        )

        contracts = []
        errors = []
        for order, result in zip(orders, results):
            if isinstance(result, BaseException):
                errors.append(result)
                logger.warning("Sibling purchase failed", trade_type=order.trade_type,
                               prediction=order.prediction, error=str(result),
                               error_type=type(result).__name__)
            else:
                contracts.append(result)

        if not contracts and errors:
            raise errors[0]
        return contracts

    async def execute_bulk(self, orders: Sequence[BulkOrder],
                           mode: BulkMode = BulkMode.SIMULTANEOUS, *,
                           should_stop: Optional[Callable[[], bool]] = None) -> list[BulkResult]:
        """
        Buy a list of independent orders and wait for each to settle.

        In simultaneous mode every row is bought at once; in sequential mode
        a row is bought only after the previous one settled. A failed row is
        reported in its result and does not stop the others. Rows not yet
        bought when ``should_stop`` returns True are skipped.

        Raises:
            SlotOccupiedError: A contract is already open.
        """
        if self.has_open_contract:
            raise SlotOccupiedError(
                "A contract is already open",
                open_contracts=[c.contract_id for c in self._contracts.values()],
            )
        should_stop = should_stop or (lambda: False)
        logger.info("Bulk order started", rows=len(orders), mode=BulkMode(mode).value)

        if mode == BulkMode.SIMULTANEOUS:
            results = list(await asyncio.gather(
                *(self._run_bulk_order(index, order, should_stop)
                  for index, order in enumerate(orders))))
        else:
            results = []
            for index, order in enumerate(orders):
                results.append(await self._run_bulk_order(index, order, should_stop))

        logger.info("Bulk order finished", rows=len(results),
                    settled=sum(r.status == BulkRowStatus.SETTLED for r in results),
                    profit=round(sum(r.profit for r in results), 2))
        return results

    async def _run_bulk_order(self, index: int, order: BulkOrder,
                              should_stop: Callable[[], bool]) -> BulkResult:
        if should_stop():
            return BulkResult(index, order, BulkRowStatus.SKIPPED)
        try:
            contract = await self.execute(order.trade_type, order.prediction, order.stake,
                                          barrier=order.barrier, symbol=order.symbol,
                                          duration=order.duration, allow_concurrent=True)
        except (GatewayError, LifecycleError, ValueError) as e:
            logger.warning("Bulk row failed", row=index, trade_type=order.trade_type,
                           error=str(e), error_type=type(e).__name__)
            return BulkResult(index, order, BulkRowStatus.ERROR, error=str(e))

        try:
            outcome = await self.await_completion(contract.contract_id)
        except UnknownContractError:
            # Released by cancel_all before the wait started
            outcome = ContractOutcome.unknown(contract.contract_id)
        status = BulkRowStatus.SETTLED if outcome.is_known else BulkRowStatus.UNKNOWN
        return BulkResult(index, order, status, contract_id=contract.contract_id, outcome=outcome)

    def handle_update(self, payload: dict[str, Any]) -> None:
        """Gateway contract status handler."""
        try:
            update = ContractUpdate.from_payload(payload)
        except ValueError as e:
            logger.warning("Malformed contract update ignored", error=str(e))
            return

        contract = self._contracts.get(update.contract_id)
        if contract is None:
            logger.debug("Update for untracked contract ignored", contract_id=update.contract_id)
            return

        contract.profit = update.profit
        if not update.is_terminal:
            contract.status = ContractStatus.OPEN
            self.ledger.update_open(contract.contract_id, update.profit)
            self._notify(contract, None)
            return

        contract.status = ContractStatus.CLOSED
        del self._contracts[contract.contract_id]
        self.ledger.realize(contract.contract_id, update.profit)
        outcome = ContractOutcome.from_profit(contract.contract_id, update.profit)
        logger.info("Contract settled", contract_id=contract.contract_id,
                    outcome=outcome.kind.value, profit=update.profit,
                    total_profit=round(self.ledger.total, 2))

        self._finish(contract, outcome)
        if contract.subscription_id is not None:
            task = asyncio.get_running_loop().create_task(
                self._unsubscribe(contract.subscription_id, contract.contract_id))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def await_completion(self, contract_id: str,
                               timeout: Optional[float] = None) -> ContractOutcome:
        """
        Wait for the contract's terminal outcome.

        On timeout the contract is released from the active set, its
        subscription is cancelled and an UNKNOWN outcome is returned. A wait
        released by cancel_all also ends UNKNOWN.

        Raises:
            UnknownContractError: The contract was never tracked.
        """
        known = self._outcomes.get(contract_id)
        if known is not None:
            return known

        future = self._waiters.get(contract_id)
        if future is None:
            raise UnknownContractError(f"Contract {contract_id} is not tracked",
                                       contract_id=contract_id)

        timeout = self.params.completion_timeout_s if timeout is None else timeout
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout)
        except asyncio.TimeoutError:
            return await self._abandon(contract_id, timeout)
        except asyncio.CancelledError:
            if not future.cancelled():
                raise
            return ContractOutcome.unknown(contract_id)

    async def close(self, contract_id: str) -> float:
        """
        Sell an open contract early. The terminal update arrives on the stream.

        Raises:
            UnknownContractError: The contract is not open.
            GatewayRejectionError: The gateway refused the sale.
        """
        if contract_id not in self._contracts:
            raise UnknownContractError(f"Contract {contract_id} is not open",
                                       contract_id=contract_id)
        sell_price = await self.gateway.sell(contract_id)
        logger.info("Contract sold", contract_id=contract_id, sell_price=sell_price)
        return sell_price

    async def cancel_all(self) -> None:
        """Drop every tracked contract, its subscription and its completion wait."""
        contracts = list(self._contracts.values())
        self._contracts.clear()
        for contract in contracts:
            self.ledger.drop(contract.contract_id)
            if contract.subscription_id is not None:
                await self._unsubscribe(contract.subscription_id, contract.contract_id)

        for future in self._waiters.values():
            if not future.done():
                future.cancel()
        self._waiters.clear()

        if contracts:
            logger.info("Contracts released", count=len(contracts))

    async def _abandon(self, contract_id: str, timeout: float) -> ContractOutcome:
        outcome = ContractOutcome.unknown(contract_id)
        contract = self._contracts.pop(contract_id, None)
        logger.warning("Contract completion timed out", contract_id=contract_id,
                       timeout_s=timeout)
        if contract is None:
            # Settled or released while the timeout fired
            return self._outcomes.get(contract_id, outcome)

        contract.status = ContractStatus.CLOSED
        self.ledger.drop(contract_id)
        self._finish(contract, outcome)
        if contract.subscription_id is not None:
            await self._unsubscribe(contract.subscription_id, contract_id)
        return outcome

    def _finish(self, contract: Contract, outcome: ContractOutcome) -> None:
        self._outcomes[contract.contract_id] = outcome
        while len(self._outcomes) > MAX_REMEMBERED_OUTCOMES:
            self._outcomes.popitem(last=False)

        future = self._waiters.pop(contract.contract_id, None)
        if future is not None and not future.done():
            future.set_result(outcome)
        self._notify(contract, outcome)

    def _notify(self, contract: Contract, outcome: Optional[ContractOutcome]) -> None:
        for listener in self._listeners:
            listener(contract, outcome)

    async def _unsubscribe(self, subscription_id: str, contract_id: str) -> None:
        try:
            await self.gateway.unsubscribe(subscription_id)
        except GatewayError as e:
            logger.warning("Contract unsubscribe failed", contract_id=contract_id,
                           subscription_id=subscription_id, error=str(e),
                           error_type=type(e).__name__)
