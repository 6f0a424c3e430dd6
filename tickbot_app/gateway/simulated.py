"""
In-memory trading gateway.

SimulatedGateway generates a seeded random-walk price series, delivers tick
and contract payloads synchronously to registered handlers and settles
fixed-duration digit/movement contracts from the ticks it emits. Tests drive
it tick by tick with ``push_tick`` and ``settle``; demos let ``run`` stream
random ticks.
"""

import asyncio
import itertools
import random
from dataclasses import dataclass
from typing import Any, Optional, Union

import structlog

from ..errors import GatewayRejectionError, TransientConnectionError
from .base import (
    ContractHandler,
    PurchaseReceipt,
    PurchaseRequest,
    Session,
    TickHandler,
    TradingGateway,
)

logger = structlog.get_logger(__name__)


@dataclass
class SimulatedInstrument:
    """Random walk parameters for one symbol."""
    symbol: str
    initial_price: float = 1000.0
    volatility: float = 0.0002
    drift: float = 0.0
    precision: int = 2


@dataclass
class SimulatedContract:
    """Contract booked by the simulated gateway."""
    contract_id: str
    request: PurchaseRequest
    entry_price: Optional[float] = None
    ticks_remaining: int = 0
    profit: float = 0.0
    settled: bool = False


def _last_digit(price: float, precision: int) -> int:
    text = f"{price:.{precision}f}"
    return int(text[-1])


def contract_wins(contract_type: str, digit: int, entry_price: float, exit_price: float,
                  prediction: Optional[int] = None, barrier: Optional[str] = None) -> bool:
    """Settlement rule for fixed-duration contracts."""
    if contract_type.startswith("DIGIT") and prediction is None and barrier is not None:
        prediction = int(barrier)
    if contract_type == "DIGITEVEN":
        return digit % 2 == 0
    if contract_type == "DIGITODD":
        return digit % 2 == 1
    if contract_type == "DIGITOVER":
        return digit > int(prediction)
    if contract_type == "DIGITUNDER":
        return digit < int(prediction)
    if contract_type == "DIGITDIFF":
        return digit != int(prediction)
    if contract_type == "DIGITMATCH":
        return digit == int(prediction)

    reference = entry_price + float(barrier) if barrier else entry_price
    if contract_type == "CALL":
        return exit_price > reference
    if contract_type == "PUT":
        return exit_price < reference
    raise ValueError(f"Unsupported contract type: {contract_type}")


class SimulatedGateway(TradingGateway):
    """Deterministic (when seeded) gateway for tests and demos."""

    def __init__(self, seed: Optional[int] = None, payout_ratio: float = 0.95,
                 currency: str = "USD", balance: float = 10000.0,
                 auto_settle: bool = True):
        self.rng = random.Random(seed)
        self.payout_ratio = payout_ratio
        self.currency = currency
        self.balance = balance
        self.auto_settle = auto_settle

        self.instruments: dict[str, SimulatedInstrument] = {}
        self.histories: dict[str, list] = {}
        self.last_prices: dict[str, float] = {}

        self.tick_handlers: dict[str, tuple[str, TickHandler]] = {}
        self.contract_handlers: dict[str, tuple[str, ContractHandler]] = {}
        self.contracts: dict[str, SimulatedContract] = {}

        # Inspection hooks for tests
        self.purchases: list[PurchaseRequest] = []
        self.unsubscribed: list[str] = []
        self.reject_reason: Optional[str] = None
        self.fail_subscriptions = False
        self.fail_unsubscribe = False
        self.fail_history = False

        self._ids = itertools.count(1)

    def add_instrument(self, instrument: SimulatedInstrument) -> None:
        self.instruments[instrument.symbol] = instrument

    def set_history(self, symbol: str, quotes: list[Union[str, float]]) -> None:
        """Fix the history returned for symbol instead of generating one."""
        self.histories[symbol] = list(quotes)

    def _instrument(self, symbol: str) -> SimulatedInstrument:
        if symbol not in self.instruments:
            self.instruments[symbol] = SimulatedInstrument(symbol=symbol)
        return self.instruments[symbol]

    def next_price(self, symbol: str) -> float:
        """Advance the symbol's random walk by one step."""
        instrument = self._instrument(symbol)
        current = self.last_prices.get(symbol, instrument.initial_price)
        current *= 1.0 + self.rng.gauss(instrument.drift, instrument.volatility)
        current = round(current, instrument.precision)
        self.last_prices[symbol] = current
        return current

    # TradingGateway operations

    async def authorize(self, token: str) -> Session:
        if not token:
            raise GatewayRejectionError("Empty API token", code="InvalidToken", operation="authorize")
        return Session(currency=self.currency, loginid="VRTC0000001", balance=self.balance)

    async def fetch_history(self, symbol: str, count: int) -> list[Union[str, float]]:
        if self.fail_history:
            raise TransientConnectionError("History unavailable", operation="ticks_history")
        if symbol not in self.histories:
            self.histories[symbol] = [self.next_price(symbol) for _ in range(count)]
        return self.histories[symbol][-count:] if count > 0 else []

    async def subscribe_ticks(self, symbol: str, handler: TickHandler) -> str:
        if self.fail_subscriptions:
            raise TransientConnectionError("Tick subscription failed", operation="ticks")
        subscription_id = f"tick-{next(self._ids)}"
        self.tick_handlers[subscription_id] = (symbol, handler)
        return subscription_id

    async def subscribe_contract(self, contract_id: str, handler: ContractHandler) -> str:
        if self.fail_subscriptions:
            raise TransientConnectionError("Contract subscription failed",
                                           operation="proposal_open_contract")
        subscription_id = f"poc-{next(self._ids)}"
        self.contract_handlers[subscription_id] = (contract_id, handler)
        return subscription_id

    async def unsubscribe(self, subscription_id: str) -> None:
        if self.fail_unsubscribe:
            raise TransientConnectionError("Forget failed", operation="forget")
        self.tick_handlers.pop(subscription_id, None)
        self.contract_handlers.pop(subscription_id, None)
        self.unsubscribed.append(subscription_id)

    async def buy(self, request: PurchaseRequest) -> PurchaseReceipt:
        self.purchases.append(request)
        if self.reject_reason is not None:
            raise GatewayRejectionError(self.reject_reason, code="ContractBuyValidationError",
                                        operation="buy")
        if request.amount > self.balance:
            raise GatewayRejectionError("Insufficient balance", code="InsufficientBalance",
                                        operation="buy")

        contract_id = str(next(self._ids))
        self.balance -= request.amount
        self.contracts[contract_id] = SimulatedContract(
            contract_id=contract_id,
            request=request,
            entry_price=self.last_prices.get(request.symbol),
            ticks_remaining=request.duration if request.growth_rate is None else 0,
        )
        logger.debug("Simulated purchase", contract_id=contract_id,
                     contract_type=request.contract_type, amount=request.amount)
        return PurchaseReceipt(contract_id=contract_id, buy_price=request.amount,
                               longcode=f"{request.contract_type} on {request.symbol}")

    async def sell(self, contract_id: str) -> float:
        contract = self.contracts.get(contract_id)
        if contract is None or contract.settled:
            raise GatewayRejectionError("Contract is not open", code="InvalidSellContract",
                                        operation="sell")
        sell_price = round(contract.request.amount + contract.profit, 2)
        self.settle(contract_id, contract.profit)
        return sell_price

    # Driving helpers

    def push_tick(self, symbol: str, quote: Any = None, epoch: Optional[int] = None) -> Any:
        """Deliver one tick to subscribers; a random-walk price is used when quote is None."""
        if quote is None:
            quote = self.next_price(symbol)
        else:
            try:
                self.last_prices[symbol] = float(quote)
            except (TypeError, ValueError):
                pass
        payload = {"symbol": symbol, "quote": quote, "epoch": epoch}
        for subscribed_symbol, handler in list(self.tick_handlers.values()):
            if subscribed_symbol == symbol:
                handler(payload)
        if self.auto_settle:
            self._advance_contracts(symbol, quote)
        return quote

    def push_contract_update(self, contract_id: str, profit: float, status: str = "open",
                             is_sold: bool = False, **extra: Any) -> None:
        """Deliver a raw contract update to the contract's subscribers."""
        payload = {"contract_id": contract_id, "profit": profit, "status": status,
                   "is_sold": is_sold}
        payload.update(extra)
        for subscribed_id, handler in list(self.contract_handlers.values()):
            if subscribed_id == contract_id:
                handler(payload)

    def settle(self, contract_id: str, profit: float) -> None:
        """Close a contract with the given profit and notify subscribers."""
        contract = self.contracts.get(contract_id)
        if contract is not None:
            contract.settled = True
            contract.profit = profit
            self.balance += contract.request.amount + profit
        status = "won" if profit > 0 else "lost"
        self.push_contract_update(contract_id, profit, status=status, is_sold=True)

    def _advance_contracts(self, symbol: str, quote: Any) -> None:
        try:
            price = float(quote)
        except (TypeError, ValueError):
            return
        precision = self._instrument(symbol).precision
        for contract in list(self.contracts.values()):
            request = contract.request
            if contract.settled or request.symbol != symbol or request.growth_rate is not None:
                continue
            if contract.entry_price is None:
                contract.entry_price = price
                continue
            contract.ticks_remaining -= 1
            if contract.ticks_remaining > 0:
                continue
            won = contract_wins(request.contract_type, _last_digit(price, precision),
                                contract.entry_price, price,
                                prediction=request.prediction, barrier=request.barrier)
            profit = round(request.amount * self.payout_ratio, 2) if won else -request.amount
            self.settle(contract.contract_id, profit)

    async def run(self, symbol: str, ticks: int, interval_s: float = 0.0) -> None:
        """Stream random-walk ticks for symbol."""
        for _ in range(ticks):
            self.push_tick(symbol)
            await asyncio.sleep(interval_s)
