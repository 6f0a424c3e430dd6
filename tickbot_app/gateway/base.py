"""Base classes for the trading gateway collaborator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

TickHandler = Callable[[dict[str, Any]], None]
ContractHandler = Callable[[dict[str, Any]], None]


@dataclass(frozen=True)
class Session:
    """Authorized gateway session."""
    currency: str
    loginid: Optional[str] = None
    balance: Optional[float] = None


@dataclass(frozen=True)
class PurchaseRequest:
    """Contract purchase request."""
    contract_type: str
    amount: float
    symbol: str
    duration: int
    duration_unit: str = "t"
    currency: str = "USD"
    basis: str = "stake"
    prediction: Optional[int] = None
    barrier: Optional[str] = None
    growth_rate: Optional[float] = None

    def to_payload(self) -> dict[str, Any]:
        """Gateway wire representation (buy parameters)."""
        payload: dict[str, Any] = {
            "amount": self.amount,
            "basis": self.basis,
            "contract_type": self.contract_type,
            "currency": self.currency,
            "symbol": self.symbol,
        }
        # Accumulators run until sold and carry no duration
        if self.growth_rate is not None:
            payload["growth_rate"] = self.growth_rate
        else:
            payload["duration"] = self.duration
            payload["duration_unit"] = self.duration_unit
        if self.barrier is not None:
            payload["barrier"] = self.barrier
        elif self.prediction is not None:
            payload["barrier"] = str(self.prediction)
        return payload


@dataclass(frozen=True)
class PurchaseReceipt:
    """Accepted purchase."""
    contract_id: str
    buy_price: float
    longcode: Optional[str] = None
    transaction_id: Optional[str] = None


class TradingGateway(ABC):
    """
    Transport-agnostic trading gateway.

    Handlers passed to the subscribe methods are invoked on the engine's
    event loop, one payload at a time, in arrival order. Tick payloads carry
    ``symbol``, ``quote`` and ``epoch``; contract payloads carry
    ``contract_id``, ``profit``, ``status`` and ``is_sold``.
    """

    @abstractmethod
    async def authorize(self, token: str) -> Session:
        """Authorize the session and return account details."""

    @abstractmethod
    async def fetch_history(self, symbol: str, count: int) -> list[Union[str, float]]:
        """Return the last ``count`` quotes for symbol, oldest first."""

    @abstractmethod
    async def subscribe_ticks(self, symbol: str, handler: TickHandler) -> str:
        """Start a tick stream and return its subscription id."""

    @abstractmethod
    async def subscribe_contract(self, contract_id: str, handler: ContractHandler) -> str:
        """Start a contract status stream and return its subscription id."""

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> None:
        """Stop a tick or contract stream."""

    @abstractmethod
    async def buy(self, request: PurchaseRequest) -> PurchaseReceipt:
        """Purchase a contract; raise GatewayRejectionError when refused."""

    @abstractmethod
    async def sell(self, contract_id: str) -> float:
        """Sell an open contract at market and return the sell price."""
