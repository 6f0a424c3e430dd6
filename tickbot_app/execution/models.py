"""Contract lifecycle data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..utils.time import utc_now

TERMINAL_STATUSES = frozenset({"sold", "won", "lost", "cancelled"})


class ContractStatus(str, Enum):
    """Local lifecycle of a purchased contract."""
    PENDING = "pending"      # Bought, no status update yet
    OPEN = "open"            # Status updates flowing
    CLOSED = "closed"        # Terminal update received or outcome abandoned


class OutcomeKind(str, Enum):
    WON = "won"
    LOST = "lost"
    UNKNOWN = "unknown"      # No terminal update before the completion timeout


@dataclass
class Contract:
    """Contract tracked by the lifecycle manager."""
    contract_id: str
    trade_type: str
    stake: float
    prediction: Optional[int] = None
    barrier: Optional[str] = None
    status: ContractStatus = ContractStatus.PENDING
    profit: float = 0.0
    buy_price: Optional[float] = None
    subscription_id: Optional[str] = None
    opened_at: datetime = field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status == ContractStatus.CLOSED


@dataclass(frozen=True)
class ContractUpdate:
    """Parsed contract status payload."""
    contract_id: str
    profit: float
    status: Optional[str] = None
    is_sold: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.is_sold or (self.status or "").lower() in TERMINAL_STATUSES

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ContractUpdate":
        """
        Parse a gateway contract payload.

        Raises:
            ValueError: If the payload has no contract id or a non-numeric profit.
        """
        contract_id = payload.get("contract_id")
        if contract_id is None:
            raise ValueError("Contract update without contract_id")
        raw_profit = payload.get("profit", 0.0)
        try:
            profit = float(raw_profit if raw_profit is not None else 0.0)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Non-numeric profit: {raw_profit!r}") from e
        return cls(
            contract_id=str(contract_id),
            profit=profit,
            status=payload.get("status"),
            is_sold=bool(payload.get("is_sold", False)),
        )


@dataclass(frozen=True)
class ContractOutcome:
    """Terminal result of a contract as seen by the engine."""
    contract_id: str
    kind: OutcomeKind
    profit: float = 0.0

    @property
    def won(self) -> bool:
        return self.kind == OutcomeKind.WON

    @property
    def is_known(self) -> bool:
        return self.kind != OutcomeKind.UNKNOWN

    @classmethod
    def from_profit(cls, contract_id: str, profit: float) -> "ContractOutcome":
        kind = OutcomeKind.WON if profit > 0 else OutcomeKind.LOST
        return cls(contract_id=contract_id, kind=kind, profit=profit)

    @classmethod
    def unknown(cls, contract_id: str) -> "ContractOutcome":
        return cls(contract_id=contract_id, kind=OutcomeKind.UNKNOWN)


class BulkMode(str, Enum):
    """How the rows of a bulk order are bought."""
    SIMULTANEOUS = "simultaneous"    # All rows at once
    SEQUENTIAL = "sequential"        # Next row after the previous one settles


class BulkRowStatus(str, Enum):
    SETTLED = "settled"
    UNKNOWN = "unknown"      # Bought, no terminal update (timeout or stop)
    ERROR = "error"          # Purchase failed
    SKIPPED = "skipped"      # Stop requested before the row was bought


@dataclass(frozen=True)
class BulkOrder:
    """One row of a bulk order."""
    trade_type: str
    stake: float
    symbol: Optional[str] = None
    prediction: Optional[int] = None
    barrier: Optional[str] = None
    duration: Optional[int] = None       # Ticks, None uses the configured duration

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_type": self.trade_type,
            "stake": self.stake,
            "symbol": self.symbol,
            "prediction": self.prediction,
            "barrier": self.barrier,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class BulkResult:
    """What happened to one bulk row."""
    index: int
    order: BulkOrder
    status: BulkRowStatus
    contract_id: Optional[str] = None
    outcome: Optional[ContractOutcome] = None
    error: Optional[str] = None

    @property
    def profit(self) -> float:
        return self.outcome.profit if self.outcome is not None else 0.0
