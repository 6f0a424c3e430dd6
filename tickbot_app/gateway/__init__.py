"""
Trading gateway collaborator module.

Abstract, transport-agnostic gateway operations consumed by the engine and
an in-memory simulated gateway for tests and demos.
"""

from .base import (
    ContractHandler,
    PurchaseReceipt,
    PurchaseRequest,
    Session,
    TickHandler,
    TradingGateway,
)
from .simulated import SimulatedGateway

__all__ = [
    "ContractHandler",
    "PurchaseReceipt",
    "PurchaseRequest",
    "Session",
    "TickHandler",
    "TradingGateway",
    "SimulatedGateway",
]
