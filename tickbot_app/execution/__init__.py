"""
Contract execution module.

Purchase and settlement tracking for fixed-duration contracts, and the
barrier band that governs accumulator contracts.
"""

from .barrier import (
    BARRIER_OFFSETS,
    AccumulatorTick,
    AccumulatorTracker,
    BarrierBand,
    get_barrier_offset,
    is_within_band,
)
from .lifecycle import ContractLifecycleManager
from .models import (
    BulkMode,
    BulkOrder,
    BulkResult,
    BulkRowStatus,
    Contract,
    ContractOutcome,
    ContractStatus,
    ContractUpdate,
    OutcomeKind,
)

__all__ = [
    "ContractLifecycleManager",
    "BulkMode",
    "BulkOrder",
    "BulkResult",
    "BulkRowStatus",
    "Contract",
    "ContractOutcome",
    "ContractStatus",
    "ContractUpdate",
    "OutcomeKind",
    "BARRIER_OFFSETS",
    "AccumulatorTick",
    "AccumulatorTracker",
    "BarrierBand",
    "get_barrier_offset",
    "is_within_band",
]
