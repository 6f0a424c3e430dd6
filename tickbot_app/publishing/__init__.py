"""
Snapshot publishing module.

Presentation seam: the engine pushes immutable EngineSnapshot objects to
publishers after every tick and contract update.
"""

from .base import PublishResult, PublishStatus, SnapshotPublisher
from .callback import CallbackSnapshotPublisher
from .stdout import StdoutSnapshotPublisher

__all__ = [
    "PublishResult",
    "PublishStatus",
    "SnapshotPublisher",
    "CallbackSnapshotPublisher",
    "StdoutSnapshotPublisher",
]
