"""In-process callback snapshot publisher."""

from typing import Callable

from .base import PublishResult, PublishStatus, SnapshotPublisher
from ..models.snapshot import EngineSnapshot


class CallbackSnapshotPublisher(SnapshotPublisher):
    """Forwards snapshots to a callable, e.g. a UI store or a test collector."""

    def __init__(self, callback: Callable[[EngineSnapshot], None], name: str = "callback"):
        super().__init__(name)
        self.callback = callback

    def publish(self, snapshot: EngineSnapshot) -> PublishResult:
        self.callback(snapshot)
        return PublishResult(status=PublishStatus.SUCCESS)

    def health_check(self) -> bool:
        return callable(self.callback)
