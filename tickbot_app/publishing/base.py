"""Base classes for engine snapshot publishers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from ..models.snapshot import EngineSnapshot


class PublishStatus(Enum):
    """Snapshot publish status."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PublishResult:
    """Result of one publish attempt."""
    status: PublishStatus
    message: Optional[str] = None
    error: Optional[Exception] = None


class SnapshotPublisher(ABC):
    """
    Receives immutable engine snapshots.

    Publishers run inline on the engine's event loop, so they must not block.
    A failing publisher never stops the engine; failures are counted and
    logged by ``publish_safely``.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = structlog.get_logger(f"publisher.{name}")
        self._publish_count = 0
        self._error_count = 0

    @abstractmethod
    def publish(self, snapshot: EngineSnapshot) -> PublishResult:
        """Hand one snapshot to the destination."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the destination can accept snapshots."""

    def publish_safely(self, snapshot: EngineSnapshot) -> PublishResult:
        """Publish, converting destination errors into a FAILED result."""
        try:
            result = self.publish(snapshot)
        except Exception as e:
            result = PublishResult(status=PublishStatus.FAILED, message=str(e), error=e)

        if result.status == PublishStatus.SUCCESS:
            self._publish_count += 1
        else:
            self._error_count += 1
            self.logger.warning("Snapshot publish failed", publisher=self.name,
                                error=result.message)
        return result

    def get_stats(self) -> dict[str, Any]:
        """Get publish statistics."""
        return {
            "name": self.name,
            "publish_count": self._publish_count,
            "error_count": self._error_count,
            "success_rate": (
                self._publish_count / (self._publish_count + self._error_count)
                if (self._publish_count + self._error_count) > 0 else 0.0
            )
        }

    def reset_stats(self):
        """Reset publish statistics."""
        self._publish_count = 0
        self._error_count = 0
