"""Standard output snapshot publisher."""

import json
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

from ..models.snapshot import EngineSnapshot
from .base import PublishResult, PublishStatus, SnapshotPublisher


class StdoutSnapshotPublisher(SnapshotPublisher):
    """Prints snapshots as JSON lines or as a one-line pretty summary."""

    def __init__(self, name: str = "stdout", format: str = "json",
                 include_timestamp: bool = True, stream: Optional[TextIO] = None):
        super().__init__(name)
        if format not in ("json", "pretty"):
            raise ValueError(f"format must be 'json' or 'pretty', got {format!r}")
        self.format = format
        self.include_timestamp = include_timestamp
        self.stream = stream

    def publish(self, snapshot: EngineSnapshot) -> PublishResult:
        print(self._format_snapshot(snapshot), file=self.stream or sys.stdout, flush=True)
        return PublishResult(status=PublishStatus.SUCCESS, message="Printed to stdout")

    def _format_snapshot(self, snapshot: EngineSnapshot) -> str:
        """Format snapshot for stdout output."""
        if self.format == "pretty":
            output = (
                f"{snapshot.symbol or '-'} digit={snapshot.last_digit} "
                f"stake={snapshot.current_stake:.2f} level={snapshot.martingale_level} "
                f"P/L={snapshot.aggregate_profit:+.2f} | {snapshot.status_text}"
            )
            if self.include_timestamp:
                output = f"[{datetime.now(timezone.utc).isoformat()}] {output}"
            return output

        data = snapshot.to_dict()
        if self.include_timestamp:
            data["stdout_timestamp"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(data)

    def health_check(self) -> bool:
        """Check if the output stream is available."""
        try:
            return (self.stream or sys.stdout).writable()
        except (OSError, ValueError):
            return False
