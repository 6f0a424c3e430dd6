"""Time helpers for gateway epochs and local event stamps."""

from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def epoch_to_datetime(epoch: Optional[Union[int, float, str]]) -> Optional[datetime]:
    """
    Convert a gateway epoch (seconds) to an aware UTC datetime.

    Returns None for missing or unparsable epochs; a tick without a usable
    epoch is still a valid tick.
    """
    if epoch is None:
        return None
    try:
        return datetime.fromtimestamp(float(epoch), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
