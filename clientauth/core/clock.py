"""Injectable UTC clock used for validity windows and token timestamps."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def unix_seconds(moment: datetime) -> int:
    """Convert an aware datetime to whole Unix seconds."""
    return int(moment.timestamp())
