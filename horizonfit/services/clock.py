# horizonfit/services/clock.py
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes even for timezone=True columns; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Elapsed whole days, floored: 6 days 23 hours is 6."""
    elapsed = as_utc(later) - as_utc(earlier)
    return int(elapsed.total_seconds() // SECONDS_PER_DAY)
