from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from eduhouse.core.config import settings


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC instants."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_display(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).astimezone(ZoneInfo(settings.DISPLAY_TIMEZONE)).isoformat(timespec='seconds')


def has_passed(value: datetime | None, *, now: datetime | None = None) -> bool:
    if value is None:
        return False
    return as_utc(value) <= (now or utcnow())
