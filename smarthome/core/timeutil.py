from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo
from .config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    return now_utc().astimezone(ZoneInfo(settings.timezone))


def today_local() -> date:
    return now_local().date()


def iso_now() -> str:
    """UTC timestamp in the `2024-05-01T12:00:00.000Z` form the dashboards expect."""
    return now_utc().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_day(dt: datetime) -> date:
    """Calendar day of `dt` in the configured zone; naive values are taken as local."""
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(ZoneInfo(settings.timezone)).date()
