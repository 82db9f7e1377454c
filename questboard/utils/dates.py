"""Calendar day keys in the configured quest timezone."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context

DEFAULT_TIMEZONE = "UTC"


def quest_timezone() -> ZoneInfo:
    """Reference timezone that defines where a quest day starts and ends."""
    name = DEFAULT_TIMEZONE
    if has_app_context():
        name = current_app.config.get("QUEST_TIMEZONE") or DEFAULT_TIMEZONE
    return ZoneInfo(name)


def quest_day(now: datetime | None = None) -> date:
    """Calendar day for ``now`` (aware, or naive UTC) in the quest timezone."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(quest_timezone()).date()


def previous_day(day: date) -> date:
    return day - timedelta(days=1)


def window_start(day: date, days: int) -> date:
    """First day of a window of ``days`` days ending on ``day``."""
    return day - timedelta(days=days)


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in DateTime columns."""
    return datetime.utcnow()
