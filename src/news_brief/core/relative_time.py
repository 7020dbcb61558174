from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def relative_time(
    published_at: Optional[datetime],
    now: datetime,
    tz: str = "UTC",
) -> str:
    """Format `published_at` as a coarse age relative to `now`.

    Buckets: under an hour, under a day, under a week, then the calendar
    date (YYYY/M/D) in `tz`. Naive datetimes are taken to be UTC.
    """

    if published_at is None:
        return "just now"
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    elapsed = (now - published_at).total_seconds()
    hours = int(elapsed // 3600)
    days = int(elapsed // 86400)

    if hours < 1:
        return "just now"
    if hours < 24:
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"
    if days < 7:
        return "1 day ago" if days == 1 else f"{days} days ago"

    local = published_at.astimezone(ZoneInfo(tz))
    return f"{local.year}/{local.month}/{local.day}"
