from datetime import datetime, timedelta

from devreport.common.exceptions import KnownException

PERIODS = (
    "today",
    "yesterday",
    "this-week",
    "last-week",
    "this-month",
    "last-month",
    "all-time",
)


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _start_of_month(value: datetime) -> datetime:
    return _start_of_day(value).replace(day=1)


def _add_month(value: datetime) -> datetime:
    if value.month == 12:
        return value.replace(year=value.year + 1, month=1)
    return value.replace(month=value.month + 1)


def resolve_period(period: str, now: datetime) -> tuple[datetime | None, datetime]:
    """Translate a named reporting period into a (start, end) window.

    Weeks start on Monday. ``all-time`` has no start and ends one day after now.
    """
    name = period.strip().lower().replace("_", "-")
    today = _start_of_day(now)

    if name == "today":
        return today, today + timedelta(days=1)
    if name == "yesterday":
        start = today - timedelta(days=1)
        return start, today
    if name in ("this-week", "thisweek"):
        start = today - timedelta(days=now.weekday())
        return start, start + timedelta(days=7)
    if name in ("last-week", "lastweek"):
        start = today - timedelta(days=now.weekday() + 7)
        return start, start + timedelta(days=7)
    if name in ("this-month", "thismonth"):
        start = _start_of_month(now)
        return start, _add_month(start)
    if name in ("last-month", "lastmonth"):
        end = _start_of_month(now)
        start = (end - timedelta(days=1)).replace(day=1)
        return start, end
    if name in ("all-time", "alltime"):
        return None, now + timedelta(days=1)

    raise KnownException(
        f"Unknown period: '{period}'. Valid options: {', '.join(PERIODS)}"
    )


def resolve_window(
    *,
    now: datetime,
    start: datetime | None = None,
    end: datetime | None = None,
    period: str | None = None,
    default_days: int = 7,
) -> tuple[datetime | None, datetime]:
    """Pick the report window from a named period or explicit bounds.

    Without either, the window covers the last ``default_days`` days.
    """
    if period:
        return resolve_period(period, now)

    window_start = start if start is not None else now - timedelta(days=default_days)
    window_end = end if end is not None else now
    if window_start > window_end:
        raise KnownException("'start' must not be after 'end'")
    return window_start, window_end
