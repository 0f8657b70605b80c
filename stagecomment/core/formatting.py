"""Human-readable time formatting for ledger cells."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def format_duration(total_seconds: float) -> str:
    """Render a duration in seconds as ``"4m 2s"``.

    Fractional seconds are truncated.

    >>> format_duration(62)
    '1m 2s'
    """
    if total_seconds < 0:
        raise ValueError(f"Duration cannot be negative: {total_seconds}")
    minutes, seconds = divmod(int(total_seconds), 60)
    return f"{minutes}m {seconds}s"


def format_started_at(moment: datetime, tz: str = "UTC") -> str:
    """Render a build start time as ``"Oct 18 at 3:04:05 PM"``.

    Naive datetimes are taken to be UTC, then converted to *tz* for display.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(ZoneInfo(tz))
    hour = local.hour % 12 or 12
    am_pm = "PM" if local.hour >= 12 else "AM"
    return (
        f"{_MONTHS[local.month - 1]} {local.day} at "
        f"{hour}:{local.minute:02d}:{local.second:02d} {am_pm}"
    )


def parse_build_time(value: str) -> datetime:
    """Parse the build start time handed over by the CI job.

    Accepts epoch seconds, epoch milliseconds (13 or more digits) or an
    ISO 8601 timestamp.  The result is always timezone-aware.
    """
    text = value.strip()
    if not text:
        raise ValueError("Build time is empty")

    if text.isdigit():
        seconds = int(text) / 1000 if len(text) >= 13 else int(text)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Unrecognized build time: {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
