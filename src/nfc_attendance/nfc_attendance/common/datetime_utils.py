from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from typing import Optional

from ..core.constants import CLOCK_FORMAT, DATE_FORMAT
from ..core.exceptions import InvalidTimestamp


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value).strip(), DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidTimestamp(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


def parse_clock(value: str) -> time:
    """Parse a local clock string (HH:MM:SS or HH:MM)."""
    text = str(value).strip()
    for fmt in (CLOCK_FORMAT, "%H:%M"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise InvalidTimestamp(f"Invalid clock time {value!r}, expected HH:MM:SS")


def parse_timestamp(value: str, *, local_tz: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Aware values (``Z`` or an explicit offset) are converted into ``local_tz``
    first; naive values are taken as already local.
    """
    if not value or not isinstance(value, str):
        raise InvalidTimestamp("occurredAt is required")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidTimestamp(f"Invalid timestamp {value!r}") from e
    return to_local_naive(parsed, local_tz=local_tz)


def to_local_naive(value: datetime, *, local_tz: Optional[tzinfo] = None) -> datetime:
    if value.tzinfo is None:
        return value.replace(microsecond=0)
    if local_tz is not None:
        value = value.astimezone(local_tz)
    return value.replace(tzinfo=None, microsecond=0)


def combine_local(work_date: date, clock: str) -> datetime:
    """Join a date key and a local clock string into a naive local datetime."""
    return datetime.combine(work_date, parse_clock(clock))


def format_clock(value: datetime) -> str:
    return value.strftime(CLOCK_FORMAT)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def duration_minutes(time_in: datetime, time_out: datetime) -> int:
    """Whole elapsed minutes between two instants, never negative.

    Partial minutes are dropped: 08:02:00 -> 17:31:45 is 569 minutes.
    """
    seconds = (time_out - time_in).total_seconds()
    return max(0, int(seconds // 60))


def now_local(local_tz: Optional[tzinfo] = None) -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    if local_tz is None:
        return datetime.now().replace(microsecond=0)
    return to_local_naive(datetime.now(local_tz))
