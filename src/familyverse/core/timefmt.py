"""Day-boundary and relative-time helpers.

All stored timestamps are integer milliseconds since the Unix epoch, as
written by the companion app. Comparisons are done on those integers so
that boundaries are exact to the millisecond.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SECOND_MS = 1_000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS

_ONE_MS = timedelta(milliseconds=1)


def ensure_aware(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Attach a zone to naive datetimes and convert to ``tz``.

    Naive values are taken as wall-clock time in ``tz`` (the system local
    zone when ``tz`` is None).
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz) if tz is not None else moment.astimezone()
    return moment.astimezone(tz) if tz is not None else moment.astimezone()


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds (floor)."""
    return (ensure_aware(moment) - EPOCH) // _ONE_MS


def from_epoch_ms(ms: int, tz: tzinfo | None = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime in ``tz``."""
    return (EPOCH + timedelta(milliseconds=ms)).astimezone(tz)


def start_of_day(now: datetime, tz: tzinfo | None = None) -> datetime:
    """Midnight of ``now``'s calendar day in ``tz``.

    Every sub-day field is zeroed before the value is used.

    Args:
        now: Reference moment; naive values are read as local wall time.
        tz: Zone that defines the calendar day; system local when None.

    Returns:
        Aware datetime at 00:00:00.000 of that day.
    """
    local = ensure_aware(now, tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    if tz is None:
        # astimezone() pins the offset in effect at `now`; midnight may fall on the other side of a DST change
        return midnight.replace(tzinfo=None).astimezone()
    return midnight


def is_action_done_today(last_action_ms: int, now: datetime, tz: tzinfo | None = None) -> bool:
    """True if the last recorded action happened at or after today's midnight.

    Example:
        >>> is_action_done_today(0, datetime.now())
        False
    """
    return last_action_ms >= to_epoch_ms(start_of_day(now, tz))


def format_relative_time(shared_at_ms: int, now_ms: int, tz: tzinfo | None = None) -> str:
    """Short human label for how long ago something was shared.

    Thresholds are exclusive upper bounds in milliseconds: 59 999 ms is
    ``"just now"`` and 60 000 ms is ``"1m ago"``. Negative deltas (a share
    stamped later than ``now`` because of clock skew) read as ``"just now"``.
    A week or more falls back to the calendar date, e.g. ``"Mar 5"``.

    Args:
        shared_at_ms: When the item was shared, epoch ms.
        now_ms: Current time, epoch ms.
        tz: Zone used for the calendar date form.
    """
    delta = now_ms - shared_at_ms
    if delta < MINUTE_MS:
        return "just now"
    if delta < HOUR_MS:
        return f"{delta // MINUTE_MS}m ago"
    if delta < DAY_MS:
        return f"{delta // HOUR_MS}h ago"
    if delta < WEEK_MS:
        return f"{delta // DAY_MS}d ago"

    shared = from_epoch_ms(shared_at_ms, tz)
    return f"{shared:%b} {shared.day}"
