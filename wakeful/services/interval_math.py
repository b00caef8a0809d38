from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from dateutil import tz
from dateutil.relativedelta import relativedelta

from wakeful.config import INTERVAL_DAY_MS, get_timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def to_datetime(millis: int, zone: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime in zone (exact, no float)."""
    return (_EPOCH + timedelta(milliseconds=millis)).astimezone(zone or timezone.utc)


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime back to epoch milliseconds."""
    return (moment - _EPOCH) // _ONE_MS


def _add_calendar_days(millis: int, days: int, zone: tzinfo) -> int:
    """Add whole calendar days, keeping the local wall-clock time.

    Across a DST transition this adds 23 or 25 hours of elapsed time. A wall
    time that does not exist on the target day is shifted forward by the gap.
    """
    local = to_datetime(millis, zone) + relativedelta(days=days)
    return to_millis(tz.resolve_imaginary(local))


def next_idle_trigger(
    trigger_time: int,
    interval: int,
    now: int,
    zone: Optional[tzinfo] = None,
) -> int:
    """Next trigger instant for a repeating alert-while-idle notification.

    Only the initial trigger time is persisted, so after any number of missed
    occurrences (device off, notification cleared days later) the next one is
    derived from it: find the last occurrence at or before now, then advance
    it by one interval. Intervals of a day or more are added as calendar days
    plus a millisecond remainder so a daily alarm stays at the same local time
    across DST changes.

    Args:
        trigger_time: Initial trigger, epoch ms
        interval: Repeat interval in ms, must be positive
        now: Current time, epoch ms
        zone: Zone for calendar-day arithmetic; defaults to the configured zone

    Returns:
        trigger_time unchanged if it is still in the future, else the advanced instant

    Raises:
        ValueError: If interval is not positive
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")

    if trigger_time > now:
        return trigger_time

    missed = (now - trigger_time) // interval
    base = trigger_time + missed * interval

    if interval < INTERVAL_DAY_MS:
        return base + interval

    days, rest = divmod(interval, INTERVAL_DAY_MS)
    return _add_calendar_days(base, days, zone or get_timezone()) + rest
