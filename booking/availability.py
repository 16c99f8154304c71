"""
Slot availability for the booking calendar.

Every open day shares the same start-time template. A time is bookable
when no confirmed appointment and no partial block occupy it; a date is
bookable when it is inside the lead window, not a Sunday and not blocked
for the whole day. Nothing here touches the database: callers pass in the
booked and blocked values they already fetched for the date.
"""

import logging
from datetime import date, timedelta
from typing import Collection, Iterable, Iterator, List, Optional, Sequence

from utils.constants import CLOSED_WEEKDAY, DEFAULT_MAX_LEAD_DAYS, TIME_SLOTS
from utils.datetime_utils import normalize_time

__all__ = [
    "TIME_SLOTS",
    "available_slots",
    "is_date_bookable",
    "normalize_time",
    "upcoming_bookable_dates",
]

logger = logging.getLogger(__name__)


def _try_normalize(value) -> Optional[str]:
    if value is None:
        return None
    try:
        return normalize_time(value)
    except ValueError:
        logger.warning(f"Ignoring malformed time value: {value!r}")
        return None


def _normalized(values: Iterable) -> set:
    result = {_try_normalize(value) for value in values}
    result.discard(None)
    return result


def available_slots(
    template: Sequence[str],
    booked_times: Iterable,
    blocked_times: Iterable,
) -> List[str]:
    """
    Filter the daily template down to the times still free.

    Malformed times are skipped: a bad booked or blocked value takes
    nothing, and a bad template entry is never offered.

    Args:
        template: Ordered start times of an open day
        booked_times: Times of confirmed appointments on the date
        blocked_times: Times the salon blocked on the date

    Returns:
        Template entries not booked or blocked, in template order
    """
    taken = _normalized(booked_times) | _normalized(blocked_times)
    free = []
    for slot in template:
        normalized = _try_normalize(slot)
        if normalized is not None and normalized not in taken:
            free.append(slot)
    return free


def is_date_bookable(
    day: date,
    today: date,
    max_lead_days: int = DEFAULT_MAX_LEAD_DAYS,
    fully_blocked_dates: Collection[date] = (),
) -> bool:
    """
    Check whether a date may be offered for booking.

    Args:
        day: Candidate date
        today: Current date at the salon
        max_lead_days: How many days ahead bookings are accepted
        fully_blocked_dates: Dates blocked for the whole day

    Returns:
        False for past dates, dates beyond the lead window, Sundays and
        fully blocked dates; True otherwise
    """
    if day < today:
        return False
    if day > today + timedelta(days=max_lead_days):
        return False
    if day.weekday() == CLOSED_WEEKDAY:
        return False
    return day not in fully_blocked_dates


def upcoming_bookable_dates(
    today: date,
    max_lead_days: int = DEFAULT_MAX_LEAD_DAYS,
    fully_blocked_dates: Collection[date] = (),
) -> Iterator[date]:
    """Yield every bookable date from today through the end of the lead window."""
    blocked = set(fully_blocked_dates)
    for offset in range(max_lead_days + 1):
        day = today + timedelta(days=offset)
        if is_date_bookable(day, today, max_lead_days, blocked):
            yield day
