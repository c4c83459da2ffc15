"""Candidate (departure, return) date pairs for flexible searches.

Durations are grouped into three strategies that keep the number of
upstream calls bounded:

* ``3``  – weekend: Friday departures, back on Sunday
* ``7``  – week: Friday, Saturday and Sunday departures
* other – extended: every third day in the window

``today`` is always passed in by the caller.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Iterator, List, Tuple

from .models import DatePair

WEEKEND_TRIP = 3
WEEK_TRIP = 7
EXTENDED_STEP = 3

FRIDAY, SATURDAY, SUNDAY = 4, 5, 6


def generate_flexible_dates(
    trip_duration: int,
    *,
    today: date,
    min_days_ahead: int = 0,
    max_lookahead_days: int = 60,
) -> List[DatePair]:
    """Return date pairs for *trip_duration* departing within the window.

    Departures fall on day offsets ``[min_days_ahead, max_lookahead_days)``
    from *today*; an empty window yields an empty list.
    """
    if trip_duration <= 0:
        raise ValueError("trip_duration must be a positive number of days")

    try:
        max_return = today + timedelta(days=max_lookahead_days + trip_duration)
    except OverflowError as exc:
        raise ValueError(
            f"trip_duration of {trip_duration} days is out of range"
        ) from exc
    pairs: List[DatePair] = []

    if trip_duration == WEEKEND_TRIP:
        for offset in range(min_days_ahead, max_lookahead_days):
            departure = today + timedelta(days=offset)
            if departure.weekday() == FRIDAY:
                pairs.append(_pair(departure, departure + timedelta(days=2)))
        return pairs

    if trip_duration == WEEK_TRIP:
        offsets: Iterable[int] = range(min_days_ahead, max_lookahead_days)
        weekdays: Tuple[int, ...] = (FRIDAY, SATURDAY, SUNDAY)
    else:
        offsets = range(min_days_ahead, max_lookahead_days, EXTENDED_STEP)
        weekdays = ()

    for offset in offsets:
        departure = today + timedelta(days=offset)
        if weekdays and departure.weekday() not in weekdays:
            continue
        ret = departure + timedelta(days=trip_duration)
        if ret <= max_return:
            pairs.append(_pair(departure, ret))
    return pairs


def iter_date_range(
    today: date,
    days_ahead: int,
    trip_lengths: Iterable[int],
    step: int = EXTENDED_STEP,
) -> Iterator[DatePair]:
    """Yield sampled pairs: departures every *step* days from tomorrow."""
    lengths = list(trip_lengths)
    for days_out in range(1, days_ahead + 1, step):
        departure = today + timedelta(days=days_out)
        for length in lengths:
            yield _pair(departure, departure + timedelta(days=length))


def _pair(departure: date, ret: date) -> DatePair:
    return DatePair(departure.isoformat(), ret.isoformat())


__all__ = ["generate_flexible_dates", "iter_date_range"]
