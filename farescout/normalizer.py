"""Turn upstream itinerary JSON into :class:`FlightDeal` / :class:`OneWayFlight`.

The upstream providers name the same field in several ways.  All lookups
go through the alias tables below; each entry lists the candidate paths
in priority order and dotted paths descend into nested objects.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .models import FlightDeal, OneWayFlight, SearchTask, TimeWindow
from .booking_links import round_trip_link

GOOGLE_FLIGHTS_ALIASES: Mapping[str, Sequence[str]] = {
    "departure_time": (
        "departure_time",
        "departureTime",
        "departure_airport.time",
    ),
    "arrival_time": ("arrival_time", "arrivalTime", "arrival_airport.time"),
    "arrival_code": (
        "destination",
        "arrival",
        "arrival_id",
        "arrival.code",
        "arrival_airport.airport_code",
    ),
    "departure_code": (
        "origin",
        "departure",
        "departure_id",
        "departure.code",
        "departure_airport.airport_code",
    ),
    "airline": ("airline", "airline_name"),
}

FLIGHTS_SKY_ALIASES: Mapping[str, Sequence[str]] = {
    "price": ("price.raw", "price.formatted"),
    "carrier": ("name", "alternateId"),
    "stop_count": ("stopCount", "stop_count"),
}

UNKNOWN_CARRIER = "Unknown"

_TIME_RE = re.compile(
    r"(?<!\d)(\d{1,2}):(\d{2})(?::\d{2})?(?:\s*([AaPp])\.?[Mm]\.?)?"
)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


# ────────────────────────────────────────────────────────────────
# Field access
# ────────────────────────────────────────────────────────────────


def resolve(record: Any, path: str) -> Any:
    """Follow a dotted *path* through nested mappings; ``None`` if missing."""
    value = record
    for key in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def first_present(record: Any, aliases: Iterable[str]) -> Any:
    """Return the first alias value that is neither ``None`` nor ``""``."""
    for path in aliases:
        value = resolve(record, path)
        if value is not None and value != "":
            return value
    return None


def _text(record: Any, field: str) -> str:
    value = first_present(record, GOOGLE_FLIGHTS_ALIASES[field])
    return value if isinstance(value, str) else ""


def _matches_code(segment: Any, field: str, code: str) -> bool:
    return any(
        resolve(segment, path) == code for path in GOOGLE_FLIGHTS_ALIASES[field]
    )


def dedupe_ordered(items: Iterable[Any]) -> List[Any]:
    """Drop falsy and repeated items, keeping first occurrences in order."""
    seen = set()
    out = []
    for item in items:
        if not item or item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def coerce_price(value: Any) -> float:
    """Best-effort price; anything missing or unusable becomes ``0``."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if not match:
            return 0
        value = float(match.group())
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0
    return value if value > 0 else 0


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


# ────────────────────────────────────────────────────────────────
# Google Flights payloads
# ────────────────────────────────────────────────────────────────


def top_flights(payload: Any) -> List[Mapping[str, Any]]:
    """Itineraries in upstream order, or ``[]`` for unusable payloads."""
    if not isinstance(payload, Mapping) or not payload.get("status"):
        return []
    itineraries = resolve(payload, "data.itineraries")
    if not isinstance(itineraries, Mapping):
        return []
    flights = itineraries.get("topFlights") or []
    if not isinstance(flights, list):
        return []
    return [f for f in flights if isinstance(f, Mapping)]


def segments_of(itinerary: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    segments = itinerary.get("flights") or []
    if not isinstance(segments, list):
        return []
    return [s for s in segments if isinstance(s, Mapping)]


def is_direct(itinerary: Mapping[str, Any]) -> bool:
    """Zero stops, or a layovers field that is present and null."""
    if itinerary.get("stops") == 0:
        return True
    return "layovers" in itinerary and itinerary["layovers"] is None


def _names(values: Iterable[Any]) -> List[str]:
    return dedupe_ordered(v for v in values if isinstance(v, str))


def carriers_of(segments: Iterable[Mapping[str, Any]]) -> List[str]:
    return _names(
        first_present(s, GOOGLE_FLIGHTS_ALIASES["airline"]) for s in segments
    )


def find_return_segment(
    segments: Sequence[Mapping[str, Any]],
    origin: str,
    destination: str,
    stops: Any,
) -> Optional[Mapping[str, Any]]:
    """Locate the first segment of the return leg in a round-trip itinerary.

    A segment after the first one that lands at *origin* or leaves
    *destination* qualifies.  When none does and the itinerary reports
    zero stops, the second segment is assumed to be the return flight.
    """
    if len(segments) < 2:
        return None
    for seg in segments[1:]:
        if _matches_code(seg, "arrival_code", origin) or _matches_code(
            seg, "departure_code", destination
        ):
            return seg
    if stops == 0:
        return segments[1]
    return None


def extract_round_trip_deal(
    payload: Any,
    task: SearchTask,
    *,
    origin: str,
    nonstop_only: bool,
) -> Optional[FlightDeal]:
    """Return the first qualifying itinerary of *payload* as a deal."""
    destination = task.destination
    for itinerary in top_flights(payload):
        direct = is_direct(itinerary)
        if nonstop_only and not direct:
            continue

        segments = segments_of(itinerary)
        out_dep = out_arr = ret_dep = ret_arr = ""
        if segments:
            out_dep = _text(segments[0], "departure_time")
            out_arr = _text(segments[0], "arrival_time")
        ret_seg = find_return_segment(
            segments, origin, destination.code, itinerary.get("stops")
        )
        if ret_seg is not None:
            ret_dep = _text(ret_seg, "departure_time")
            ret_arr = _text(ret_seg, "arrival_time")

        return FlightDeal(
            destination_city=destination.city,
            destination_code=destination.code,
            price=coerce_price(itinerary.get("price")),
            departure_date=task.departure_date,
            return_date=task.return_date,
            direct=direct,
            deep_link=round_trip_link(
                origin, destination.code, task.departure_date, task.return_date
            ),
            carriers=tuple(carriers_of(segments)),
            stops=0 if direct else _int(itinerary.get("stops")),
            outbound_departure_time=out_dep,
            outbound_arrival_time=out_arr,
            return_departure_time=ret_dep,
            return_arrival_time=ret_arr,
        )
    return None


def parse_departure_hour(text: str) -> Optional[int]:
    """Hour (0-23) of the first ``H:MM`` time in *text*, honouring AM/PM."""
    if not text:
        return None
    match = _TIME_RE.search(text)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if minute > 59:
        return None
    meridiem = match.group(3)
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem in "Pp" else 0)
    elif hour > 23:
        return None
    return hour


def accepts_departure(time_text: str, window: TimeWindow) -> bool:
    """Time-window check; unknown times only pass the full-day window."""
    hour = parse_departure_hour(time_text)
    if hour is None:
        return window.is_full_day
    return window.contains(hour)


def extract_one_way_flights(
    payload: Any,
    *,
    nonstop_only: bool = False,
    window: TimeWindow = TimeWindow(),
    limit: int = 3,
) -> List[OneWayFlight]:
    """Up to *limit* qualifying one-way flights in upstream (cheapest) order."""
    flights: List[OneWayFlight] = []
    for itinerary in top_flights(payload):
        if len(flights) >= limit:
            break
        direct = is_direct(itinerary)
        if nonstop_only and not direct:
            continue

        segments = segments_of(itinerary)
        departure = _text(segments[0], "departure_time") if segments else ""
        if not accepts_departure(departure, window):
            continue
        arrival = _text(segments[-1], "arrival_time") if segments else ""
        carriers = carriers_of(segments)

        flights.append(
            OneWayFlight(
                price=coerce_price(itinerary.get("price")),
                carrier=carriers[0] if carriers else UNKNOWN_CARRIER,
                direct=direct,
                departure_time=departure,
                arrival_time=arrival,
                stops=0 if direct else _int(itinerary.get("stops")),
            )
        )
    return flights


# ────────────────────────────────────────────────────────────────
# Flights-Sky payloads (legacy endpoints)
# ────────────────────────────────────────────────────────────────


def sky_itineraries(payload: Any) -> List[Mapping[str, Any]]:
    return [
        i for i in _as_list(resolve(payload, "data.itineraries"))
        if isinstance(i, Mapping)
    ]


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def simplify_sky_itinerary(itinerary: Mapping[str, Any]) -> dict:
    """Reduce a Flights-Sky itinerary to price, directness and carriers."""
    legs = [
        leg for leg in _as_list(itinerary.get("legs")) if isinstance(leg, Mapping)
    ]
    stop_counts = [
        first_present(leg, FLIGHTS_SKY_ALIASES["stop_count"]) for leg in legs
    ]
    carriers = _names(
        first_present(c, FLIGHTS_SKY_ALIASES["carrier"])
        for leg in legs
        for c in _as_list(resolve(leg, "carriers.marketing"))
    )
    return {
        "price": coerce_price(
            first_present(itinerary, FLIGHTS_SKY_ALIASES["price"])
        ),
        "direct": bool(legs) and all(s == 0 for s in stop_counts),
        "carriers": carriers,
        "stops": _int(stop_counts[0]) if stop_counts else 0,
        "deepLink": itinerary.get("deepLink"),
    }


__all__ = [
    "GOOGLE_FLIGHTS_ALIASES",
    "FLIGHTS_SKY_ALIASES",
    "resolve",
    "first_present",
    "dedupe_ordered",
    "coerce_price",
    "top_flights",
    "is_direct",
    "find_return_segment",
    "extract_round_trip_deal",
    "parse_departure_hour",
    "accepts_departure",
    "extract_one_way_flights",
    "sky_itineraries",
    "simplify_sky_itinerary",
]
