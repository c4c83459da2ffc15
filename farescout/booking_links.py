from __future__ import annotations

from urllib.parse import quote, urlencode

from .models import BookingLinks

SKYSCANNER_URL = "https://www.skyscanner.com/transport/flights"
GOOGLE_FLIGHTS_URL = "https://www.google.com/travel/flights"
KAYAK_URL = "https://www.kayak.com/flights"
EXPEDIA_URL = "https://www.expedia.com/Flights-Search"


def skyscanner_link(origin: str, destination: str, day: str) -> str:
    """Skyscanner one-way search; dates go in the path as ``YYMMDD``."""
    year, month, dom = day.split("-")
    return (
        f"{SKYSCANNER_URL}/{origin}/{destination}/{year[2:]}{month}{dom}/"
        "?adultsv2=1&cabinclass=economy&rtn=0"
    )


def google_flights_link(origin: str, destination: str, day: str) -> str:
    query = f"Flights from {origin} to {destination} on {day} one way"
    return f"{GOOGLE_FLIGHTS_URL}?q={quote(query, safe='')}"


def kayak_link(origin: str, destination: str, day: str) -> str:
    return f"{KAYAK_URL}/{origin}-{destination}/{day}/1adults?sort=bestflight_a"


def expedia_link(origin: str, destination: str, day: str) -> str:
    params = {
        "flight-type": "on",
        "mode": "search",
        "trip": "oneway",
        "leg1": f"from:{origin},to:{destination},departure:{day}TANYT",
        "passengers": "adults:1",
        "options": "cabinclass:economy",
    }
    return f"{EXPEDIA_URL}?{urlencode(params)}"


def one_way_links(origin: str, destination: str, day: str) -> BookingLinks:
    """All four booking-site links for a single leg."""
    return BookingLinks(
        skyscanner=skyscanner_link(origin, destination, day),
        google_flights=google_flights_link(origin, destination, day),
        kayak=kayak_link(origin, destination, day),
        expedia=expedia_link(origin, destination, day),
    )


def round_trip_link(
    origin: str, destination: str, departure_date: str, return_date: str
) -> str:
    """Google Flights query link covering both legs of a round trip."""
    query = (
        f"flights from {origin} to {destination} "
        f"on {departure_date} to {return_date}"
    )
    return f"{GOOGLE_FLIGHTS_URL}?q={quote(query, safe='')}"


__all__ = [
    "skyscanner_link",
    "google_flights_link",
    "kayak_link",
    "expedia_link",
    "one_way_links",
    "round_trip_link",
]
