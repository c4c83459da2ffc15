"""Data models used throughout the project."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Tuple

from .airports import Airport

FULL_DAY = (0, 23)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _wire(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_wire(v) for v in value]
    return value


def _to_camel_dict(obj: Any, skip: Tuple[str, ...] = ()) -> Dict[str, Any]:
    return {
        _camel(f.name): _wire(getattr(obj, f.name))
        for f in fields(obj)
        if f.name not in skip
    }


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Inclusive departure-hour window; ``start > end`` wraps past midnight."""

    start: int = FULL_DAY[0]
    end: int = FULL_DAY[1]

    def __post_init__(self) -> None:
        for hour in (self.start, self.end):
            if not 0 <= hour <= 23:
                raise ValueError(f"hour out of range 0-23: {hour}")

    @property
    def is_full_day(self) -> bool:
        return (self.start, self.end) == FULL_DAY

    def contains(self, hour: int) -> bool:
        if self.start <= self.end:
            return self.start <= hour <= self.end
        return hour >= self.start or hour <= self.end

    def as_param(self) -> str:
        return f"{self.start},{self.end}"


@dataclass(frozen=True, slots=True)
class DatePair:
    departure_date: str
    return_date: str


@dataclass(frozen=True, slots=True)
class SearchTask:
    destination: Airport
    departure_date: str
    return_date: str
    departure_window: TimeWindow = field(default_factory=TimeWindow)
    return_window: TimeWindow = field(default_factory=TimeWindow)


@dataclass(frozen=True, slots=True)
class OneWayFlight:
    price: float
    carrier: str
    direct: bool
    departure_time: str = ""
    arrival_time: str = ""
    stops: int = 0


@dataclass(frozen=True, slots=True)
class BookingLinks:
    skyscanner: str
    google_flights: str
    kayak: str
    expedia: str

    def to_dict(self) -> Dict[str, Any]:
        return _to_camel_dict(self)


@dataclass(frozen=True, slots=True)
class FlightDeal:
    """A priced round trip from the origin to one destination."""

    destination_city: str
    destination_code: str
    price: float
    departure_date: str
    return_date: str
    direct: bool
    deep_link: str = ""
    carriers: Tuple[str, ...] = ()
    stops: int = 0
    outbound_departure_time: str = ""
    outbound_arrival_time: str = ""
    return_departure_time: str = ""
    return_arrival_time: str = ""
    currency: str = "USD"

    def to_dict(self) -> Dict[str, Any]:
        return _to_camel_dict(self)


@dataclass(frozen=True, slots=True)
class MixMatchDeal:
    """Two independently priced one-way legs offered as one round trip.

    Build instances with :meth:`combine` so that ``total_price`` and
    ``is_mixed_airlines`` always agree with the legs.
    """

    destination_city: str
    destination_code: str
    departure_date: str
    return_date: str
    total_price: float
    outbound_price: float
    outbound_carrier: str
    outbound_direct: bool
    outbound_departure_time: str
    outbound_arrival_time: str
    outbound_stops: int
    return_price: float
    return_carrier: str
    return_direct: bool
    return_departure_time: str
    return_arrival_time: str
    return_stops: int
    is_mixed_airlines: bool
    booking_links_outbound: BookingLinks
    booking_links_return: BookingLinks
    currency: str = "USD"

    @property
    def price(self) -> float:
        return self.total_price

    @property
    def deep_link_outbound(self) -> str:
        return self.booking_links_outbound.skyscanner

    @property
    def deep_link_return(self) -> str:
        return self.booking_links_return.skyscanner

    @classmethod
    def combine(
        cls,
        destination: Airport,
        pair: DatePair,
        outbound: OneWayFlight,
        inbound: OneWayFlight,
        links_outbound: BookingLinks,
        links_return: BookingLinks,
    ) -> "MixMatchDeal":
        return cls(
            destination_city=destination.city,
            destination_code=destination.code,
            departure_date=pair.departure_date,
            return_date=pair.return_date,
            total_price=outbound.price + inbound.price,
            outbound_price=outbound.price,
            outbound_carrier=outbound.carrier,
            outbound_direct=outbound.direct,
            outbound_departure_time=outbound.departure_time,
            outbound_arrival_time=outbound.arrival_time,
            outbound_stops=outbound.stops,
            return_price=inbound.price,
            return_carrier=inbound.carrier,
            return_direct=inbound.direct,
            return_departure_time=inbound.departure_time,
            return_arrival_time=inbound.arrival_time,
            return_stops=inbound.stops,
            is_mixed_airlines=outbound.carrier != inbound.carrier,
            booking_links_outbound=links_outbound,
            booking_links_return=links_return,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = _to_camel_dict(self)
        data["deepLinkOutbound"] = self.deep_link_outbound
        data["deepLinkReturn"] = self.deep_link_return
        return data


__all__ = [
    "TimeWindow",
    "DatePair",
    "SearchTask",
    "OneWayFlight",
    "BookingLinks",
    "FlightDeal",
    "MixMatchDeal",
]
