"""Static airport reference data: the fixed origin and searchable destinations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class Category(str, Enum):
    BEACH = "beach"
    CITY = "city"
    MOUNTAIN = "mountain"
    ENTERTAINMENT = "entertainment"
    HISTORIC = "historic"
    ADVENTURE = "adventure"


@dataclass(frozen=True, slots=True)
class Airport:
    code: str
    city: str
    state: str
    name: str
    categories: Tuple[Category, ...] = ()

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "city": self.city,
            "state": self.state,
            "name": self.name,
            "categories": [c.value for c in self.categories],
        }


def _airport(code: str, city: str, state: str, name: str, *cats: str) -> Airport:
    return Airport(code, city, state, name, tuple(Category(c) for c in cats))


ORIGIN_AIRPORT = Airport(
    "IND", "Indianapolis", "IN", "Indianapolis International Airport"
)

DESTINATION_AIRPORTS: Tuple[Airport, ...] = (
    _airport("ACY", "Atlantic City", "NJ", "Atlantic City International Airport", "beach", "entertainment"),
    _airport("ATL", "Atlanta", "GA", "Hartsfield-Jackson Atlanta International Airport", "city"),
    _airport("RDU", "Raleigh", "NC", "Raleigh-Durham International Airport", "city"),
    _airport("MCO", "Orlando", "FL", "Orlando International Airport", "beach", "entertainment"),
    _airport("TPA", "Tampa", "FL", "Tampa International Airport", "beach", "city"),
    _airport("DFW", "Dallas/Fort Worth", "TX", "Dallas/Fort Worth International Airport", "city"),
    _airport("AUS", "Austin", "TX", "Austin-Bergstrom International Airport", "city", "entertainment"),
    _airport("JFK", "New York", "NY", "John F. Kennedy International Airport", "city", "historic"),
    _airport("FLL", "Fort Lauderdale", "FL", "Fort Lauderdale-Hollywood International Airport", "beach"),
    _airport("MIA", "Miami", "FL", "Miami International Airport", "beach", "city"),
    _airport("EWR", "Newark", "NJ", "Newark Liberty International Airport", "city"),
    _airport("BWI", "Baltimore/Washington", "DC", "Baltimore/Washington International Airport", "city", "historic"),
    _airport("PHL", "Philadelphia", "PA", "Philadelphia International Airport", "city", "historic"),
    _airport("CLT", "Charlotte", "NC", "Charlotte Douglas International Airport", "city"),
    _airport("BNA", "Nashville", "TN", "Nashville International Airport", "city", "entertainment"),
    _airport("DTW", "Detroit", "MI", "Detroit Metropolitan Wayne County Airport", "city"),
    _airport("CLE", "Cleveland", "OH", "Cleveland Hopkins International Airport", "city"),
    _airport("PIT", "Pittsburgh", "PA", "Pittsburgh International Airport", "city"),
    _airport("CMH", "Columbus", "OH", "John Glenn Columbus International Airport", "city"),
    _airport("CVG", "Cincinnati", "OH", "Cincinnati/Northern Kentucky International Airport", "city"),
    _airport("STL", "St. Louis", "MO", "St. Louis Lambert International Airport", "city", "historic"),
    _airport("LAS", "Las Vegas", "NV", "Harry Reid International Airport", "entertainment", "city"),
    _airport("DEN", "Denver", "CO", "Denver International Airport", "city", "mountain", "adventure"),
    _airport("CUN", "Cancún", "Mexico", "Cancún International Airport", "beach", "entertainment"),
    _airport("PHX", "Phoenix", "AZ", "Phoenix Sky Harbor International Airport", "city", "mountain"),
    _airport("PGD", "Punta Gorda/Fort Myers", "FL", "Punta Gorda Airport", "beach"),
    _airport("SRQ", "Sarasota/Bradenton", "FL", "Sarasota-Bradenton International Airport", "beach"),
    _airport("JAX", "Jacksonville", "FL", "Jacksonville International Airport", "beach", "city"),
    _airport("VPS", "Destin/Fort Walton Beach", "FL", "Destin-Fort Walton Beach Airport", "beach"),
    _airport("PBI", "West Palm Beach", "FL", "Palm Beach International Airport", "beach"),
    _airport("EYW", "Key West", "FL", "Key West International Airport", "beach", "adventure"),
    _airport("CHS", "Charleston", "SC", "Charleston International Airport", "beach", "historic"),
    _airport("SAV", "Savannah/Hilton Head", "GA", "Savannah/Hilton Head International Airport", "beach", "historic"),
    _airport("MYR", "Myrtle Beach", "SC", "Myrtle Beach International Airport", "beach"),
    _airport("IAH", "Houston", "TX", "George Bush Intercontinental Airport", "city"),
    _airport("MSY", "New Orleans", "LA", "Louis Armstrong New Orleans International Airport", "city", "historic", "entertainment"),
    _airport("MSP", "Minneapolis", "MN", "Minneapolis-St. Paul International Airport", "city"),
    _airport("BOS", "Boston", "MA", "Boston Logan International Airport", "city", "historic"),
    _airport("SAT", "San Antonio", "TX", "San Antonio International Airport", "city", "historic"),
    _airport("PDX", "Portland", "OR", "Portland International Airport", "city", "mountain", "adventure"),
    _airport("SMF", "Sacramento", "CA", "Sacramento International Airport", "city"),
    _airport("BUR", "Burbank/Los Angeles", "CA", "Hollywood Burbank Airport", "city", "entertainment"),
    _airport("LAX", "Los Angeles", "CA", "Los Angeles International Airport", "city", "beach", "entertainment"),
    _airport("SAN", "San Diego", "CA", "San Diego International Airport", "beach", "city"),
    _airport("MCI", "Kansas City", "MO", "Kansas City International Airport", "city"),
    _airport("MKE", "Milwaukee", "WI", "Milwaukee Mitchell International Airport", "city"),
    _airport("OMA", "Omaha", "NE", "Eppley Airfield", "city"),
    _airport("ORD", "Chicago", "IL", "O'Hare International Airport", "city", "historic"),
    _airport("DCA", "Washington", "DC", "Ronald Reagan Washington National Airport", "city", "historic"),
    _airport("SFO", "San Francisco", "CA", "San Francisco International Airport", "city", "historic"),
    _airport("SEA", "Seattle", "WA", "Seattle-Tacoma International Airport", "city", "mountain", "adventure"),
    _airport("RSW", "Fort Myers", "FL", "Southwest Florida International Airport", "beach"),
)

_BY_CODE = {a.code: a for a in DESTINATION_AIRPORTS}


def get_airport(code: str) -> Optional[Airport]:
    """Return the destination airport for *code* or ``None``."""
    return _BY_CODE.get(code.strip().upper())


def select_destinations(codes: Iterable[str]) -> List[Airport]:
    """Return airports for *codes* in directory order.

    Raises ``KeyError`` naming every code missing from the directory.
    """
    wanted = {c.strip().upper() for c in codes}
    unknown = sorted(wanted - _BY_CODE.keys())
    if unknown:
        raise KeyError(", ".join(unknown))
    return [a for a in DESTINATION_AIRPORTS if a.code in wanted]


def airports_by_category(category: Category | str) -> List[Airport]:
    cat = Category(category)
    return [a for a in DESTINATION_AIRPORTS if cat in a.categories]


__all__ = [
    "Airport",
    "Category",
    "ORIGIN_AIRPORT",
    "DESTINATION_AIRPORTS",
    "get_airport",
    "select_destinations",
    "airports_by_category",
]
