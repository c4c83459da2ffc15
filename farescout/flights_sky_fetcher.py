from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Optional

import requests

from .airports import DESTINATION_AIRPORTS, ORIGIN_AIRPORT, get_airport
from .date_pairs import iter_date_range
from .normalizer import simplify_sky_itinerary, sky_itineraries

logger = logging.getLogger(__name__)

DATE_RANGE_PAUSE_S = 0.1
DATE_RANGE_LIMIT = 50


class FlightsSkyError(RuntimeError):
    """Error talking to the Flights-Sky API."""


class FlightsSkyFetcher:
    """
    Blocking client for the RapidAPI ``flights-sky`` round-trip search.

    Backs the single-destination pass-through endpoints.
    """

    def __init__(
        self,
        api_key: str,
        host: str = "flights-sky.p.rapidapi.com",
        *,
        origin: str = ORIGIN_AIRPORT.code,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.host = host
        self.origin = origin
        self.timeout = timeout
        self.base_url = f"https://{host}/flights/search-roundtrip"

    # ──────────────────────────────────────────────────────────

    def search_roundtrip(
        self, destination: str, depart_date: str, return_date: str
    ) -> dict:
        """Return the raw upstream JSON for one destination and date pair."""
        params = {
            "fromEntityId": self.origin,
            "toEntityId": destination,
            "departDate": depart_date,
            "returnDate": return_date,
            "adults": "1",
            "cabinClass": "economy",
            "currency": "USD",
            "market": "US",
            "locale": "en-US",
        }
        resp = requests.get(
            self.base_url,
            params=params,
            headers={"x-rapidapi-key": self.api_key, "x-rapidapi-host": self.host},
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise FlightsSkyError(
                f"HTTP {resp.status_code} – {resp.text[:120]}"
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise FlightsSkyError("invalid JSON body") from exc

    def cheapest_deal(
        self, destination: str, depart_date: str, return_date: str
    ) -> Optional[dict]:
        """Simplified record for the first (cheapest) itinerary, if any."""
        itineraries = sky_itineraries(
            self.search_roundtrip(destination, depart_date, return_date)
        )
        if not itineraries:
            return None
        airport = get_airport(destination)
        return {
            "destinationCode": destination,
            "destinationCity": airport.city if airport else destination,
            "outboundDate": depart_date,
            "inboundDate": return_date,
            **simplify_sky_itinerary(itineraries[0]),
        }

    def search_all_destinations(
        self,
        depart_date: str,
        return_date: str,
        *,
        max_price: Optional[float] = None,
        direct_only: bool = False,
        max_workers: int = 8,
    ) -> List[dict]:
        """Cheapest deal for every directory destination, sorted by price."""

        def one(code: str) -> Optional[dict]:
            try:
                return self.cheapest_deal(code, depart_date, return_date)
            except (FlightsSkyError, requests.RequestException) as exc:
                logger.warning("  Failed to fetch %s: %s", code, exc)
                return None

        codes = [a.code for a in DESTINATION_AIRPORTS]
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            deals = [d for d in pool.map(one, codes) if d]

        if max_price:
            deals = [d for d in deals if d["price"] <= max_price]
        if direct_only:
            deals = [d for d in deals if d["direct"]]
        deals.sort(key=lambda d: d["price"])
        return deals

    def search_date_range(
        self,
        destination: str,
        *,
        today: date,
        days_ahead: int = 90,
        trip_lengths: Iterable[int] = range(3, 8),
        nonstop_only: bool = True,
        pause_s: float = DATE_RANGE_PAUSE_S,
    ) -> List[dict]:
        """Sample departures every third day; all matches, cheapest first."""
        airport = get_airport(destination)
        city = airport.city if airport else destination
        deals: List[dict] = []

        for pair in iter_date_range(today, days_ahead, trip_lengths):
            try:
                payload = self.search_roundtrip(
                    destination, pair.departure_date, pair.return_date
                )
            except (FlightsSkyError, requests.RequestException) as exc:
                logger.warning(
                    "  Failed to fetch %s %s->%s: %s",
                    destination,
                    pair.departure_date,
                    pair.return_date,
                    exc,
                )
            else:
                for itinerary in sky_itineraries(payload):
                    simple = simplify_sky_itinerary(itinerary)
                    if nonstop_only and not simple["direct"]:
                        continue
                    deals.append(
                        {
                            "destinationCity": city,
                            "destinationCode": destination,
                            "currency": "USD",
                            "departureDate": pair.departure_date,
                            "returnDate": pair.return_date,
                            **simple,
                        }
                    )
            time.sleep(pause_s)

        deals.sort(key=lambda d: d["price"])
        return deals


def main(argv: list[str] | None = None) -> None:
    """Print the cheapest deal for one destination."""
    import argparse

    from .config import get_settings

    parser = argparse.ArgumentParser()
    parser.add_argument("destination")
    parser.add_argument("--departure-date", dest="departure", required=True)
    parser.add_argument("--return-date", dest="return_date", required=True)
    args = parser.parse_args(argv)

    settings = get_settings()
    fetcher = FlightsSkyFetcher(
        settings.require_api_key(), settings.flights_sky_host
    )
    deal = fetcher.cheapest_deal(args.destination, args.departure, args.return_date)

    if not deal:
        logger.info("No offers found")
    else:
        print(deal)


if __name__ == "__main__":
    main()


__all__ = ["FlightsSkyFetcher", "FlightsSkyError", "DATE_RANGE_LIMIT", "main"]
