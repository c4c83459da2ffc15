from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .models import TimeWindow

logger = logging.getLogger(__name__)

SEARCH_PATH = "/api/v1/searchFlights"

BASE_PARAMS = {
    "travel_class": "ECONOMY",
    "adults": "1",
    "show_hidden": "1",
    "currency": "USD",
    "language_code": "en-US",
    "country_code": "US",
    "search_type": "best",
}


class GoogleFlightsError(RuntimeError):
    """Upstream search failed (transport, HTTP status or body)."""


class GoogleFlightsFetcher:
    """
    Async client for the RapidAPI ``google-flights2`` search endpoint.

    One instance serves one inbound request; use it as an async context
    manager so the underlying connection pool is closed afterwards.
    """

    def __init__(
        self,
        api_key: str,
        host: str = "google-flights2.p.rapidapi.com",
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.host = host
        self._client = httpx.AsyncClient(
            base_url=f"https://{host}",
            headers={"x-rapidapi-key": api_key, "x-rapidapi-host": host},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GoogleFlightsFetcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ──────────────────────────────────────────────────────────

    async def search_round_trip(
        self,
        origin: str,
        destination: str,
        outbound_date: str,
        return_date: str,
        outbound_window: TimeWindow = TimeWindow(),
        return_window: TimeWindow = TimeWindow(),
    ) -> dict:
        """Return the raw round-trip search payload."""
        return await self._get(
            {
                "departure_id": origin,
                "arrival_id": destination,
                "outbound_date": outbound_date,
                "return_date": return_date,
                "outbound_times": outbound_window.as_param(),
                "return_times": return_window.as_param(),
            }
        )

    async def search_one_way(
        self,
        origin: str,
        destination: str,
        date: str,
        window: TimeWindow = TimeWindow(),
    ) -> dict:
        """Return the raw one-way search payload for a single leg."""
        return await self._get(
            {
                "departure_id": origin,
                "arrival_id": destination,
                "outbound_date": date,
                "flight_type": "one_way",
                "outbound_times": window.as_param(),
            }
        )

    async def _get(self, params: dict) -> dict:
        query = {**params, **BASE_PARAMS}
        route = f"{params['departure_id']}->{params['arrival_id']}"
        try:
            resp = await self._client.get(SEARCH_PATH, params=query)
        except httpx.HTTPError as exc:
            raise GoogleFlightsError(f"{route}: {exc!r}") from exc

        if not resp.is_success:
            raise GoogleFlightsError(
                f"{route}: HTTP {resp.status_code} – {resp.text[:120]}"
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise GoogleFlightsError(f"{route}: invalid JSON body") from exc
        logger.debug("Fetched %s on %s", route, params["outbound_date"])
        return data


__all__ = ["GoogleFlightsFetcher", "GoogleFlightsError"]
