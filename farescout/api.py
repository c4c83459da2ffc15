"""HTTP endpoints.

The two search endpoints stream ndjson progress; the legacy endpoints
are plain JSON proxies around the Flights-Sky API.  Validation and
configuration problems are answered before any upstream call is made.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import requests
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse

from .airports import DESTINATION_AIRPORTS, ORIGIN_AIRPORT, airports_by_category
from .config import ConfigurationError, Settings, get_settings
from .db import PriceHistory
from .deal_filter import compute_deal_scores
from .flights_sky_fetcher import (
    DATE_RANGE_LIMIT,
    FlightsSkyError,
    FlightsSkyFetcher,
)
from .google_flights_fetcher import GoogleFlightsFetcher
from .models import DatePair
from .pair_engine import mix_match_date_pairs, stream_mix_match_search
from .scheduler import round_trip_date_pairs, stream_round_trip_search
from .search_params import (
    AllDestinationsRequest,
    DateRangeRequest,
    MixMatchParams,
    SearchParams,
    SearchValidationError,
    SingleSearchRequest,
    parse_params,
)
from .streaming import NDJSON_MEDIA_TYPE, STREAM_HEADERS, encode_events

logger = logging.getLogger(__name__)

FetcherFactory = Callable[[Settings, str], GoogleFlightsFetcher]


def default_fetcher_factory(
    settings: Settings, api_key: str
) -> GoogleFlightsFetcher:
    return GoogleFlightsFetcher(
        api_key,
        settings.google_flights_host,
        timeout=settings.upstream_timeout_s,
    )


class UpstreamFailure(RuntimeError):
    """A legacy pass-through call failed."""


def create_app(
    settings: Optional[Settings] = None,
    *,
    fetcher_factory: FetcherFactory = default_fetcher_factory,
    history: Optional[PriceHistory] = None,
    today: Callable[[], date] = date.today,
) -> FastAPI:
    settings = settings or get_settings()
    if history is None:
        history = PriceHistory(settings.price_history_db)

    app = FastAPI(title="farescout")

    @app.exception_handler(SearchValidationError)
    async def _on_validation_error(
        request: Request, exc: SearchValidationError
    ) -> JSONResponse:
        logger.info("Rejected %s: %s", request.url.path, exc)
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(ConfigurationError)
    async def _on_configuration_error(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("RAPIDAPI_KEY environment variable is not set")
        return JSONResponse({"error": str(exc)}, status_code=500)

    @app.exception_handler(UpstreamFailure)
    async def _on_upstream_failure(
        request: Request, exc: UpstreamFailure
    ) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=500)

    async def json_body(request: Request) -> Any:
        try:
            return await request.json()
        except ValueError as exc:
            raise SearchValidationError("Request body must be valid JSON") from exc

    def api_key() -> str:
        key = settings.require_api_key()
        logger.info("API key configured: %s...", key[:8])
        return key

    def sky_fetcher() -> FlightsSkyFetcher:
        return FlightsSkyFetcher(
            api_key(),
            settings.flights_sky_host,
            timeout=settings.upstream_timeout_s,
        )

    def plan_dates(
        plan: Callable[..., List[DatePair]], params: Any, day: date
    ) -> List[DatePair]:
        try:
            return plan(params, settings=settings, today=day)
        except ValueError as exc:
            raise SearchValidationError(str(exc)) from exc

    def stream(
        search: Callable[..., AsyncIterator[Dict[str, Any]]],
        plan: Callable[..., List[DatePair]],
        params: Any,
    ) -> StreamingResponse:
        day = today()
        date_pairs = plan_dates(plan, params, day)
        key = api_key()

        async def events() -> AsyncIterator[Dict[str, Any]]:
            async with fetcher_factory(settings, key) as fetcher:
                async for event in search(
                    params,
                    fetcher,
                    settings=settings,
                    today=day,
                    date_pairs=date_pairs,
                ):
                    yield event

        return StreamingResponse(
            encode_events(events()),
            media_type=NDJSON_MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )

    async def legacy_call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(fn, *args, **kwargs)
        except (FlightsSkyError, requests.RequestException) as exc:
            logger.error("Flight search error: %s", exc)
            raise UpstreamFailure("Failed to search flights") from exc

    # ──────────────────────────────────────────────────────────
    # Streaming searches
    # ──────────────────────────────────────────────────────────

    @app.post("/api/search-all-dates-destinations")
    async def search_all_dates_destinations(request: Request):
        params = parse_params(SearchParams, await json_body(request))
        return stream(stream_round_trip_search, round_trip_date_pairs, params)

    @app.post("/api/search-mix-match")
    async def search_mix_match(request: Request):
        params = parse_params(MixMatchParams, await json_body(request))
        return stream(stream_mix_match_search, mix_match_date_pairs, params)

    # ──────────────────────────────────────────────────────────
    # Legacy pass-through endpoints
    # ──────────────────────────────────────────────────────────

    @app.post("/api/search-flights")
    async def search_flights(request: Request):
        req = parse_params(SingleSearchRequest, await json_body(request))
        fetcher = sky_fetcher()
        return await legacy_call(
            fetcher.search_roundtrip,
            req.destination_code,
            req.outbound_date.isoformat(),
            req.inbound_date.isoformat(),
        )

    @app.post("/api/search-all-destinations")
    async def search_all_destinations(request: Request):
        req = parse_params(AllDestinationsRequest, await json_body(request))
        fetcher = sky_fetcher()
        deals = await legacy_call(
            fetcher.search_all_destinations,
            req.start_date.isoformat(),
            req.end_date.isoformat(),
            max_price=req.max_price,
            direct_only=req.direct_only,
        )
        return {"deals": deals, "total": len(deals)}

    @app.post("/api/search-date-range")
    async def search_date_range(request: Request):
        req = parse_params(DateRangeRequest, await json_body(request))
        fetcher = sky_fetcher()
        deals = await legacy_call(
            fetcher.search_date_range,
            req.destination_code,
            today=today(),
            days_ahead=req.days_ahead,
            trip_lengths=range(req.trip_length_min, req.trip_length_max + 1),
            nonstop_only=req.nonstop_only,
        )
        return {
            "deals": deals[:DATE_RANGE_LIMIT],
            "totalSearched": len(deals),
            "searchParams": req.echo(),
        }

    # ──────────────────────────────────────────────────────────
    # Reference data and scoring
    # ──────────────────────────────────────────────────────────

    @app.post("/api/calculate-deal-scores")
    async def calculate_deal_scores(request: Request):
        body = await json_body(request)
        flights = body.get("flights") if isinstance(body, dict) else None
        if not isinstance(flights, list):
            raise SearchValidationError(
                "Invalid request: flights array is required"
            )
        scores = await run_in_threadpool(compute_deal_scores, history, flights)
        return {"scores": {key: s.to_dict() for key, s in scores.items()}}

    @app.get("/api/airports")
    async def list_airports(category: Optional[str] = None):
        if category is None:
            airports = list(DESTINATION_AIRPORTS)
        else:
            try:
                airports = airports_by_category(category)
            except ValueError as exc:
                raise SearchValidationError(
                    f"Unknown category: {category}"
                ) from exc
        return {
            "origin": ORIGIN_AIRPORT.to_dict(),
            "destinations": [a.to_dict() for a in airports],
        }

    return app


__all__ = ["create_app", "default_fetcher_factory"]
