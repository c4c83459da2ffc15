from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import click
import requests
from pydantic import ValidationError

from .airports import DESTINATION_AIRPORTS, airports_by_category
from .api import default_fetcher_factory
from .config import ConfigurationError, Settings, get_settings
from .date_pairs import generate_flexible_dates
from .db import import_prices_csv, migrate
from .pair_engine import stream_mix_match_search
from .scheduler import stream_round_trip_search
from .search_params import (
    MixMatchParams,
    SearchParams,
    SearchValidationError,
    parse_params,
)
from .streaming import iter_ndjson

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

ROUND_TRIP_PATH = "/api/search-all-dates-destinations"
MIX_MATCH_PATH = "/api/search-mix-match"


def configure_logging(settings: Settings) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=settings.log_level.upper(),
        handlers=handlers,
        format=LOG_FORMAT,
    )


# ────────────────────────────────────────────────────────────────
# Output helpers
# ────────────────────────────────────────────────────────────────


def _echo_event(event: Dict[str, Any], raw: bool) -> None:
    if raw:
        click.echo(json.dumps(event))
        return
    if event.get("type") == "progress":
        click.echo(f"[{event['percentage']:>3}%] {event['message']}", err=True)
        return
    for deal in event.get("deals", []):
        click.echo(_format_deal(deal))
    click.echo(
        f"{len(event.get('deals', []))} shown / {event.get('totalFound', 0)} found "
        f"({event.get('destinationsSearched', 0)} destinations, "
        f"{event.get('datesSearched', 0)} date pairs)"
    )


def _format_deal(deal: Dict[str, Any]) -> str:
    route = f"{deal['destinationCode']:<4} {deal['departureDate']} → {deal['returnDate']}"
    if "totalPrice" in deal:
        mixed = " mixed" if deal["isMixedAirlines"] else ""
        return (
            f"${deal['totalPrice']:>8.2f}  {route}  "
            f"{deal['outboundCarrier']} / {deal['returnCarrier']}{mixed}"
        )
    stops = "nonstop" if deal["direct"] else f"{deal['stops']} stop(s)"
    carriers = ", ".join(deal.get("carriers") or []) or "?"
    return f"${deal['price']:>8.2f}  {route}  {carriers} ({stops})  {deal['deepLink']}"


async def _run_local(
    params: SearchParams, mix_match: bool, settings: Settings, raw: bool
) -> None:
    search = stream_mix_match_search if mix_match else stream_round_trip_search
    async with default_fetcher_factory(
        settings, settings.require_api_key()
    ) as fetcher:
        async for event in search(
            params, fetcher, settings=settings, today=date.today()
        ):
            _echo_event(event, raw)


def _run_remote(url: str, body: Dict[str, Any], mix_match: bool, raw: bool) -> None:
    endpoint = url.rstrip("/") + (MIX_MATCH_PATH if mix_match else ROUND_TRIP_PATH)
    logger.info("Streaming search results from %s", endpoint)
    with requests.post(endpoint, json=body, stream=True, timeout=300) as resp:
        if resp.status_code != 200:
            try:
                message = resp.json().get("error", resp.text)
            except ValueError:
                message = resp.text
            raise click.ClickException(f"HTTP {resp.status_code}: {message}")
        for event in iter_ndjson(resp.iter_content(chunk_size=None)):
            _echo_event(event, raw)


# ────────────────────────────────────────────────────────────────
# Commands
# ────────────────────────────────────────────────────────────────


@click.group()
def cli() -> None:
    """Command line interface."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    configure_logging(settings)


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("farescout.api:create_app", factory=True, host=host, port=port)


@cli.command()
@click.option("--dest", "destinations", multiple=True, required=True,
              help="Destination IATA code (repeat up to 5 times)")
@click.option("--depart", "departure_date", help="Departure date (YYYY-MM-DD)")
@click.option("--return", "return_date", help="Return date (YYYY-MM-DD)")
@click.option("--duration", type=int,
              help="Trip length in days; switches to flexible search")
@click.option("--depart-window", default="0-23", show_default=True,
              help="Outbound departure hours, e.g. 6-12 or 22-5")
@click.option("--return-window", default="0-23", show_default=True,
              help="Return departure hours")
@click.option("--nonstop/--any-stops", default=None,
              help="Only direct flights (default: on for round trip)")
@click.option("--max-results", default=100, show_default=True, type=int)
@click.option("--mix-match", is_flag=True, help="Combine one-way fares")
@click.option("--url", help="Query a running server instead of searching locally")
@click.option("--json", "raw", is_flag=True, help="Print raw ndjson events")
def search(
    destinations: tuple,
    departure_date: Optional[str],
    return_date: Optional[str],
    duration: Optional[int],
    depart_window: str,
    return_window: str,
    nonstop: Optional[bool],
    max_results: int,
    mix_match: bool,
    url: Optional[str],
    raw: bool,
) -> None:
    """Search deals and print progress and results."""
    body: Dict[str, Any] = {
        "searchMode": "flexible" if duration else "specific",
        "tripDuration": duration,
        "departureDate": departure_date,
        "returnDate": return_date,
        "destinationCodes": list(destinations),
        "maxResults": max_results,
    }
    for prefix, window in (("departure", depart_window), ("return", return_window)):
        start, _, end = window.partition("-")
        try:
            body[f"{prefix}TimeStart"] = int(start)
            body[f"{prefix}TimeEnd"] = int(end)
        except ValueError:
            raise click.BadParameter(f"invalid hour window: {window}")
    if nonstop is not None:
        body["nonstopOnly"] = nonstop

    if url:
        _run_remote(url, body, mix_match, raw)
        return

    settings = get_settings()
    try:
        params = parse_params(MixMatchParams if mix_match else SearchParams, body)
        asyncio.run(_run_local(params, mix_match, settings, raw))
    except (SearchValidationError, ConfigurationError) as exc:
        raise click.ClickException(str(exc))


@cli.command()
@click.option("--duration", type=int, required=True, help="Trip length in days")
@click.option("--today", "today_str", help="Reference date (YYYY-MM-DD)")
@click.option("--mix-match", is_flag=True, help="Use the mix-and-match window")
def dates(duration: int, today_str: Optional[str], mix_match: bool) -> None:
    """Print the date pairs a flexible search would try."""
    settings = get_settings()
    today = date.fromisoformat(today_str) if today_str else date.today()
    if mix_match:
        window = (settings.mix_match_min_days_ahead, settings.mix_match_lookahead_days)
    else:
        window = (settings.min_days_ahead, settings.lookahead_days)
    try:
        pairs = generate_flexible_dates(
            duration, today=today, min_days_ahead=window[0], max_lookahead_days=window[1]
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--duration")
    for pair in pairs:
        click.echo(f"{pair.departure_date} → {pair.return_date}")
    click.echo(f"{len(pairs)} date pairs")


@cli.command()
@click.option("--category", help="Only destinations in this category")
def airports(category: Optional[str]) -> None:
    """List searchable destinations."""
    try:
        items = airports_by_category(category) if category else DESTINATION_AIRPORTS
    except ValueError:
        raise click.BadParameter(f"unknown category: {category}")
    for airport in items:
        cats = ", ".join(c.value for c in airport.categories)
        click.echo(f"{airport.code}  {airport.city}, {airport.state}  [{cats}]")


def _history_db(db_path: Optional[str]) -> str:
    path = db_path or get_settings().price_history_db
    if not path:
        raise click.ClickException("Set PRICE_HISTORY_DB or pass --db")
    return path


@cli.command("migrate")
@click.option("--db", "db_path", help="Price history database path")
def migrate_cmd(db_path: Optional[str]) -> None:
    """Create or upgrade the price history database."""
    version = migrate(_history_db(db_path))
    click.echo(f"Schema version {version}")


@cli.command("import-history")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--db", "db_path", help="Price history database path")
def import_history(csv_path: str, db_path: Optional[str]) -> None:
    """Load historical fares from a CSV file for deal scoring."""
    try:
        count = import_prices_csv(csv_path, _history_db(db_path))
    except ValueError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Imported {count} prices")


if __name__ == "__main__":
    cli()
