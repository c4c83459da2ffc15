# -*- coding: utf-8 -*-
"""
pair_engine – pairing two independently priced one-way legs into a pseudo
round trip ("mix and match").

For every (destination, date pair) task the outbound and return legs are
searched separately, the cheapest few of each are kept, and every
outbound × return combination becomes a :class:`MixMatchDeal`.  A pair
flown by two different carriers is flagged ``is_mixed_airlines``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from .airports import ORIGIN_AIRPORT, Airport
from .booking_links import one_way_links
from .config import Settings
from .google_flights_fetcher import GoogleFlightsError
from .models import DatePair, MixMatchDeal, OneWayFlight, SearchTask, TimeWindow
from .normalizer import extract_one_way_flights
from .ranker import rank_deals
from .scheduler import build_tasks, dispatch_in_batches, resolve_date_pairs
from .search_params import SearchParams

logger = logging.getLogger(__name__)


def combine(
    destination: Airport,
    pair: DatePair,
    outbound: Sequence[OneWayFlight],
    returns: Sequence[OneWayFlight],
    *,
    origin: str = ORIGIN_AIRPORT.code,
) -> List[MixMatchDeal]:
    """Cartesian product of outbound and return legs."""
    if not outbound or not returns:
        return []
    links_out = one_way_links(origin, destination.code, pair.departure_date)
    links_ret = one_way_links(destination.code, origin, pair.return_date)
    return [
        MixMatchDeal.combine(destination, pair, out, ret, links_out, links_ret)
        for out in outbound
        for ret in returns
    ]


async def search_leg(
    fetcher: Any,
    origin: str,
    destination: str,
    day: str,
    window: TimeWindow,
    *,
    nonstop_only: bool,
    limit: int,
) -> List[OneWayFlight]:
    """Cheapest one-way flights for one leg; a failed query yields ``[]``."""
    try:
        payload = await fetcher.search_one_way(origin, destination, day, window)
    except GoogleFlightsError as exc:
        logger.warning(
            "  Failed one-way %s->%s on %s: %s", origin, destination, day, exc
        )
        return []
    return extract_one_way_flights(
        payload, nonstop_only=nonstop_only, window=window, limit=limit
    )


async def search_mix_match_task(
    fetcher: Any,
    task: SearchTask,
    *,
    origin: str = ORIGIN_AIRPORT.code,
    nonstop_only: bool = False,
    legs_per_direction: int = 3,
) -> List[MixMatchDeal]:
    dest = task.destination.code
    outbound, returns = await asyncio.gather(
        search_leg(
            fetcher,
            origin,
            dest,
            task.departure_date,
            task.departure_window,
            nonstop_only=nonstop_only,
            limit=legs_per_direction,
        ),
        search_leg(
            fetcher,
            dest,
            origin,
            task.return_date,
            task.return_window,
            nonstop_only=nonstop_only,
            limit=legs_per_direction,
        ),
    )
    pair = DatePair(task.departure_date, task.return_date)
    return combine(task.destination, pair, outbound, returns, origin=origin)


def mix_match_date_pairs(
    params: SearchParams, *, settings: Settings, today: date
) -> List[DatePair]:
    return resolve_date_pairs(
        params,
        today=today,
        min_days_ahead=settings.mix_match_min_days_ahead,
        max_lookahead_days=settings.mix_match_lookahead_days,
    )


async def stream_mix_match_search(
    params: SearchParams,
    fetcher: Any,
    *,
    settings: Settings,
    today: date,
    origin: str = ORIGIN_AIRPORT.code,
    date_pairs: Optional[List[DatePair]] = None,
) -> AsyncIterator[Dict[str, Any]]:
    """Progress events followed by the ``complete`` event for mix-and-match."""
    destinations = params.destinations()
    if date_pairs is None:
        date_pairs = mix_match_date_pairs(params, settings=settings, today=today)
    tasks = build_tasks(
        destinations, date_pairs, params.departure_window, params.return_window
    )
    logger.info(
        "Mix-and-match search: %d destinations x %d date pairs = %d tasks",
        len(destinations),
        len(date_pairs),
        len(tasks),
    )

    async def search_one(task: SearchTask) -> List[MixMatchDeal]:
        return await search_mix_match_task(
            fetcher,
            task,
            origin=origin,
            nonstop_only=params.nonstop_only,
            legs_per_direction=settings.mix_match_legs_per_direction,
        )

    deals: List[MixMatchDeal] = []
    async for progress in dispatch_in_batches(
        tasks,
        search_one,
        deals,
        batch_size=settings.batch_size,
        delay_s=settings.batch_delay_s,
        start_message="Starting mix-and-match search...",
    ):
        yield progress.to_event()

    top, total_found = rank_deals(deals, params.max_results)
    logger.info("Mix-and-match search finished: %d combinations", total_found)
    yield {
        "type": "complete",
        "deals": [d.to_dict() for d in top],
        "totalFound": total_found,
        "destinationsSearched": len(destinations),
        "datesSearched": len(date_pairs),
        "mixedAirlineDeals": sum(1 for d in top if d.is_mixed_airlines),
        "searchParams": params.echo(),
    }


__all__ = [
    "combine",
    "search_leg",
    "search_mix_match_task",
    "mix_match_date_pairs",
    "stream_mix_match_search",
]
