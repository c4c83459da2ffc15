"""Fan-out of (destination × date pair) search tasks in sequential batches.

Tasks inside one batch run concurrently on the event loop; the next batch
starts only after every task of the previous one has settled.  A failing
task is logged and contributes nothing, it never aborts the search.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from .airports import ORIGIN_AIRPORT, Airport
from .config import Settings
from .date_pairs import generate_flexible_dates
from .models import DatePair, FlightDeal, SearchTask, TimeWindow
from .normalizer import extract_round_trip_deal
from .ranker import rank_deals
from .search_params import SearchParams

logger = logging.getLogger(__name__)

D = TypeVar("D")
Worker = Callable[[SearchTask], Awaitable[Sequence[D]]]


@dataclass(frozen=True, slots=True)
class Progress:
    completed: int
    total: int
    message: str

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 100
        return math.floor(self.completed / self.total * 100 + 0.5)

    def to_event(self) -> Dict[str, Any]:
        return {
            "type": "progress",
            "completed": self.completed,
            "total": self.total,
            "percentage": self.percentage,
            "message": self.message,
        }


def build_tasks(
    destinations: Sequence[Airport],
    date_pairs: Sequence[DatePair],
    departure_window: TimeWindow = TimeWindow(),
    return_window: TimeWindow = TimeWindow(),
) -> List[SearchTask]:
    return [
        SearchTask(
            destination=dest,
            departure_date=pair.departure_date,
            return_date=pair.return_date,
            departure_window=departure_window,
            return_window=return_window,
        )
        for dest in destinations
        for pair in date_pairs
    ]


def resolve_date_pairs(
    params: SearchParams,
    *,
    today: date,
    min_days_ahead: int,
    max_lookahead_days: int,
) -> List[DatePair]:
    if params.search_mode == "flexible":
        return generate_flexible_dates(
            params.trip_duration,
            today=today,
            min_days_ahead=min_days_ahead,
            max_lookahead_days=max_lookahead_days,
        )
    return [
        DatePair(params.departure_date.isoformat(), params.return_date.isoformat())
    ]


def round_trip_date_pairs(
    params: SearchParams, *, settings: Settings, today: date
) -> List[DatePair]:
    return resolve_date_pairs(
        params,
        today=today,
        min_days_ahead=settings.min_days_ahead,
        max_lookahead_days=settings.lookahead_days,
    )


async def _guarded(worker: Worker, task: SearchTask) -> Sequence[Any]:
    try:
        return await worker(task)
    except Exception as exc:
        logger.warning(
            "  Failed to search %s on %s: %s",
            task.destination.code,
            task.departure_date,
            exc,
        )
        return ()


async def dispatch_in_batches(
    tasks: Sequence[SearchTask],
    worker: Worker,
    results: List[Any],
    *,
    batch_size: int = 10,
    delay_s: float = 0.05,
    start_message: str = "Starting search...",
) -> AsyncIterator[Progress]:
    """Run *tasks* through *worker*, appending every result to *results*.

    Yields one :class:`Progress` before the first batch and one after each
    batch.  *results* is owned by the caller and only read once the
    generator is exhausted.
    """
    total = len(tasks)
    completed = 0
    yield Progress(0, total, start_message)

    for start in range(0, total, batch_size):
        batch = tasks[start : start + batch_size]
        outcomes = await asyncio.gather(*(_guarded(worker, t) for t in batch))
        for found in outcomes:
            results.extend(found)

        completed += len(batch)
        yield Progress(
            completed, total, f"Searched {completed} of {total} combinations..."
        )

        if start + batch_size < total:
            await asyncio.sleep(delay_s)


async def stream_round_trip_search(
    params: SearchParams,
    fetcher: Any,
    *,
    settings: Settings,
    today: date,
    origin: str = ORIGIN_AIRPORT.code,
    date_pairs: Optional[List[DatePair]] = None,
) -> AsyncIterator[Dict[str, Any]]:
    """Progress events followed by the ``complete`` event for a round trip.

    Callers that already resolved *date_pairs* pass them in, otherwise they
    are derived from *params* and the settings window.
    """
    destinations = params.destinations()
    if date_pairs is None:
        date_pairs = round_trip_date_pairs(params, settings=settings, today=today)
    tasks = build_tasks(
        destinations, date_pairs, params.departure_window, params.return_window
    )
    logger.info(
        "Round-trip search: %d destinations x %d date pairs = %d tasks",
        len(destinations),
        len(date_pairs),
        len(tasks),
    )

    async def search_one(task: SearchTask) -> List[FlightDeal]:
        payload = await fetcher.search_round_trip(
            origin,
            task.destination.code,
            task.departure_date,
            task.return_date,
            task.departure_window,
            task.return_window,
        )
        deal = extract_round_trip_deal(
            payload, task, origin=origin, nonstop_only=params.nonstop_only
        )
        return [deal] if deal else []

    deals: List[FlightDeal] = []
    async for progress in dispatch_in_batches(
        tasks,
        search_one,
        deals,
        batch_size=settings.batch_size,
        delay_s=settings.batch_delay_s,
    ):
        yield progress.to_event()

    top, total_found = rank_deals(deals, params.max_results)
    logger.info("Round-trip search finished: %d deals found", total_found)
    yield {
        "type": "complete",
        "deals": [d.to_dict() for d in top],
        "totalFound": total_found,
        "destinationsSearched": len(destinations),
        "datesSearched": len(date_pairs),
        "searchParams": params.echo(),
    }


__all__ = [
    "Progress",
    "build_tasks",
    "resolve_date_pairs",
    "round_trip_date_pairs",
    "dispatch_in_batches",
    "stream_round_trip_search",
]
