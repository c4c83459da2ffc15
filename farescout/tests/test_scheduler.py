import asyncio
from datetime import date

import pytest

from farescout import scheduler
from farescout.airports import get_airport
from farescout.config import Settings
from farescout.models import DatePair
from farescout.scheduler import (
    Progress,
    build_tasks,
    dispatch_in_batches,
    stream_round_trip_search,
)
from farescout.search_params import SearchParams, parse_params


def make_tasks(n, code="MCO"):
    pairs = [DatePair(f"2025-07-{i + 1:02d}", f"2025-07-{i + 3:02d}") for i in range(n)]
    return build_tasks([get_airport(code)], pairs)


def run_dispatch(tasks, worker, **kwargs):
    results = []

    async def go():
        return [p async for p in dispatch_in_batches(tasks, worker, results, **kwargs)]

    return asyncio.run(go()), results


@pytest.mark.parametrize(
    "completed, total, pct",
    [(0, 4, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (4, 4, 100), (0, 0, 100)],
)
def test_progress_percentage(completed, total, pct):
    assert Progress(completed, total, "").percentage == pct


def test_build_tasks_is_destination_major():
    pairs = [DatePair("2025-06-06", "2025-06-08"), DatePair("2025-06-13", "2025-06-15")]
    tasks = build_tasks([get_airport("MCO"), get_airport("MIA")], pairs)

    assert len(tasks) == 4
    assert [(t.destination.code, t.departure_date) for t in tasks] == [
        ("MCO", "2025-06-06"),
        ("MCO", "2025-06-13"),
        ("MIA", "2025-06-06"),
        ("MIA", "2025-06-13"),
    ]


def test_batches_run_sequentially():
    state = {"in_flight": 0, "peak": 0}

    async def worker(task):
        state["in_flight"] += 1
        state["peak"] = max(state["peak"], state["in_flight"])
        await asyncio.sleep(0)
        state["in_flight"] -= 1
        return [task.departure_date]

    tasks = make_tasks(25)
    progress, results = run_dispatch(tasks, worker, batch_size=10, delay_s=0)

    assert [p.completed for p in progress] == [0, 10, 20, 25]
    assert all(p.total == 25 for p in progress)
    assert progress[0].message == "Starting search..."
    assert progress[-1].message == "Searched 25 of 25 combinations..."
    assert state["peak"] == 10
    assert sorted(results) == sorted(t.departure_date for t in tasks)


def test_pause_between_batches_only(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    async def worker(task):
        return []

    monkeypatch.setattr(scheduler.asyncio, "sleep", fake_sleep)
    run_dispatch(make_tasks(5), worker, batch_size=2, delay_s=0.05)

    assert delays == [0.05, 0.05]


def test_failed_task_is_isolated():
    async def worker(task):
        if task.departure_date == "2025-07-02":
            raise RuntimeError("HTTP 500")
        return [task.departure_date]

    progress, results = run_dispatch(make_tasks(3), worker, batch_size=10, delay_s=0)

    assert sorted(results) == ["2025-07-01", "2025-07-03"]
    assert progress[-1].completed == 3


def test_no_tasks_still_reports():
    async def worker(task):
        return []

    progress, results = run_dispatch([], worker)
    assert [(p.completed, p.total, p.percentage) for p in progress] == [(0, 0, 100)]
    assert results == []


def round_trip_payload(price):
    return {
        "status": True,
        "data": {"itineraries": {"topFlights": [{"price": price, "stops": 0}]}},
    }


class FakeFetcher:
    def __init__(self):
        self.calls = []

    async def search_round_trip(
        self, origin, destination, outbound_date, return_date, out_window, ret_window
    ):
        self.calls.append((destination, outbound_date, out_window, ret_window))
        if destination == "LAX":
            raise RuntimeError("HTTP 500")
        return round_trip_payload(100 + int(outbound_date[-2:]))


def collect(params, fetcher, settings):
    async def go():
        return [
            e
            async for e in stream_round_trip_search(
                params, fetcher, settings=settings, today=date(2025, 6, 4)
            )
        ]

    return asyncio.run(go())


def test_flexible_round_trip_stream():
    params = parse_params(
        SearchParams,
        {
            "searchMode": "flexible",
            "tripDuration": 3,
            "destinationCodes": ["LAX", "MIA"],
            "departureTimeStart": 6,
            "departureTimeEnd": 12,
            "maxResults": 5,
        },
    )
    settings = Settings(RAPIDAPI_KEY="x", SEARCH_BATCH_DELAY_MS=0)
    fetcher = FakeFetcher()
    events = collect(params, fetcher, settings)

    progress = [e for e in events if e["type"] == "progress"]
    assert [e["completed"] for e in progress] == [0, 10, 18]
    assert [e["percentage"] for e in progress] == [0, 56, 100]
    assert events[-1]["type"] == "complete"
    assert len(fetcher.calls) == 18
    assert fetcher.calls[0][2].as_param() == "6,12"

    complete = events[-1]
    assert complete["totalFound"] == 9
    assert complete["destinationsSearched"] == 2
    assert complete["datesSearched"] == 9
    assert len(complete["deals"]) == 5
    prices = [d["price"] for d in complete["deals"]]
    assert prices == sorted(prices)
    assert {d["destinationCode"] for d in complete["deals"]} == {"MIA"}
    assert complete["searchParams"]["tripDuration"] == 3
