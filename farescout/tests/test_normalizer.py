import math

import pytest

from farescout.airports import get_airport
from farescout.models import SearchTask, TimeWindow
from farescout.normalizer import (
    accepts_departure,
    carriers_of,
    coerce_price,
    extract_one_way_flights,
    extract_round_trip_deal,
    find_return_segment,
    is_direct,
    parse_departure_hour,
    simplify_sky_itinerary,
    sky_itineraries,
)


def payload(*itineraries):
    return {"status": True, "data": {"itineraries": {"topFlights": list(itineraries)}}}


def segment(dep_code, arr_code, dep_time, arr_time, airline="Southwest"):
    return {
        "departure_airport": {"airport_code": dep_code, "time": dep_time},
        "arrival_airport": {"airport_code": arr_code, "time": arr_time},
        "airline": airline,
    }


def mco_task():
    return SearchTask(get_airport("MCO"), "2025-06-06", "2025-06-08")


def test_direct_round_trip_deal():
    itinerary = {
        "price": 210,
        "stops": 0,
        "flights": [
            segment("IND", "MCO", "2025-06-06 08:15", "2025-06-06 10:40"),
            segment("MCO", "IND", "2025-06-08 18:00", "2025-06-08 20:20"),
        ],
    }
    deal = extract_round_trip_deal(
        payload(itinerary), mco_task(), origin="IND", nonstop_only=True
    )

    assert deal.price == 210
    assert deal.direct
    assert deal.stops == 0
    assert deal.destination_city == "Orlando"
    assert deal.carriers == ("Southwest",)
    assert deal.outbound_departure_time == "2025-06-06 08:15"
    assert deal.outbound_arrival_time == "2025-06-06 10:40"
    assert deal.return_departure_time == "2025-06-08 18:00"
    assert deal.return_arrival_time == "2025-06-08 20:20"
    assert deal.deep_link.startswith("https://www.google.com/travel/flights?q=")


def test_nonstop_only_skips_connecting_itineraries():
    connecting = {"price": 150, "stops": 1, "layovers": [{"duration": 60}]}
    nonstop = {"price": 300, "stops": 0}
    deal = extract_round_trip_deal(
        payload(connecting, nonstop), mco_task(), origin="IND", nonstop_only=True
    )
    assert deal.price == 300

    deal = extract_round_trip_deal(
        payload(connecting, nonstop), mco_task(), origin="IND", nonstop_only=False
    )
    assert deal.price == 150
    assert not deal.direct
    assert deal.stops == 1


def test_null_layovers_mean_direct():
    assert is_direct({"stops": 1, "layovers": None})
    assert not is_direct({"stops": 1})
    assert not is_direct({"stops": 1, "layovers": []})

    deal = extract_round_trip_deal(
        payload({"price": 99, "stops": 1, "layovers": None}),
        mco_task(),
        origin="IND",
        nonstop_only=True,
    )
    assert deal.direct
    assert deal.stops == 0


@pytest.mark.parametrize(
    "body",
    [
        None,
        {"status": False, "data": {"itineraries": {"topFlights": [{"price": 1}]}}},
        {"status": True, "data": {}},
        {"status": True, "data": {"itineraries": {"topFlights": "oops"}}},
    ],
)
def test_unusable_payload_yields_nothing(body):
    assert extract_round_trip_deal(body, mco_task(), origin="IND", nonstop_only=False) is None
    assert extract_one_way_flights(body) == []


def test_missing_price_becomes_zero():
    deal = extract_round_trip_deal(
        payload({"stops": 0}), mco_task(), origin="IND", nonstop_only=False
    )
    assert deal.price == 0
    assert deal.carriers == ()
    assert deal.outbound_departure_time == ""


@pytest.mark.parametrize(
    "value, expected",
    [
        (199, 199),
        (199.5, 199.5),
        ("1,234.50", 1234.5),
        ("$89", 89.0),
        (None, 0),
        (True, 0),
        (-5, 0),
        ("n/a", 0),
        (math.nan, 0),
    ],
)
def test_coerce_price(value, expected):
    assert coerce_price(value) == expected


def test_carriers_deduplicated_in_order():
    segments = [
        {"airline": "Delta"},
        {"airline_name": "United"},
        {"airline": "Delta"},
        {"airline": ""},
        {},
    ]
    assert carriers_of(segments) == ["Delta", "United"]


def test_return_segment_matched_by_airport_code():
    segments = [
        segment("IND", "ATL", "a", "b", "Delta"),
        segment("ATL", "MCO", "c", "d", "Delta"),
        segment("MCO", "ATL", "e", "f", "Delta"),
        segment("ATL", "IND", "g", "h", "Delta"),
    ]
    assert find_return_segment(segments, "IND", "MCO", 1) is segments[2]


def test_return_segment_falls_back_for_nonstop():
    segments = [{"airline": "A"}, {"airline": "B"}]
    assert find_return_segment(segments, "IND", "MCO", 0) is segments[1]
    assert find_return_segment(segments, "IND", "MCO", 1) is None
    assert find_return_segment(segments[:1], "IND", "MCO", 0) is None


@pytest.mark.parametrize(
    "text, hour",
    [
        ("2025-06-06 08:15", 8),
        ("21:45", 21),
        ("9:05 PM", 21),
        ("8:15 p.m.", 20),
        ("12:30 AM", 0),
        ("12:10 PM", 12),
        ("", None),
        ("noon", None),
        ("25:00", None),
    ],
)
def test_parse_departure_hour(text, hour):
    assert parse_departure_hour(text) == hour


def test_time_window_wraps_midnight():
    night = TimeWindow(22, 5)
    assert night.contains(23)
    assert night.contains(3)
    assert not night.contains(12)


def test_unknown_time_only_passes_full_day_window():
    assert accepts_departure("", TimeWindow())
    assert not accepts_departure("", TimeWindow(6, 12))
    assert accepts_departure("07:30", TimeWindow(6, 12))
    assert not accepts_departure("13:30", TimeWindow(6, 12))


def one_way(price, dep_time, airline="Delta", stops=0):
    return {
        "price": price,
        "stops": stops,
        "flights": [segment("IND", "MCO", dep_time, "later", airline)],
    }


def test_one_way_filters_before_limit():
    body = payload(
        one_way(80, "05:00"),
        one_way(90, "07:00"),
        one_way(100, "08:00", stops=1),
        one_way(110, "09:00"),
        one_way(120, "10:00"),
        one_way(130, "11:00"),
    )
    flights = extract_one_way_flights(
        body, nonstop_only=True, window=TimeWindow(6, 12), limit=3
    )
    assert [f.price for f in flights] == [90, 110, 120]
    assert flights[0].departure_time == "07:00"
    assert flights[0].arrival_time == "later"


def test_one_way_unknown_carrier():
    flights = extract_one_way_flights(payload({"price": 75, "stops": 0}))
    assert len(flights) == 1
    assert flights[0].carrier == "Unknown"
    assert flights[0].direct


def sky_payload(*itineraries):
    return {"data": {"itineraries": list(itineraries)}}


def test_simplify_sky_itinerary():
    itinerary = {
        "price": {"raw": 199.0, "formatted": "$199"},
        "legs": [
            {"stopCount": 0, "carriers": {"marketing": [{"name": "Delta"}]}},
            {
                "stopCount": 0,
                "carriers": {"marketing": [{"name": "Delta"}, {"alternateId": "UA"}]},
            },
        ],
        "deepLink": "https://example.com/book",
    }
    assert sky_itineraries(sky_payload(itinerary)) == [itinerary]
    assert simplify_sky_itinerary(itinerary) == {
        "price": 199.0,
        "direct": True,
        "carriers": ["Delta", "UA"],
        "stops": 0,
        "deepLink": "https://example.com/book",
    }


def test_simplify_sky_connecting_and_formatted_price():
    itinerary = {
        "price": {"formatted": "$1,050"},
        "legs": [{"stopCount": 1}, {"stopCount": 0, "carriers": {"marketing": "x"}}],
    }
    simple = simplify_sky_itinerary(itinerary)
    assert simple["price"] == 1050.0
    assert not simple["direct"]
    assert simple["stops"] == 1
    assert simple["carriers"] == []
    assert simple["deepLink"] is None
