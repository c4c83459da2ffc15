from farescout.models import FlightDeal
from farescout.ranker import rank_deals


def deal(code, price, dep="2025-06-06"):
    return FlightDeal(
        destination_city=code,
        destination_code=code,
        price=price,
        departure_date=dep,
        return_date="2025-06-08",
        direct=True,
    )


def test_sorted_cheapest_first_and_capped():
    deals = [deal("MIA", 300), deal("MCO", 210), deal("TPA", 250), deal("ATL", 90)]
    top, total = rank_deals(deals, 3)

    assert [d.price for d in top] == [90, 210, 250]
    assert total == 4


def test_equal_deals_collapse_and_ties_keep_order():
    first = deal("MCO", 200, "2025-06-06")
    second = deal("MIA", 200, "2025-06-13")
    top, total = rank_deals([first, second, deal("MCO", 200, "2025-06-06")], 10)

    assert top == [first, second]
    assert total == 2


def test_empty():
    assert rank_deals([], 5) == ([], 0)
