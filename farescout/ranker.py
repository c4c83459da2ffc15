from __future__ import annotations

from operator import attrgetter
from typing import Any, Callable, Iterable, List, Tuple, TypeVar

D = TypeVar("D")

by_price: Callable[[Any], float] = attrgetter("price")


def rank_deals(
    deals: Iterable[D],
    max_results: int,
    key: Callable[[D], float] = by_price,
) -> Tuple[List[D], int]:
    """Deduplicate, sort cheapest first and cap at *max_results*.

    Returns the capped list together with the number of unique deals.
    """
    unique = list(dict.fromkeys(deals))
    unique.sort(key=key)
    return unique[:max_results], len(unique)


__all__ = ["rank_deals", "by_price"]
