from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd


@dataclass(frozen=True, slots=True)
class RouteStats:
    count: int
    mean: float
    min: float
    max: float


def route_price_stats(prices: Iterable[float]) -> Optional[RouteStats]:
    """Summarise historical *prices* for one route using pandas.

    Returns ``None`` when no usable price is present.
    """
    series = pd.to_numeric(
        pd.Series(list(prices), dtype="object"), errors="coerce"
    ).dropna()
    if series.empty:
        return None
    return RouteStats(
        count=int(series.count()),
        mean=float(series.mean()),
        min=float(series.min()),
        max=float(series.max()),
    )


__all__ = ["RouteStats", "route_price_stats"]
