from __future__ import annotations

import logging
import math
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from .aggregator import route_price_stats
from .airports import ORIGIN_AIRPORT
from .db import PriceHistory

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3
HISTORY_DAYS = 30

# (minimum savings %, badge, label), best first
BADGES = (
    (25.0, "hot", "🔥 Hot Deal!"),
    (15.0, "great", "⭐ Great Value"),
    (8.0, "good", "💰 Good Deal"),
    (0.0, "fair", "👍 Fair Price"),
)


@dataclass(frozen=True, slots=True)
class DealScore:
    score: int
    badge: Optional[str] = None
    badge_text: str = ""
    savings_percent: Optional[int] = None
    average_price: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "score": self.score,
            "badge": self.badge,
            "badgeText": self.badge_text,
        }
        if self.savings_percent is not None:
            data["savingsPercent"] = self.savings_percent
        if self.average_price is not None:
            data["averagePrice"] = self.average_price
        return data


NEUTRAL_SCORE = DealScore(score=50)


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_deal_score(
    history: Optional[PriceHistory],
    origin: str,
    dest: str,
    departure_date: str,
    current_price: float,
) -> DealScore:
    """Score *current_price* against the route's 30-day price history.

    0 means the highest recorded price, 100 the lowest.  Without enough
    history (or any history at all) the neutral score is returned.
    """
    if history is None or not history.available:
        return NEUTRAL_SCORE
    try:
        prices = history.query(origin, dest, days=HISTORY_DAYS)
    except sqlite3.Error as exc:
        logger.warning("History lookup failed for %s-%s: %s", origin, dest, exc)
        return NEUTRAL_SCORE

    stats = route_price_stats(prices)
    if stats is None or stats.count < MIN_SAMPLES or stats.mean <= 0:
        return NEUTRAL_SCORE

    savings = (stats.mean - current_price) / stats.mean * 100.0
    price_range = stats.max - stats.min
    score = (
        _round((stats.max - current_price) / price_range * 100.0)
        if price_range > 0
        else 50
    )

    badge, badge_text = None, ""
    for threshold, name, text in BADGES:
        if savings >= threshold:
            badge, badge_text = name, text
            break

    logger.debug(
        "Deal score %s-%s on %s: %s (%.0f%% vs avg)",
        origin,
        dest,
        departure_date,
        score,
        savings,
    )
    return DealScore(
        score=max(0, min(100, score)),
        badge=badge,
        badge_text=badge_text,
        savings_percent=_round(savings),
        average_price=_round(stats.mean),
    )


def compute_deal_scores(
    history: Optional[PriceHistory], flights: Iterable[Any]
) -> Dict[str, DealScore]:
    """Score many flights, keyed ``"{origin}-{destination}-{departureDate}"``."""
    scores: Dict[str, DealScore] = {}
    for flight in flights:
        if not isinstance(flight, Mapping):
            logger.warning("Skipping unscorable flight: %r", flight)
            continue
        dest = flight.get("destinationCode")
        price = flight.get("price")
        if not dest or isinstance(price, bool) or not isinstance(price, (int, float)):
            logger.warning("Skipping unscorable flight: %r", flight)
            continue
        origin = flight.get("originCode") or ORIGIN_AIRPORT.code
        departure = str(flight.get("departureDate", ""))
        key = f"{origin}-{dest}-{departure}"
        scores[key] = compute_deal_score(history, origin, dest, departure, price)
    return scores


__all__ = [
    "DealScore",
    "NEUTRAL_SCORE",
    "compute_deal_score",
    "compute_deal_scores",
]
