from __future__ import annotations

import logging
import os
import pathlib
import sqlite3
from typing import List, Optional

import pandas as pd

PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
SCHEMA_FILE = str(PACKAGE_DIR / "schema.sql")
SCHEMA_VERSION = 1

CSV_COLUMNS = ["origin_code", "destination_code", "departure_date", "price"]

logger = logging.getLogger(__name__)


def schema_version(conn: sqlite3.Connection) -> int:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)"
    )
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def migrate(db_path: str, schema_path: str = SCHEMA_FILE) -> int:
    """Bring the price history database up to date; return its version."""
    with sqlite3.connect(db_path) as conn:
        current = schema_version(conn)
        if current >= SCHEMA_VERSION:
            return current
        logger.info(
            "Migrating %s from schema %s to %s", db_path, current, SCHEMA_VERSION
        )
        with open(schema_path, "r", encoding="utf-8") as fh:
            conn.executescript(fh.read())
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version(version) VALUES (?)", (SCHEMA_VERSION,)
        )
        conn.commit()
    return SCHEMA_VERSION


class PriceHistory:
    """Read access to recorded fares for a route.

    ``available`` is ``False`` when no database is configured or the file
    does not exist; callers then fall back to a neutral score.
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    @property
    def available(self) -> bool:
        return bool(self.db_path) and os.path.exists(self.db_path)

    def query(self, origin: str, dest: str, days: int = 30) -> List[float]:
        """Return prices for ``origin``-``dest`` recorded in the last *days*."""
        logger.debug("Querying %s-day history for %s-%s", days, origin, dest)
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT price FROM flight_prices
                 WHERE origin_code=? AND destination_code=?
                   AND recorded_at >= datetime('now', ?)
                """,
                (origin, dest, f"-{days} days"),
            ).fetchall()
        return [float(r[0]) for r in rows if r[0] is not None]


def import_prices_csv(csv_path: str, db_path: str) -> int:
    """Append historical fares from *csv_path*; return the row count.

    Required columns: ``origin_code``, ``destination_code``,
    ``departure_date``, ``price``; ``recorded_at`` defaults to now.
    """
    df = pd.read_csv(csv_path)
    missing = [c for c in CSV_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

    if "recorded_at" not in df.columns:
        df["recorded_at"] = pd.Timestamp.now(tz="UTC").tz_localize(None)
    df["recorded_at"] = pd.to_datetime(df["recorded_at"]).dt.strftime(
        "%Y-%m-%d %H:%M:%S"
    )
    df["price"] = pd.to_numeric(df["price"], errors="coerce")
    df = df.dropna(subset=["price"])[CSV_COLUMNS + ["recorded_at"]]

    migrate(db_path)
    with sqlite3.connect(db_path) as conn:
        df.to_sql("flight_prices", conn, if_exists="append", index=False)
        conn.commit()
    logger.info("Imported %d historical prices into %s", len(df), db_path)
    return len(df)


__all__ = [
    "migrate",
    "PriceHistory",
    "import_prices_csv",
]
