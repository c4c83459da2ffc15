import sqlite3

import pytest

from farescout.aggregator import route_price_stats
from farescout.db import PriceHistory, import_prices_csv, migrate
from farescout.deal_filter import NEUTRAL_SCORE, compute_deal_score, compute_deal_scores


def setup_db(tmp_path, prices, recorded_at=None):
    db_file = tmp_path / "prices.db"
    migrate(str(db_file))
    conn = sqlite3.connect(db_file)
    for price in prices:
        if recorded_at:
            conn.execute(
                "INSERT INTO flight_prices (origin_code, destination_code, "
                "departure_date, price, recorded_at) VALUES (?,?,?,?,?)",
                ("IND", "MCO", "2025-06-06", price, recorded_at),
            )
        else:
            conn.execute(
                "INSERT INTO flight_prices (origin_code, destination_code, "
                "departure_date, price) VALUES (?,?,?,?)",
                ("IND", "MCO", "2025-06-06", price),
            )
    conn.commit()
    conn.close()
    return PriceHistory(str(db_file))


def score(history, price):
    return compute_deal_score(history, "IND", "MCO", "2025-06-06", price)


def test_hot_deal(tmp_path):
    history = setup_db(tmp_path, [100, 200, 300])
    result = score(history, 150)

    assert result.score == 75
    assert result.badge == "hot"
    assert result.savings_percent == 25
    assert result.average_price == 200
    assert result.to_dict() == {
        "score": 75,
        "badge": "hot",
        "badgeText": "🔥 Hot Deal!",
        "savingsPercent": 25,
        "averagePrice": 200,
    }


@pytest.mark.parametrize(
    "price, badge, points",
    [(170, "great", 65), (184, "good", 58), (190, "fair", 55), (250, None, 25), (350, None, 0)],
)
def test_badge_thresholds(tmp_path, price, badge, points):
    history = setup_db(tmp_path, [100, 200, 300])
    result = score(history, price)
    assert result.badge == badge
    assert result.score == points


def test_flat_history_scores_fifty(tmp_path):
    history = setup_db(tmp_path, [200, 200, 200])
    result = score(history, 200)
    assert result.score == 50
    assert result.badge == "fair"


def test_too_little_history_is_neutral(tmp_path):
    history = setup_db(tmp_path, [100, 300])
    assert score(history, 150) == NEUTRAL_SCORE


def test_old_history_ignored(tmp_path):
    history = setup_db(tmp_path, [100, 200, 300], recorded_at="2020-01-01 00:00:00")
    assert history.query("IND", "MCO") == []
    assert score(history, 150) == NEUTRAL_SCORE


def test_no_database_is_neutral(tmp_path):
    assert score(None, 150) == NEUTRAL_SCORE
    assert score(PriceHistory(None), 150) == NEUTRAL_SCORE
    missing = PriceHistory(str(tmp_path / "missing.db"))
    assert not missing.available
    assert score(missing, 150).to_dict() == {"score": 50, "badge": None, "badgeText": ""}


def test_scores_keyed_by_route_and_date(tmp_path):
    history = setup_db(tmp_path, [100, 200, 300])
    scores = compute_deal_scores(
        history,
        [
            {"destinationCode": "MCO", "price": 150, "departureDate": "2025-06-06"},
            {"destinationCode": "MIA", "price": 150, "departureDate": "2025-06-06"},
            {"destinationCode": "MCO", "price": "cheap"},
            {"price": 99},
        ],
    )
    assert set(scores) == {"IND-MCO-2025-06-06", "IND-MIA-2025-06-06"}
    assert scores["IND-MCO-2025-06-06"].badge == "hot"
    assert scores["IND-MIA-2025-06-06"] == NEUTRAL_SCORE


def test_route_price_stats():
    stats = route_price_stats([100, "x", None, 300])
    assert stats.count == 2
    assert stats.mean == pytest.approx(200.0)
    assert (stats.min, stats.max) == (100.0, 300.0)
    assert route_price_stats([]) is None


def test_import_prices_csv(tmp_path):
    csv_file = tmp_path / "prices.csv"
    csv_file.write_text(
        "origin_code,destination_code,departure_date,price\n"
        "IND,MCO,2025-06-06,120\n"
        "IND,MCO,2025-06-13,180\n"
        "IND,MCO,2025-06-20,n/a\n",
        encoding="utf-8",
    )
    db_file = tmp_path / "prices.db"

    assert import_prices_csv(str(csv_file), str(db_file)) == 2
    assert sorted(PriceHistory(str(db_file)).query("IND", "MCO")) == [120.0, 180.0]


def test_import_rejects_missing_columns(tmp_path):
    csv_file = tmp_path / "bad.csv"
    csv_file.write_text("origin_code,price\nIND,100\n", encoding="utf-8")

    with pytest.raises(ValueError, match="destination_code"):
        import_prices_csv(str(csv_file), str(tmp_path / "prices.db"))


def test_migrate_is_idempotent(tmp_path):
    db_file = str(tmp_path / "prices.db")
    assert migrate(db_file) == 1
    assert migrate(db_file) == 1

    conn = sqlite3.connect(db_file)
    versions = conn.execute("SELECT version FROM schema_version").fetchall()
    conn.close()
    assert versions == [(1,)]


def test_non_object_flights_are_skipped():
    scores = compute_deal_scores(
        None,
        [1, "MCO", None, ["MCO", 150], {"destinationCode": "MCO", "price": 150}],
    )
    assert list(scores) == ["IND-MCO-"]
    assert scores["IND-MCO-"] == NEUTRAL_SCORE
