import pytest
from pydantic import ValidationError

from farescout.config import ConfigurationError, Settings, get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("RAPIDAPI_KEY", "abc")
    monkeypatch.setenv("SEARCH_BATCH_SIZE", "4")
    monkeypatch.setenv("SEARCH_BATCH_DELAY_MS", "250")
    monkeypatch.setenv("PRICE_HISTORY_DB", "/tmp/prices.db")

    cfg = get_settings()
    assert isinstance(cfg, Settings)
    assert cfg.rapidapi_key == "abc"
    assert cfg.require_api_key() == "abc"
    assert cfg.batch_size == 4
    assert cfg.batch_delay_s == pytest.approx(0.25)
    assert cfg.price_history_db == "/tmp/prices.db"
    assert get_settings() is cfg


def test_defaults(monkeypatch):
    for name in ("SEARCH_BATCH_SIZE", "SEARCH_BATCH_DELAY_MS", "LOOKAHEAD_DAYS", "MIX_MATCH_LOOKAHEAD_DAYS"):
        monkeypatch.delenv(name, raising=False)

    cfg = Settings()
    assert cfg.batch_size == 10
    assert cfg.batch_delay_ms == 50
    assert cfg.lookahead_days == 60
    assert cfg.mix_match_lookahead_days == 30
    assert cfg.google_flights_host == "google-flights2.p.rapidapi.com"


def test_blank_key_is_missing(monkeypatch):
    monkeypatch.setenv("RAPIDAPI_KEY", "   ")

    cfg = get_settings()
    assert cfg.rapidapi_key is None
    with pytest.raises(ConfigurationError, match="RAPIDAPI_KEY"):
        cfg.require_api_key()


def test_invalid_batch_size(monkeypatch):
    monkeypatch.setenv("SEARCH_BATCH_SIZE", "0")
    with pytest.raises(ValidationError):
        Settings()
