"""
Tests for environment-driven configuration.
"""

from __future__ import annotations

import pytest

from backend_pumpwatch.config.env import get_database_url, mask_rpc_url
from backend_pumpwatch.config.settings import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "PUMPWATCH_DB_URL",
        "DATABASE_URL",
        "PUMPWATCH_DB_PATH",
        "RATE_LIMIT_MAX",
        "PROVIDER_TIMEOUT_SEC",
        "ONCHAIN_LOOKUP_CAP",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_read_tunables_from_env(clean_env):
    clean_env.setenv("RATE_LIMIT_MAX", "7")
    clean_env.setenv("PROVIDER_TIMEOUT_SEC", "2.5")
    clean_env.setenv("ONCHAIN_LOOKUP_CAP", "not-a-number")
    settings = get_settings()
    assert settings.rate_limit_max == 7
    assert settings.provider_timeout_sec == 2.5
    assert settings.onchain_lookup_cap == 30


def test_settings_defaults():
    settings = Settings()
    assert (settings.rate_limit_max, settings.rate_limit_window_sec) == (25, 10.0)
    assert settings.launch_list_cap == 500
    assert settings.scored_feed_cache_ttl_sec == 60.0


def test_database_url_precedence(clean_env, tmp_path):
    clean_env.setenv("PUMPWATCH_DB_PATH", str(tmp_path / "launches.db"))
    assert get_database_url() == f"sqlite:///{tmp_path / 'launches.db'}"
    clean_env.setenv("DATABASE_URL", "postgresql://db/launches")
    assert get_database_url() == "postgresql://db/launches"
    clean_env.setenv("PUMPWATCH_DB_URL", "postgresql://db/pumpwatch")
    assert get_database_url() == "postgresql://db/pumpwatch"


def test_launch_store_uses_configured_database(launch_store, tmp_path):
    assert launch_store._get_engine().url.database == str(tmp_path / "pumpwatch.db")


def test_mask_rpc_url():
    assert mask_rpc_url("https://mainnet.helius-rpc.com/?api-key=abc") == "https://mainnet.helius-rpc.com/?api-key=***"
    assert mask_rpc_url("https://api.mainnet-beta.solana.com") == "https://api.mainnet-beta.solana.com"
