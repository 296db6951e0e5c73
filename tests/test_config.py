"""Unit tests for app_config.load_config and load_database_config."""
from unittest.mock import patch

import pytest

from app_config import load_config, load_database_config


REQUIRED = {
    "EMAIL_BASE_URL": "https://mail.test/api/subscribers",
    "EMAIL_API_KEY": "secret",
    "DATABASE_URL": "postgresql+asyncpg://notifier:pw@localhost:5432/notifier",
}
OPTIONAL = ("EMAIL_TIMEOUT", "DATABASE_NAME", "NOTIFIER_INTERVAL", "NOTIFIER_LEASE_TTL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (*REQUIRED, *OPTIONAL):
        monkeypatch.delenv(name, raising=False)
    with patch("app_config.load_dotenv"):
        yield monkeypatch


def test_loads_required_settings_with_defaults(clean_env):
    for name, value in REQUIRED.items():
        clean_env.setenv(name, value)

    conf = load_config()

    assert conf.email.base_url == REQUIRED["EMAIL_BASE_URL"]
    assert conf.email.api_key == "secret"
    assert conf.email.timeout == 10
    assert conf.database.connection_string == REQUIRED["DATABASE_URL"]
    assert conf.database.name is None
    assert conf.scheduler.interval == 60
    assert conf.scheduler.lease_ttl == 900


def test_optional_settings_override_defaults(clean_env):
    for name, value in REQUIRED.items():
        clean_env.setenv(name, value)
    clean_env.setenv("EMAIL_TIMEOUT", "2.5")
    clean_env.setenv("DATABASE_NAME", "starknet_id")
    clean_env.setenv("NOTIFIER_INTERVAL", "30")
    clean_env.setenv("NOTIFIER_LEASE_TTL", "120")

    conf = load_config()

    assert conf.email.timeout == 2.5
    assert conf.database.name == "starknet_id"
    assert conf.scheduler.interval == 30
    assert conf.scheduler.lease_ttl == 120


@pytest.mark.parametrize("missing", sorted(REQUIRED))
def test_missing_required_setting_raises(clean_env, missing):
    for name, value in REQUIRED.items():
        if name != missing:
            clean_env.setenv(name, value)

    with pytest.raises(RuntimeError, match=missing):
        load_config()


def test_sync_driver_is_rejected(clean_env):
    for name, value in REQUIRED.items():
        clean_env.setenv(name, value)
    clean_env.setenv("DATABASE_URL", "postgresql://notifier:pw@localhost:5432/notifier")

    with pytest.raises(RuntimeError, match="async drivers"):
        load_config()


def test_database_config_needs_only_database_settings(clean_env):
    clean_env.setenv("DATABASE_URL", REQUIRED["DATABASE_URL"])
    clean_env.setenv("DATABASE_NAME", "starknet_id")

    database = load_database_config()

    assert database.connection_string == REQUIRED["DATABASE_URL"]
    assert database.name == "starknet_id"


def test_database_config_rejects_sync_driver(clean_env):
    clean_env.setenv("DATABASE_URL", "postgresql://notifier:pw@localhost:5432/notifier")

    with pytest.raises(RuntimeError, match="async drivers"):
        load_database_config()
