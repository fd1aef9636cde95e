"""Tests for environment configuration."""

import pytest

from amplitude_bq.config import DEFAULT_DAYS, DEFAULT_EXPORT_URL, Config
from amplitude_bq.errors import ConfigError

REQUIRED_ENV = {
    "BIGQUERY_PROJECT": "test-project",
    "BIGQUERY_DATASET": "analytics",
    "BIGQUERY_TABLE": "events",
    "AMPLITUDE_API_KEY": "key",
    "AMPLITUDE_SECRET_KEY": "secret",
}

OPTIONAL_ENV = [
    "DAYS",
    "AMPLITUDE_EXPORT_URL",
    "EXPORT_TIMEOUT_SECONDS",
    "PIPE_MAX_CHUNKS",
    "BQ_LOCATION",
]


@pytest.fixture
def env(monkeypatch):
    for name in OPTIONAL_ENV:
        monkeypatch.delenv(name, raising=False)
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


def test_defaults(env):
    config = Config().require()

    assert config.days == DEFAULT_DAYS
    assert config.export_url == DEFAULT_EXPORT_URL
    assert config.export_timeout is None
    assert config.bq_location == "US"
    assert config.table_fqn == "test-project.analytics.events"


def test_days_override(env):
    env.setenv("DAYS", "7")

    assert Config().days == 7


def test_non_integer_days_is_a_config_error(env):
    env.setenv("DAYS", "a week")

    with pytest.raises(ConfigError) as exc_info:
        Config()

    assert "DAYS" in str(exc_info.value)


def test_negative_days_is_rejected(env):
    env.setenv("DAYS", "-1")

    with pytest.raises(ConfigError):
        Config().require()


def test_timeout_is_parsed(env):
    env.setenv("EXPORT_TIMEOUT_SECONDS", "300")

    assert Config().export_timeout == 300.0


@pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
def test_missing_required_setting(env, missing):
    env.delenv(missing)

    with pytest.raises(ConfigError) as exc_info:
        Config().require()

    assert f"{missing} not set" in str(exc_info.value)
    assert exc_info.value.stage == "config"


def test_all_missing_settings_are_listed(env):
    for name in REQUIRED_ENV:
        env.delenv(name)

    errors = Config().validate()

    assert errors == [f"{name} not set" for name in REQUIRED_ENV]


def test_warehouse_settings_optional_for_local_dumps(env):
    env.delenv("BIGQUERY_PROJECT")
    env.delenv("BIGQUERY_TABLE")

    assert Config().validate(require_warehouse=False) == []
