"""Tests for configuration settings."""

import pytest
from pydantic import ValidationError

from tgcd.config import Settings, get_settings

_ENV_VARS = (
    "POSTGRES_URL",
    "POSTGRES_URL_FILE",
    "POOL_SIZE",
    "POOL_MIN_SIZE",
    "DB_COMMAND_TIMEOUT",
    "BATCH_CONCURRENCY",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the results.
    monkeypatch.chdir(tmp_path)


def test_defaults(monkeypatch):
    monkeypatch.setenv("POSTGRES_URL", "postgresql://tgcd@localhost/tgcd")

    settings = Settings()

    assert settings.postgres_url == "postgresql://tgcd@localhost/tgcd"
    assert settings.port == 8080
    assert settings.pool_size == 16
    assert settings.pool_min_size == 1
    assert settings.db_command_timeout == 60.0
    assert settings.batch_concurrency == 8
    assert settings.log_format == "json"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("POSTGRES_URL", "postgresql://db/tgcd")
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("POOL_SIZE", "4")
    monkeypatch.setenv("LOG_FORMAT", "console")

    settings = Settings()

    assert settings.port == 9090
    assert settings.pool_size == 4
    assert settings.log_format == "console"


def test_missing_postgres_url_fails():
    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.parametrize(
    ("name", "value"), [("PORT", "0"), ("POOL_SIZE", "0"), ("BATCH_CONCURRENCY", "0"), ("LOG_FORMAT", "xml")]
)
def test_rejects_out_of_range_values(monkeypatch, name, value):
    monkeypatch.setenv("POSTGRES_URL", "postgresql://db/tgcd")
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings()


def test_postgres_url_from_secret_file(monkeypatch, tmp_path):
    secret = tmp_path / "postgres_url"
    secret.write_text("postgresql://secret@db/tgcd\n")
    monkeypatch.setenv("POSTGRES_URL_FILE", str(secret))

    assert Settings().postgres_url == "postgresql://secret@db/tgcd"


def test_explicit_url_wins_over_secret_file(monkeypatch, tmp_path):
    secret = tmp_path / "postgres_url"
    secret.write_text("postgresql://secret@db/tgcd")
    monkeypatch.setenv("POSTGRES_URL_FILE", str(secret))
    monkeypatch.setenv("POSTGRES_URL", "postgresql://env@db/tgcd")

    assert Settings().postgres_url == "postgresql://env@db/tgcd"


def test_pool_min_size_clamped_to_pool_size(monkeypatch):
    monkeypatch.setenv("POSTGRES_URL", "postgresql://db/tgcd")
    monkeypatch.setenv("POOL_SIZE", "2")
    monkeypatch.setenv("POOL_MIN_SIZE", "8")

    assert Settings().pool_min_size == 2


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("POSTGRES_URL", "postgresql://db/tgcd")

    assert get_settings() is get_settings()
