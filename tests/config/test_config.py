from __future__ import annotations

import logging
from collections.abc import Iterator  # noqa: TC003
from pathlib import Path

import pytest

from tracklink.config import (
    ConfigurationError,
    RateLimit,
    configure_logging,
    get_database_config,
    get_resolution_config,
    get_songlink_config,
    get_storage_config,
    optional_env_float,
    optional_env_int,
    optional_env_var,
)
from tracklink.config.songlink import DEFAULT_SONGLINK_BASE_URL

_SONGLINK_VARS = (
    "SONGLINK_BASE_URL",
    "SONGLINK_API_KEY",
    "SONGLINK_USER_COUNTRY",
    "SONGLINK_RATE_LIMIT",
    "SONGLINK_HTTP_CACHE",
    "SONGLINK_TIMEOUT_SECONDS",
)
_RESOLUTION_VARS = (
    "RESOLUTION_BATCH_SIZE",
    "RESOLUTION_CHUNK_SIZE",
    "RESOLUTION_TRACK_DELAY_SECONDS",
    "RESOLUTION_HISTORY_LIMIT",
    "RESOLUTION_WATCH_INTERVAL_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (*_SONGLINK_VARS, *_RESOLUTION_VARS):
        monkeypatch.delenv(name, raising=False)


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    assert optional_env_var("EXAMPLE_VAR") is None


def test_optional_env_int_parses_and_validates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", " 12 ")
    assert optional_env_int("EXAMPLE_INT", 3) == 12

    monkeypatch.setenv("EXAMPLE_INT", "twelve")
    with pytest.raises(ConfigurationError, match="EXAMPLE_INT"):
        optional_env_int("EXAMPLE_INT", 3)

    monkeypatch.setenv("EXAMPLE_INT", "0")
    with pytest.raises(ConfigurationError, match=">= 1"):
        optional_env_int("EXAMPLE_INT", 3, minimum=1)


def test_optional_env_float_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_FLOAT", raising=False)

    assert optional_env_float("EXAMPLE_FLOAT", 2.5) == 2.5


def test_resolution_config_defaults() -> None:
    config = get_resolution_config()

    assert config.batch_size == 1000
    assert config.chunk_size == 5
    assert config.track_delay_seconds == 2.0
    assert config.history_limit == 50
    assert config.watch_interval_seconds == 30.0


def test_resolution_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOLUTION_BATCH_SIZE", "200")
    monkeypatch.setenv("RESOLUTION_CHUNK_SIZE", "10")
    monkeypatch.setenv("RESOLUTION_TRACK_DELAY_SECONDS", "0.5")
    monkeypatch.setenv("RESOLUTION_HISTORY_LIMIT", "5")
    monkeypatch.setenv("RESOLUTION_WATCH_INTERVAL_SECONDS", "120")

    config = get_resolution_config()

    assert (config.batch_size, config.chunk_size) == (200, 10)
    assert config.track_delay_seconds == 0.5
    assert config.history_limit == 5
    assert config.watch_interval_seconds == 120.0


def test_resolution_config_rejects_zero_chunk(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOLUTION_CHUNK_SIZE", "0")

    with pytest.raises(ConfigurationError):
        get_resolution_config()


def test_songlink_config_defaults() -> None:
    config = get_songlink_config()

    assert config.resilience.base_url == DEFAULT_SONGLINK_BASE_URL
    assert config.resilience.ratelimit is None
    assert config.resilience.cache is None
    assert config.resilience.retry.total == 2
    assert config.resilience.retry.status_forcelist == frozenset({429, 503})
    assert config.api_key is None
    assert config.song_if_single is True
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["Accept"] == "application/json"


def test_songlink_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SONGLINK_API_KEY", "secret")
    monkeypatch.setenv("SONGLINK_USER_COUNTRY", "GB")
    monkeypatch.setenv("SONGLINK_RATE_LIMIT", "10/60")
    monkeypatch.setenv("SONGLINK_HTTP_CACHE", "memory")

    def predicate(payload: object) -> bool:
        return bool(payload)

    config = get_songlink_config(cache_predicate=predicate)

    assert config.api_key == "secret"
    assert config.user_country == "GB"
    assert config.resilience.ratelimit == RateLimit(max_calls=10, per_seconds=60.0)
    assert config.resilience.cache is not None
    assert config.resilience.cache.backend == "memory"
    assert config.resilience.cache.should_cache is predicate


def test_songlink_config_rejects_unknown_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SONGLINK_HTTP_CACHE", "redis")

    with pytest.raises(ConfigurationError, match="SONGLINK_HTTP_CACHE"):
        get_songlink_config()


@pytest.mark.parametrize("value", ["10", "ten/60", "0/60", "5/-1"])
def test_rate_limit_parse_rejects_malformed(value: str) -> None:
    with pytest.raises(ConfigurationError):
        RateLimit.parse(value)


def test_storage_uses_data_dir_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TRACKLINK_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DATABASE_URI", raising=False)

    storage = get_storage_config()

    assert storage.resolve_data_dir() == tmp_path.resolve()
    assert get_database_config().uri == f"sqlite+pysqlite:///{tmp_path.resolve() / 'tracklink.db'}"


def test_database_uri_env_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://localhost/tracklink")

    assert get_database_config().uri == "postgresql+psycopg://localhost/tracklink"


def test_http_cache_path_lives_in_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("TRACKLINK_DATA_DIR", str(tmp_path / "nested"))

    path = get_storage_config().http_cache_path()

    assert path == (tmp_path / "nested").resolve() / "http_cache.db"
    assert Path(path).parent.is_dir()


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    httpx_logger = logging.getLogger("httpx")
    handlers, level, httpx_level = root.handlers[:], root.level, httpx_logger.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    httpx_logger.setLevel(httpx_level)


@pytest.mark.usefixtures("restore_root_logging")
def test_logging_level_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACKLINK_LOG_LEVEL", "debug")

    assert configure_logging(force=True) == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert configure_logging(level=logging.ERROR, force=True) == logging.ERROR
    assert logging.getLogger("httpx").level == logging.ERROR


@pytest.mark.usefixtures("restore_root_logging")
def test_logging_rejects_unknown_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRACKLINK_LOG_LEVEL", "chatty")

    with pytest.raises(ConfigurationError, match="TRACKLINK_LOG_LEVEL"):
        configure_logging(force=True)
