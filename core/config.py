"""
Core Module - Runtime Configuration.

============================================================
RESPONSIBILITY
============================================================
Loads process settings from the environment (and a .env file,
when present) into one immutable object.

- Which sources are polled
- How often each source is polled
- Where rows are stored
- Where the query API listens

============================================================
ENVIRONMENT
============================================================
FETCH_BITSTAMP / FETCH_GDAX / FETCH_BRTI      true|false
BITSTAMP_POLL_INTERVAL / GDAX_POLL_INTERVAL   seconds
BRTI_POLL_INTERVAL                            seconds (fractional)
GDAX_BACKFILL_WINDOW                          seconds of candles per tick
BRTI_FETCHES_PER_TICK                         concurrent fetches per tick
HTTP_TIMEOUT_SECONDS                          per-request timeout
DATABASE_URL                                  SQLAlchemy URL
API_HOST / API_PORT                           query API bind address
LOG_LEVEL / LOG_FORMAT                        logging

============================================================
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from dotenv import load_dotenv

from data_sources.models import Source


class ConfigurationError(Exception):
    """Raised when settings cannot be parsed or are out of range."""
    pass


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Process settings."""

    fetch_bitstamp: bool = True
    """Poll the Bitstamp hourly ticker."""

    fetch_gdax: bool = True
    """Poll the GDAX ticker and candle history."""

    fetch_brti: bool = False
    """Poll the CME BRTI index."""

    bitstamp_interval_seconds: float = 10.0
    gdax_interval_seconds: float = 10.0
    brti_interval_seconds: float = 0.5

    gdax_backfill_window_seconds: int = 120
    """Width of the candle window fetched on every GDAX tick."""

    brti_fetches_per_tick: int = 3
    """Concurrent BRTI fetches launched on every tick."""

    http_timeout_seconds: float = 5.0

    database_url: str = "sqlite:///brti.db"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            fetch_bitstamp=_env_bool("FETCH_BITSTAMP", defaults.fetch_bitstamp),
            fetch_gdax=_env_bool("FETCH_GDAX", defaults.fetch_gdax),
            fetch_brti=_env_bool("FETCH_BRTI", defaults.fetch_brti),
            bitstamp_interval_seconds=_env_float("BITSTAMP_POLL_INTERVAL", defaults.bitstamp_interval_seconds),
            gdax_interval_seconds=_env_float("GDAX_POLL_INTERVAL", defaults.gdax_interval_seconds),
            brti_interval_seconds=_env_float("BRTI_POLL_INTERVAL", defaults.brti_interval_seconds),
            gdax_backfill_window_seconds=_env_int("GDAX_BACKFILL_WINDOW", defaults.gdax_backfill_window_seconds),
            brti_fetches_per_tick=_env_int("BRTI_FETCHES_PER_TICK", defaults.brti_fetches_per_tick),
            http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds),
            database_url=os.getenv("DATABASE_URL") or defaults.database_url,
            api_host=os.getenv("API_HOST") or defaults.api_host,
            api_port=_env_int("API_PORT", defaults.api_port),
            log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
            log_format=(os.getenv("LOG_FORMAT") or defaults.log_format).lower(),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        for name, interval in self.intervals().items():
            if interval <= 0:
                errors.append(f"{name} poll interval must be positive")

        if self.gdax_backfill_window_seconds < 1:
            errors.append("gdax_backfill_window_seconds must be at least 1")

        if self.brti_fetches_per_tick < 1:
            errors.append("brti_fetches_per_tick must be at least 1")

        if self.http_timeout_seconds <= 0:
            errors.append("http_timeout_seconds must be positive")

        if not 0 < self.api_port < 65536:
            errors.append("api_port must be between 1 and 65535")

        if self.log_format not in ("json", "text"):
            errors.append("log_format must be 'json' or 'text'")

        return errors

    def enabled_sources(self) -> List[Source]:
        """Sources to poll, in a stable order."""
        flags = [
            (Source.BITSTAMP, self.fetch_bitstamp),
            (Source.GDAX, self.fetch_gdax),
            (Source.BRTI, self.fetch_brti),
        ]
        return [source for source, enabled in flags if enabled]

    def intervals(self) -> Dict[str, float]:
        """Poll interval per source name."""
        return {
            Source.BITSTAMP.value: self.bitstamp_interval_seconds,
            Source.GDAX.value: self.gdax_interval_seconds,
            Source.BRTI.value: self.brti_interval_seconds,
        }


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """
    Load and validate settings.

    Raises:
        ConfigurationError: If any value is unparseable or out of range
    """
    settings = Settings.from_env(dotenv_path)
    errors = settings.validate()
    if errors:
        raise ConfigurationError("; ".join(errors))
    return settings
