"""
Tests for runtime settings and CLI overrides.
"""

import os

import pytest

from core.config import ConfigurationError, Settings, load_settings
from data_sources.models import Source
from orchestrator.cli import build_settings, create_parser, validate_args


ENV_VARS = [
    "FETCH_BITSTAMP", "FETCH_GDAX", "FETCH_BRTI",
    "BITSTAMP_POLL_INTERVAL", "GDAX_POLL_INTERVAL", "BRTI_POLL_INTERVAL",
    "GDAX_BACKFILL_WINDOW", "BRTI_FETCHES_PER_TICK", "HTTP_TIMEOUT_SECONDS",
    "DATABASE_URL", "API_HOST", "API_PORT", "LOG_LEVEL", "LOG_FORMAT",
]


@pytest.fixture
def clean_env(monkeypatch):
    # load_dotenv writes to os.environ directly; give it a throwaway copy
    environ = {k: v for k, v in os.environ.items() if k not in ENV_VARS}
    monkeypatch.setattr(os, "environ", environ)
    return monkeypatch


def no_dotenv(tmp_path):
    return str(tmp_path / "missing.env")


class TestFromEnv:

    def test_defaults(self, clean_env, tmp_path):
        settings = Settings.from_env(no_dotenv(tmp_path))

        assert settings.enabled_sources() == [Source.BITSTAMP, Source.GDAX]
        assert settings.brti_interval_seconds == 0.5
        assert settings.brti_fetches_per_tick == 3
        assert settings.gdax_backfill_window_seconds == 120
        assert settings.database_url == "sqlite:///brti.db"
        assert settings.api_port == 8080
        assert settings.validate() == []

    def test_overrides(self, clean_env, tmp_path):
        clean_env.setenv("FETCH_BRTI", "true")
        clean_env.setenv("FETCH_BITSTAMP", "0")
        clean_env.setenv("BRTI_POLL_INTERVAL", "0.25")
        clean_env.setenv("DATABASE_URL", "sqlite:///other.db")
        clean_env.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env(no_dotenv(tmp_path))

        assert settings.enabled_sources() == [Source.GDAX, Source.BRTI]
        assert settings.brti_interval_seconds == 0.25
        assert settings.database_url == "sqlite:///other.db"
        assert settings.log_level == "DEBUG"

    def test_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / "pipeline.env"
        env_file.write_text("FETCH_GDAX=false\nAPI_PORT=9000\n")

        settings = Settings.from_env(str(env_file))

        assert settings.fetch_gdax is False
        assert settings.api_port == 9000

    @pytest.mark.parametrize("name,value", [
        ("FETCH_GDAX", "maybe"),
        ("API_PORT", "eighty"),
        ("BRTI_POLL_INTERVAL", "fast"),
    ])
    def test_unparseable(self, clean_env, tmp_path, name, value):
        clean_env.setenv(name, value)

        with pytest.raises(ConfigurationError):
            Settings.from_env(no_dotenv(tmp_path))


class TestValidate:

    def test_collects_errors(self):
        settings = Settings(
            brti_interval_seconds=0,
            brti_fetches_per_tick=0,
            api_port=70000,
            log_format="xml",
        )

        errors = settings.validate()

        assert len(errors) == 4

    def test_load_settings_raises(self, clean_env, tmp_path):
        clean_env.setenv("HTTP_TIMEOUT_SECONDS", "-1")

        with pytest.raises(ConfigurationError):
            load_settings(no_dotenv(tmp_path))


class TestCli:

    def test_flags_override_environment(self):
        args = create_parser().parse_args(["--port", "9001", "--log-format", "json"])

        settings = build_settings(args, Settings(api_host="127.0.0.1"))

        assert settings.api_port == 9001
        assert settings.log_format == "json"
        assert settings.api_host == "127.0.0.1"

    def test_unset_flags_keep_environment(self):
        args = create_parser().parse_args([])

        assert build_settings(args, Settings(api_port=9100)).api_port == 9100

    def test_nothing_to_run(self):
        args = create_parser().parse_args(["--no-api", "--no-ingest"])

        assert validate_args(args)

    def test_init_only_is_allowed(self):
        args = create_parser().parse_args(["--no-api", "--no-ingest", "--init-db-only"])

        assert validate_args(args) == []
