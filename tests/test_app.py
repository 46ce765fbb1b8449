"""
Tests for the application entry point.
"""

import logging

import pytest

import app
from app import build_service_config, create_parser, main, run
from storage.repositories.exceptions import QueryError


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without townwatch overrides."""
    for name in (
        "TOWNWATCH_FEED_URL",
        "TOWNWATCH_MARKERSET",
        "TOWNWATCH_POLL_INTERVAL",
        "TOWNWATCH_HTTP_TIMEOUT",
        "TOWNWATCH_REFERENCE_TOWN",
        "TOWNWATCH_ISOLATE_FAILURES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("data_ingestion.types.load_dotenv", lambda: False)


class TestParser:
    """Tests for create_parser()."""

    def test_defaults(self):
        args = create_parser().parse_args([])

        assert args.single_cycle is False
        assert args.interval is None
        assert args.town is None
        assert args.log_level == "INFO"
        assert args.log_format == "text"

    def test_options(self):
        args = create_parser().parse_args([
            "--single-cycle",
            "--interval", "5",
            "--log-format", "json",
            "--database-url", "sqlite:///:memory:",
        ])

        assert args.single_cycle is True
        assert args.interval == 5.0
        assert args.log_format == "json"
        assert args.database_url == "sqlite:///:memory:"

    def test_rejects_unknown_log_format(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--log-format", "xml"])


class TestServiceConfig:
    """Tests for build_service_config()."""

    def test_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("TOWNWATCH_POLL_INTERVAL", "90")
        monkeypatch.setenv("TOWNWATCH_REFERENCE_TOWN", "")
        monkeypatch.setenv("TOWNWATCH_ISOLATE_FAILURES", "false")

        config = build_service_config()

        assert config.polling_interval_seconds == 90
        assert config.feed_config.reference_town is None
        assert config.feed_config.isolate_entity_failures is False

    def test_interval_override(self, clean_env):
        config = build_service_config(interval=15)

        assert config.polling_interval_seconds == 15
        assert config.feed_config.polling_interval_seconds == 15
        assert config.feed_config.markerset == "towny.markerset"

    def test_rejects_non_positive_interval(self, clean_env):
        with pytest.raises(ValueError):
            build_service_config(interval=0)


class TestTownLookup:
    """Tests for the --town command."""

    @pytest.mark.asyncio
    async def test_unknown_town(self, clean_env, capsys):
        args = create_parser().parse_args([
            "--town", "Rome",
            "--database-url", "sqlite:///:memory:",
        ])

        exit_code = await run(args, logging.getLogger("test"))

        assert exit_code == 1
        assert "Town Rome not found." in capsys.readouterr().out

    def test_store_error_exits_cleanly(self, clean_env, monkeypatch):
        """A failing lookup query is reported, not raised."""

        class UnreadableRepository:
            def __init__(self, session_factory):
                pass

            def get_latest(self, name_lower):
                raise QueryError(
                    repository_name="TownRepository",
                    operation="get_latest",
                    query_description="latest snapshot",
                    original_error="no such table: town_snapshots",
                )

        monkeypatch.setattr(app, "SqlTownRepository", UnreadableRepository)
        monkeypatch.setattr(app, "setup_logging", lambda **kwargs: logging.getLogger("test"))

        exit_code = main(["--town", "Rome", "--database-url", "sqlite:///:memory:"])

        assert exit_code == 2
