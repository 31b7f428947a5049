"""Tests for logging setup and slow query logging."""

import json
import logging

from sqlalchemy import text

from ormkit.core.config import Settings
from ormkit.core.logging import JSONFormatter, configure_logging
from ormkit.db.session import _install_slow_query_logging


class TestJSONFormatter:

    def test_renders_one_json_object(self):
        record = logging.LogRecord("ormkit.db.repo", logging.INFO, __file__, 42, "fetched %s", ("Widget",), None)
        line = JSONFormatter().format(record)

        assert "\n" not in line
        payload = json.loads(line)
        assert payload["level"] == "INFO"
        assert payload["logger"] == "ormkit.db.repo"
        assert payload["msg"] == "fetched Widget"
        assert payload["module"] == "test_logging"
        assert payload["line"] == 42
        assert "ts" in payload


class TestConfigureLogging:

    def test_json_output_outside_debug(self, restore_root_logger):
        root_logger = configure_logging(Settings(_env_file=None, debug=False, log_level="WARNING"))

        assert root_logger is logging.getLogger()
        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)

    def test_readable_output_in_debug(self, restore_root_logger):
        root_logger = configure_logging(Settings(_env_file=None, debug=True, log_level="DEBUG"))

        assert root_logger.level == logging.DEBUG
        assert not isinstance(root_logger.handlers[0].formatter, JSONFormatter)

    def test_replaces_existing_handlers(self, restore_root_logger):
        settings = Settings(_env_file=None)
        configure_logging(settings)
        configure_logging(settings)
        assert len(logging.getLogger().handlers) == 1


class TestSlowQueryLogging:

    def test_logs_statements_over_the_threshold(self, db_engine, caplog):
        _install_slow_query_logging(db_engine, 0.0)
        with caplog.at_level(logging.WARNING, logger="ormkit.db.session"):
            with db_engine.connect() as connection:
                connection.execute(text("SELECT 1"))

        assert any("Slow query" in message and "SELECT 1" in message for message in caplog.messages)

    def test_fast_statements_are_not_logged(self, db_engine, caplog):
        _install_slow_query_logging(db_engine, 60.0)
        with caplog.at_level(logging.WARNING, logger="ormkit.db.session"):
            with db_engine.connect() as connection:
                connection.execute(text("SELECT 1"))

        assert not [message for message in caplog.messages if "Slow query" in message]
