"""
Tests for lawdesk structured logging.
"""
import json
import logging

import pytest


@pytest.fixture
def restore_lawdesk_logger():
    """Put the lawdesk logger back the way it was after the test."""
    logger = logging.getLogger("lawdesk")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


def _record(message="Test message", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="lawdesk.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    """Tests for LogContext dataclass."""

    def test_default_values(self):
        """LogContext has empty defaults."""
        from lawdesk.infrastructure.logging import LogContext
        ctx = LogContext()
        assert ctx.component is None
        assert ctx.operation is None
        assert ctx.extra == {}

    def test_with_operation_returns_new_context(self):
        """with_operation leaves the original unchanged."""
        from lawdesk.infrastructure.logging import LogContext
        ctx = LogContext(component="relationships")
        new_ctx = ctx.with_operation("add_payment")
        assert new_ctx.operation == "add_payment"
        assert new_ctx.component == "relationships"
        assert ctx.operation is None

    def test_with_extra_returns_new_context(self):
        """with_extra merges into a copy."""
        from lawdesk.infrastructure.logging import LogContext
        ctx = LogContext(extra={"columns": 3})
        new_ctx = ctx.with_extra(rows=10)
        assert new_ctx.extra == {"columns": 3, "rows": 10}
        assert ctx.extra == {"columns": 3}


class TestLogEntry:
    """Tests for LogEntry."""

    def test_to_json_excludes_none_values(self):
        """None fields and empty extra are left out."""
        from lawdesk.infrastructure.logging import LogEntry
        data = json.loads(LogEntry(timestamp="t", level="INFO", message="m").to_json())
        assert data == {"timestamp": "t", "level": "INFO", "message": "m"}

    def test_to_json_serializes_decimals(self):
        """Values json cannot encode are written as text."""
        from decimal import Decimal
        from lawdesk.infrastructure.logging import LogEntry
        entry = LogEntry(timestamp="t", level="DEBUG", message="m", extra={"total": Decimal("1.50")})
        assert json.loads(entry.to_json())["extra"] == {"total": "1.50"}

    def test_to_human(self):
        """Human output shows level, component, message and duration."""
        from lawdesk.infrastructure.logging import LogEntry
        entry = LogEntry(
            timestamp="12:00:00",
            level="DEBUG",
            message="Completed rebuild_view:load",
            component="table_view",
            duration_ms=1.5,
        )
        assert entry.to_human() == (
            "[12:00:00] [DEBUG] [table_view] Completed rebuild_view:load (1.50ms)"
        )


class TestFormatters:
    """Tests for the logging formatters."""

    def test_json_formatter_reads_extra(self):
        """JSONFormatter picks up the structured extra fields."""
        from lawdesk.infrastructure.logging import JSONFormatter
        record = _record(component="loader", operation="load_graph", context={"entities": 4})
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "Test message"
        assert data["component"] == "loader"
        assert data["operation"] == "load_graph"
        assert data["extra"] == {"entities": 4}

    def test_json_formatter_includes_error(self):
        """Exceptions are reported with their type."""
        from lawdesk.infrastructure.logging import JSONFormatter
        try:
            raise ValueError("bad amount")
        except ValueError:
            import sys
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert data["error"] == "bad amount"
        assert data["error_type"] == "ValueError"

    def test_human_formatter(self):
        """HumanFormatter writes a single readable line."""
        from lawdesk.infrastructure.logging import HumanFormatter
        line = HumanFormatter().format(_record(component="relationships"))
        assert "[INFO]" in line
        assert "[relationships]" in line
        assert line.endswith("Test message")


class TestLogExtra:
    """Tests for log_extra()."""

    def test_builds_extra_mapping(self):
        """log_extra flattens a context for logger calls."""
        from lawdesk.infrastructure.logging import LogContext, log_extra
        extra = log_extra(LogContext(component="c", operation="o", extra={"k": 1}), 2.0)
        assert extra == {"component": "c", "operation": "o", "duration_ms": 2.0, "context": {"k": 1}}


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_console_handler(self, restore_lawdesk_logger):
        """A single console handler is attached at the configured level."""
        from lawdesk.infrastructure.config import LawdeskConfig
        from lawdesk.infrastructure.logging import HumanFormatter, configure_logging
        logger = configure_logging(LawdeskConfig(log_level="DEBUG"))
        assert logger.name == "lawdesk"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, HumanFormatter)

    def test_json_console(self, restore_lawdesk_logger):
        """log_json switches the console to JSON."""
        from lawdesk.infrastructure.config import LawdeskConfig
        from lawdesk.infrastructure.logging import JSONFormatter, configure_logging
        logger = configure_logging(LawdeskConfig(log_json=True))
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_file_handler(self, restore_lawdesk_logger, tmp_path):
        """A log directory adds a JSON file handler."""
        from lawdesk.infrastructure.config import LawdeskConfig
        from lawdesk.infrastructure.logging import configure_logging
        log_dir = tmp_path / "logs"
        logger = configure_logging(LawdeskConfig(log_dir=str(log_dir)))
        logger.warning("written to file")
        for handler in logger.handlers:
            handler.flush()
        line = (log_dir / "lawdesk.log").read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "written to file"

    def test_reconfigure_replaces_handlers(self, restore_lawdesk_logger):
        """Calling configure_logging twice does not stack handlers."""
        from lawdesk.infrastructure.config import LawdeskConfig
        from lawdesk.infrastructure.logging import configure_logging
        configure_logging(LawdeskConfig())
        logger = configure_logging(LawdeskConfig())
        assert len(logger.handlers) == 1


class TestTimedOperation:
    """Tests for timed_operation()."""

    def test_logs_duration_at_debug(self, caplog):
        """A completed block is logged at DEBUG with its duration."""
        from lawdesk.infrastructure.logging import LogContext, timed_operation
        logger = logging.getLogger("lawdesk.test.timed")
        with caplog.at_level(logging.DEBUG, logger="lawdesk.test.timed"):
            with timed_operation(logger, "rebuild_view", LogContext(component="table_view")) as timer:
                pass
        assert timer.duration_ms is not None and timer.duration_ms >= 0
        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert record.operation == "rebuild_view"
        assert record.component == "table_view"

    def test_logs_failure_and_reraises(self, caplog):
        """A failing block is logged at ERROR and the exception propagates."""
        from lawdesk.infrastructure.logging import timed_operation
        logger = logging.getLogger("lawdesk.test.timed")
        with caplog.at_level(logging.DEBUG, logger="lawdesk.test.timed"):
            with pytest.raises(RuntimeError):
                with timed_operation(logger, "load_graph"):
                    raise RuntimeError("boom")
        assert caplog.records[-1].levelno == logging.ERROR
        assert caplog.records[-1].operation == "load_graph"

    def test_view_rebuild_is_timed(self, caplog):
        """TableView rebuilds are timed at DEBUG."""
        from lawdesk.presentation.table_view import TableView
        with caplog.at_level(logging.DEBUG, logger="lawdesk.presentation.table_view"):
            TableView(["Name"]).load([("A",)])
        assert any(
            getattr(record, "operation", None) == "rebuild_view:load" for record in caplog.records
        )
