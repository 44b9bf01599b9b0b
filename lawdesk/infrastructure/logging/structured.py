"""
Structured logging for the lawdesk core.

Provides consistent, structured logging with:
- JSON output for log files
- Human-readable console output for development
- Context tracking (component, operation, entity keys)
- Timing of view rebuilds and bulk loads
"""
import logging
import json
import sys
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from lawdesk.infrastructure.config import LawdeskConfig


ROOT_LOGGER_NAME = "lawdesk"


@dataclass
class LogContext:
    """Context for structured logging."""
    component: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> 'LogContext':
        """Return new context with operation set."""
        return LogContext(
            component=self.component,
            operation=operation,
            extra=self.extra.copy(),
        )

    def with_extra(self, **kwargs) -> 'LogContext':
        """Return new context with additional data."""
        new_extra = self.extra.copy()
        new_extra.update(kwargs)
        return LogContext(
            component=self.component,
            operation=self.operation,
            extra=new_extra,
        )


@dataclass
class LogEntry:
    """Structured log entry."""
    timestamp: str
    level: str
    message: str
    component: Optional[str] = None
    operation: Optional[str] = None
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Convert to JSON string."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not data.get('extra'):
            data.pop('extra', None)
        return json.dumps(data, default=str)

    def to_human(self) -> str:
        """Convert to human-readable string."""
        parts = [
            f"[{self.timestamp}]",
            f"[{self.level}]",
        ]

        if self.component:
            parts.append(f"[{self.component}]")

        parts.append(self.message)

        if self.duration_ms is not None:
            parts.append(f"({self.duration_ms:.2f}ms)")

        if self.error:
            parts.append(f"ERROR: {self.error}")

        return " ".join(parts)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _entry_from_record(record: logging.LogRecord, timestamp: str) -> LogEntry:
    return LogEntry(
        timestamp=timestamp,
        level=record.levelname,
        message=record.getMessage(),
        component=getattr(record, 'component', None),
        operation=getattr(record, 'operation', None),
        duration_ms=getattr(record, 'duration_ms', None),
        error=str(record.exc_info[1]) if record.exc_info else None,
        error_type=record.exc_info[0].__name__ if record.exc_info and record.exc_info[0] else None,
        extra=getattr(record, 'context', {}) or {},
    )


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log files."""

    def format(self, record: logging.LogRecord) -> str:
        return _entry_from_record(record, _utcnow().isoformat()).to_json()


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for the console."""

    def format(self, record: logging.LogRecord) -> str:
        return _entry_from_record(record, _utcnow().strftime("%H:%M:%S")).to_human()


def log_extra(context: LogContext, duration_ms: Optional[float] = None) -> Dict[str, Any]:
    """Build the `extra=` mapping understood by the formatters."""
    return {
        'component': context.component,
        'operation': context.operation,
        'duration_ms': duration_ms,
        'context': dict(context.extra),
    }


def configure_logging(config: Optional[LawdeskConfig] = None) -> logging.Logger:
    """
    Attach handlers to the `lawdesk` logger.

    Console output is human-readable unless config.log_json is set; when a
    log directory is configured a JSON file handler is added as well.
    Calling it again replaces the handlers.
    """
    config = config or LawdeskConfig.from_env()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = getattr(logging, config.log_level, logging.INFO)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter() if config.log_json else HumanFormatter())
    logger.addHandler(console_handler)

    log_file = config.log_file
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    return logger


class TimedOperation:
    """Context manager for timing operations."""

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        context: Optional[LogContext] = None,
    ):
        self._logger = logger
        self._operation = operation
        self._context = context.with_operation(operation) if context else LogContext(operation=operation)
        self._start_time: Optional[datetime] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self._start_time = _utcnow()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (_utcnow() - self._start_time).total_seconds() * 1000

        if exc_type:
            self._logger.error(
                f"Failed {self._operation}",
                exc_info=(exc_type, exc_val, exc_tb),
                extra=log_extra(self._context, self.duration_ms),
            )
        else:
            self._logger.debug(
                f"Completed {self._operation}",
                extra=log_extra(self._context, self.duration_ms),
            )

        return False  # Don't suppress exceptions


def timed_operation(
    logger: logging.Logger,
    operation: str,
    context: Optional[LogContext] = None,
) -> TimedOperation:
    """Time a block and log its duration at DEBUG."""
    return TimedOperation(logger, operation, context)
