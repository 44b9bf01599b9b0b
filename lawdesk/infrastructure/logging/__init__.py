from .structured import (
    HumanFormatter,
    JSONFormatter,
    LogContext,
    LogEntry,
    TimedOperation,
    configure_logging,
    log_extra,
    timed_operation,
)

__all__ = [
    'HumanFormatter',
    'JSONFormatter',
    'LogContext',
    'LogEntry',
    'TimedOperation',
    'configure_logging',
    'log_extra',
    'timed_operation',
]
