"""
Structured logging configuration for the timeline summary pipeline.

Uses structlog for structured, context-aware logging with:
- JSON output for production
- Pretty console output for development
- Automatic timing context
- Request/account/user propagation across one pipeline run
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

# Context variables for request-scoped data
_request_id: ContextVar[str | None] = ContextVar('request_id', default=None)
_account_id: ContextVar[str | None] = ContextVar('account_id', default=None)
_user_id: ContextVar[str | None] = ContextVar('user_id', default=None)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id.get()


def get_account_id() -> str | None:
    """Get the current account ID from context."""
    return _account_id.get()


def get_user_id() -> str | None:
    """Get the current Salesforce user ID from context."""
    return _user_id.get()


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that adds context variables to log entries."""
    request_id = get_request_id()
    account_id = get_account_id()
    user_id = get_user_id()

    if request_id:
        event_dict['request_id'] = request_id
    if account_id:
        event_dict['account_id'] = account_id
    if user_id:
        event_dict['user_id'] = user_id

    return event_dict


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON logs (for production).
                    If False, output pretty console logs (for development).
        log_level: Override log level (defaults to config.LOG_LEVEL)
    """
    level = log_level or config.LOG_LEVEL
    level_num = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=level_num,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    request_id: str | None = None,
    account_id: str | None = None,
    user_id: str | None = None,
) -> Generator[None, None, None]:
    """
    Context manager for setting logging context variables.

    Usage:
        with logging_context(request_id="abc123", account_id="001xx"):
            logger.info("Processing request")  # Includes request_id and account_id
    """
    old_request = _request_id.get()
    old_account = _account_id.get()
    old_user = _user_id.get()

    try:
        if request_id is not None:
            _request_id.set(request_id)
        if account_id is not None:
            _account_id.set(account_id)
        if user_id is not None:
            _user_id.set(user_id)
        yield
    finally:
        _request_id.set(old_request)
        _account_id.set(old_account)
        _user_id.set(old_user)


class PipelineTimer:
    """
    Timer for tracking pipeline stage durations.

    Repeated stages (one per month, one per quarter) accumulate.

    Usage:
        timer = PipelineTimer()
        with timer.stage("month_processing"):
            ...
        print(timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time a pipeline stage."""
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = (time.perf_counter() - started) * 1000
            self.stages[name] = self.stages.get(name, 0.0) + elapsed

    def record(self, name: str, duration_ms: float) -> None:
        """Manually record a stage duration."""
        self.stages[name] = duration_ms

    @property
    def total_ms(self) -> float:
        """Total elapsed time since timer creation in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get timing summary as a dictionary."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Initialize logging on module import (development mode by default)
# Production deployments should call configure_logging(json_output=True)
configure_logging(json_output=config.LOG_JSON)
