"""
Structured Logging with Rich.

Provides consistent, colorful logging across the application. Fields bound
with ``LogContext`` are appended to every message as ``key=value`` pairs.
"""

import logging
from functools import lru_cache

from rich.console import Console
from rich.logging import RichHandler

# Provider clients are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


class ContextFilter(logging.Filter):
    """Render a record's bound context into ``record.context_suffix``."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, "log_context", None)
        if context:
            record.context_suffix = "  " + " ".join(f"{k}={v}" for k, v in context.items())
        else:
            record.context_suffix = ""
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logger with Rich handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=True,
        show_path=False,
    )
    handler.addFilter(ContextFilter())

    logging.basicConfig(
        level=level,
        format="%(name)s | %(message)s%(context_suffix)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@lru_cache(maxsize=128)
def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class LogContext:
    """
    Bind fields to every log record created inside the block.

    Nested contexts merge; the inner value wins on a key clash.

    Usage:
        with LogContext(logger, ingest_run=3):
            logger.info("Embedding papers")
    """

    def __init__(self, logger: logging.Logger, **context: str | int | float) -> None:
        self.logger = logger
        self.context = context
        self._old_factory: logging.LogRecordFactory | None = None

    def __enter__(self) -> "LogContext":
        old_factory = logging.getLogRecordFactory()
        self._old_factory = old_factory
        context = self.context

        def factory(*args, **kwargs) -> logging.LogRecord:  # type: ignore[no-untyped-def]
            record = old_factory(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            record.log_context = {**getattr(record, "log_context", {}), **context}
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, *args: object) -> None:
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)
