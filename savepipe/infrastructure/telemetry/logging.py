"""Structured logging with context injection."""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any

from savepipe.config import get_settings

# Context variables for correlation IDs
pipeline_run_id_var: ContextVar[str | None] = ContextVar("pipeline_run_id", default=None)
pipeline_name_var: ContextVar[str | None] = ContextVar("pipeline_name", default=None)


def set_pipeline_context(
    pipeline_run_id: str | None = None,
    pipeline_name: str | None = None,
) -> list[Token]:
    """Set context variables for pipeline run correlation.

    Returns the tokens to pass to :func:`reset_pipeline_context` once the
    run is over, so a nested run restores the outer one's values.
    """
    tokens: list[Token] = []
    if pipeline_run_id is not None:
        tokens.append(pipeline_run_id_var.set(pipeline_run_id))
    if pipeline_name is not None:
        tokens.append(pipeline_name_var.set(pipeline_name))
    return tokens


def reset_pipeline_context(tokens: list[Token]) -> None:
    """Restore the context variables changed by set_pipeline_context."""
    for token in reversed(tokens):
        token.var.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter with automatic context injection."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add correlation IDs from context
        if pipeline_run_id := pipeline_run_id_var.get():
            log_data["pipeline_run_id"] = pipeline_run_id
        if pipeline_name := pipeline_name_var.get():
            log_data["pipeline"] = pipeline_name

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        # Extra fields attached by ContextLogger
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            log_data.update(record.extra)

        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname
        name = record.name
        message = record.getMessage()

        context_parts = []
        if pipeline_name := pipeline_name_var.get():
            context_parts.append(f"pipeline={pipeline_name}")
        if pipeline_run_id := pipeline_run_id_var.get():
            context_parts.append(f"run={pipeline_run_id[:8]}")

        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        base = f"{timestamp} | {level:8} | {name}{context_str} | {message}"

        if hasattr(record, "extra") and isinstance(record.extra, dict) and record.extra:
            pairs = " ".join(f"{k}={v}" for k, v in record.extra.items())
            base += f" | {pairs}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that supports extra fields."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})

        # Nest under one attribute so the formatters can find them
        kwargs["extra"] = {"extra": extra}
        return msg, kwargs


def configure_logging(
    level: str | None = None,
    format_type: str | None = None,
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR), defaults to settings
        format_type: Output format ('json' or 'text'), defaults to settings
    """
    settings = get_settings()
    level = level or settings.log_level
    format_type = format_type or settings.log_format

    handler = logging.StreamHandler(sys.stdout)

    if format_type == "json":
        formatter = StructuredFormatter()
    else:
        formatter = TextFormatter()

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Reduce noise from external libraries
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if level == "DEBUG" else logging.WARNING
    )


def get_logger(name: str, **extra: Any) -> ContextLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name (usually __name__)
        **extra: Additional fields to include in every log message

    Returns:
        ContextLogger instance
    """
    logger = logging.getLogger(name)
    return ContextLogger(logger, extra)
