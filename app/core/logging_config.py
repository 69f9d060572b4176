"""Logging configuration.

Provides structured, rotating logs with optional JSON output. Binds lightweight contextvars
(event_id/trigger/document_path) to every record for correlation across one trigger invocation.
"""

import logging
import logging.handlers
import sys
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from contextvars import ContextVar

# Context variables bound by the event router around every handler invocation
event_id_ctx: ContextVar[Optional[str]] = ContextVar("event_id", default=None)
trigger_ctx: ContextVar[Optional[str]] = ContextVar("trigger", default=None)
document_path_ctx: ContextVar[Optional[str]] = ContextVar("document_path", default=None)

_CONTEXT_FIELDS = ("event_id", "trigger", "document_path")
_CONTEXT_VARS = {
    "event_id": event_id_ctx,
    "trigger": trigger_ctx,
    "document_path": document_path_ctx,
}

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Emit logs as JSON for aggregation (Cloud Logging/ELK/etc.)."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in _CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        if hasattr(record, "recipient_id"):
            log_data["recipient_id"] = record.recipient_id

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """Add ANSI colors to console output for local readability."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        result = super().format(record)

        # Reset levelname for future use
        record.levelname = levelname

        return result


class ContextEnricher(logging.Filter):
    """Inject contextvars (event_id, trigger, document_path) into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field, var in _CONTEXT_VARS.items():
            value = var.get()
            if value and not hasattr(record, field):
                setattr(record, field, value)
        return True


def bind_event_context(
    *,
    event_id: Optional[str] = None,
    trigger: Optional[str] = None,
    document_path: Optional[str] = None,
):
    """Bind trigger invocation context into contextvars; returns tokens for reset."""
    tokens = []
    if event_id is not None:
        tokens.append(("event_id", event_id_ctx.set(event_id)))
    if trigger is not None:
        tokens.append(("trigger", trigger_ctx.set(trigger)))
    if document_path is not None:
        tokens.append(("document_path", document_path_ctx.set(document_path)))
    return tokens


def reset_event_context(tokens):
    """Reset bound contextvars using tokens returned by bind_event_context."""
    for key, token in reversed(tokens):
        _CONTEXT_VARS[key].reset(token)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    app_name: str = "delivery_triggers",
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    use_json: bool = False,
    use_colors: bool = True,
) -> None:
    """Configure root logging.

    Args:
        log_level: Minimum logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory to store log files; if None, logs only to console.
        app_name: Application name used in log filenames.
        max_bytes: Max size per log file before rotation.
        backup_count: Number of rotated files to keep.
        use_json: If True, emit JSON on every handler (structured platform logs).
        use_colors: If True, add ANSI colors to console output (ignored with use_json).
    """
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

    def _reset_handlers(logger: logging.Logger) -> None:
        """Close and remove any existing handlers to avoid descriptor leaks."""
        for handler in list(logger.handlers):
            try:
                handler.flush()
            finally:
                handler.close()
                logger.removeHandler(handler)

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _reset_handlers(root_logger)
    for existing in list(root_logger.filters):
        if isinstance(existing, ContextEnricher):
            root_logger.removeFilter(existing)
    context_filter = ContextEnricher()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.addFilter(context_filter)

    if use_json:
        console_handler.setFormatter(JSONFormatter())
    elif use_colors:
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)

        # General log file (all levels)
        general_handler = logging.handlers.RotatingFileHandler(
            log_path / f"{app_name}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        general_handler.setLevel(logging.DEBUG)
        general_handler.addFilter(context_filter)
        if use_json:
            general_handler.setFormatter(JSONFormatter())
        else:
            general_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(general_handler)

        # Error log file (ERROR and CRITICAL only)
        error_handler = logging.handlers.RotatingFileHandler(
            log_path / f"{app_name}_error.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.addFilter(context_filter)
        if use_json:
            error_handler.setFormatter(JSONFormatter())
        else:
            error_handler.setFormatter(
                logging.Formatter(
                    LOG_FORMAT + "\nException: %(exc_info)s",
                    datefmt=DATE_FORMAT,
                )
            )
        root_logger.addHandler(error_handler)

    # Suppress noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)

    logging.info(
        f"Logging configured. Level: {log_level}, Directory: {log_dir or 'console only'}"
    )

