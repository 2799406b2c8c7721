"""Logging setup and structured tier events for the resolver."""

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

SERVICE_NAME = "clinical_resolver"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "asyncio")


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, event fields merged at the top level."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "service": self.service,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_data["location"] = f"{record.module}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_data.update(extra_fields)

        return json.dumps(log_data, default=str)


class SimpleFormatter(logging.Formatter):
    """Colored console formatter; event fields are appended as key=value."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{clock} {color}{record.levelname:<7}{self.RESET} {record.name}: {record.getMessage()}"

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            # The event name is already the message
            pairs = [f"{k}={v}" for k, v in extra_fields.items() if k != "event"]
            if pairs:
                line += " | " + " ".join(pairs)

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: str | None = None,
    structured: bool = False,
    quiet: bool = False,
) -> None:
    """Configure the root logger for the resolver service.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path; file output is always JSON
        structured: Emit JSON on the console too
        quiet: Only warnings and errors from resolver modules
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter() if structured else SimpleFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if quiet:
        logging.getLogger(SERVICE_NAME).setLevel(logging.WARNING)
        return

    root_logger.info(f"Logging initialized at {logging.getLevelName(level)} level")


def log_event(
    target: logging.Logger,
    level: int,
    event: str,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    """Emit a structured event without ever raising.

    A broken handler or a misbehaving injected logger must not change what a
    caller receives, so any error raised while emitting is dropped here.

    Args:
        target: Logger to emit on
        level: Logging level
        event: Event name, also used as the message
        exc_info: Attach the active exception
        **fields: Structured fields for the JSON formatter
    """
    try:
        target.log(level, event, exc_info=exc_info, extra={"extra_fields": {"event": event, **fields}})
    except Exception:  # noqa: BLE001 - logging sink failures never propagate
        pass
