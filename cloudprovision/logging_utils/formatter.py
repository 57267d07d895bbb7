"""
Structured logging setup.

Provides a JSON formatter that carries the ``extra`` context attached by the
providers (operation, phase, resource kind, identifier, state) and a helper to
install console and file handlers from the monitoring settings.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config.settings import MonitoringSettings

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "getMessage",
        "stack_info",
        "taskName",
        "message",
    ]
)


class StructuredFormatter(logging.Formatter):
    """Custom formatter emitting one JSON object per record."""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add any extra fields from the record
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    settings: MonitoringSettings, level: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger from monitoring settings.

    Args:
        settings: Monitoring settings (level, format, optional log file)
        level: Optional level overriding ``settings.log_level``

    Returns:
        The configured root logger
    """
    console_handler = logging.StreamHandler()
    if settings.log_format == "json":
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(level or settings.log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)

    return root_logger
