"""
Logging setup for the handbook backend.

Modules log through ``logging.getLogger(__name__)``; ``configure_logging``
attaches one handler to the ``handbook`` logger when the app is built.
Extra key/value context travels in ``extra={"extra_data": {...}}``.
"""

import json
import logging
import sys
from datetime import datetime


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        log_data["source"] = {
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable single line, extra data appended as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().strftime("%H:%M:%S")
        msg = f"[{timestamp}] {record.levelname:8} | {record.name}: {record.getMessage()}"

        extra = getattr(record, "extra_data", None)
        if extra:
            msg += " | " + ", ".join(f"{k}={v}" for k, v in extra.items())

        if record.exc_info:
            msg += f"\n{self.formatException(record.exc_info)}"

        return msg


def configure_logging(app) -> logging.Logger:
    logger = logging.getLogger("handbook")
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level, logging.INFO))

    if not any(getattr(h, "_handbook_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler._handbook_handler = True
        logger.addHandler(handler)
    else:
        handler = next(h for h in logger.handlers if getattr(h, "_handbook_handler", False))

    if app.config.get("LOG_FORMAT") == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(ConsoleFormatter())
    return logger
