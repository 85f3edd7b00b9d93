"""Logging setup for the command line tool."""

import json
import logging
import os
from datetime import datetime, timezone

NOISY_LOGGERS = ("googleapiclient", "google.auth", "urllib3", "authlib")


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level_override: str | None = None) -> None:
    """Configure the root logger from the environment.

    Args:
        level_override: If set, takes precedence over LOG_LEVEL.

    Environment variables:
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR. Defaults to WARNING so
            normal runs only show the per-task report.
        LOG_FORMAT: "json" for JSON lines, anything else for plain text.
    """
    level_name = (level_override or os.getenv("LOG_LEVEL", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if os.getenv("LOG_FORMAT", "text").lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
