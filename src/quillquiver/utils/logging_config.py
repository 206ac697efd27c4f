"""
Logging setup for QuillQuiver.

Applies the ``LOG_LEVEL`` / ``LOG_FORMAT`` settings to the root logger using
the standard library ``logging`` module.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from ..config import LoggingConfig, get_config

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(logging_config: Optional[LoggingConfig] = None) -> None:
    """
    Configure the root logger from settings.

    Args:
        logging_config: Explicit settings; defaults to the global config.
    """
    logging_config = logging_config or get_config().logging

    handler = logging.StreamHandler()
    if logging_config.format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging_config.level.upper())
