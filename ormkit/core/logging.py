"""Logging setup for applications using ormkit.

Human-readable output in debug mode, one JSON object per line otherwise.
"""

import json
import logging
import sys
from typing import Optional

from ormkit.core.config import Settings, settings as default_settings


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def format(self, record):
        return json.dumps({
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        })


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the root logger from settings and return it."""
    settings = settings or default_settings

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))
    root_logger.handlers.clear()

    if settings.debug:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())

    root_logger.addHandler(handler)
    return root_logger
