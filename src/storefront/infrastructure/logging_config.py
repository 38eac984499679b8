"""Process-wide logging setup for the CLI.

Library modules only create ``logging.getLogger(__name__)`` loggers;
handlers and formatting are decided here, once, at startup.
"""

from __future__ import annotations

import logging

from pythonjsonlogger import jsonlogger

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "WARNING", json_logs: bool = False) -> None:
    app_logger = logging.getLogger("storefront")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(jsonlogger.JsonFormatter(_JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    app_logger.addHandler(handler)
    app_logger.setLevel(level.upper())
