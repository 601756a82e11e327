"""
Process logging setup.

Modules log through `logging.getLogger(__name__)`; this only decides where
records go (stdout, or LOGGER_FILE when set) and at which level.
"""

from __future__ import annotations

import logging
import sys

from .config import LoggerSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"

_HANDLER_NAME = "projects_management"


def configure_logging(settings: LoggerSettings | None = None) -> logging.Logger:
    """
    Install one handler on the root logger. Calling it again replaces it.
    """
    settings = settings or LoggerSettings()
    root = logging.getLogger()

    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
            existing.close()

    if settings.file:
        handler: logging.Handler = logging.FileHandler(settings.file, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root.addHandler(handler)
    level = logging.getLevelName(settings.level)
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    return root
