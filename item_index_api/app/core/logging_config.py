"""
Process-wide logging for the service.

Records from the index (``item_index_api.*``) and from uvicorn go to the
same handlers with one format, so a reorder and the request that caused
it read as one stream:

    2024-05-01 12:00:00 [INFO] item_index_api.app.services.item_service: Item 7 moved from position 6 to 0

``LOG_FILE`` adds a file handler next to the console one.  Logging is
configured by the first ``setup_logging`` call only; an application built
in a process that already logs (a test run, an embedding server) leaves
that configuration alone.
"""

import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _level_name(level: str) -> str:
    name = level.upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def build_logging_config(level: str = "INFO", logfile: Optional[str] = None) -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping used by :func:`setup_logging`.

    Unknown level names fall back to ``INFO``.  ``logfile`` is resolved
    against the current working directory.
    """
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    }
    if logfile:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": str(Path(logfile).resolve()),
            "encoding": "utf-8",
        }
    names = list(handlers)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}},
        "handlers": handlers,
        "root": {"level": _level_name(level), "handlers": names},
        # uvicorn installs handlers of its own unless told otherwise; these
        # send its records through ours instead
        "loggers": {
            name: {"handlers": names, "propagate": False}
            for name in UVICORN_LOGGERS
        },
    }


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    if logging.getLogger().handlers:
        return
    dictConfig(build_logging_config(level, logfile))
