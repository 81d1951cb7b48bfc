"""
Logging for the poyang packages.

Level and format come from ``POYANG_LOG_LEVEL`` (default ``INFO``) and
``POYANG_LOG_FMT`` (``json`` for one JSON object per line, otherwise a
``logging`` format string).
"""

import logging
import os
import json
from datetime import datetime, timezone

LEVEL_ENV = "POYANG_LOG_LEVEL"
FORMAT_ENV = "POYANG_LOG_FMT"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record with ``timestamp`` (ISO 8601, UTC), ``level``,
    ``name``, ``message`` and, when present, the formatted ``exc_info``.
    """

    def format(self, record):
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _env_level() -> int:
    name = os.getenv(LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class Logger:
    """
    Process-wide logging configuration, applied once.
    """

    _configured = False

    @classmethod
    def setup(
        cls,
        level: int | None = None,
        fmt: str | None = None,
        datefmt: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        """
        Install a single stderr handler on the root logger.

        Later calls are no-ops until :meth:`reset` is called.
        """
        if cls._configured:
            return
        effective_level = _env_level() if level is None else level
        fmt_mode = fmt if fmt is not None else os.getenv(FORMAT_ENV, "")

        handler = logging.StreamHandler()
        if fmt_mode.lower() == "json":
            handler.setFormatter(JSONFormatter(datefmt=datefmt))
        else:
            handler.setFormatter(
                logging.Formatter(fmt_mode or DEFAULT_FORMAT, datefmt=datefmt)
            )
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(effective_level)
        cls._configured = True

    @classmethod
    def reset(cls) -> None:
        """Forget the current configuration so the next setup() applies again."""
        logging.getLogger().handlers.clear()
        cls._configured = False

    @classmethod
    def get_logger(
        cls, name: str = "poyang", *, level: int | None = None, fmt: str | None = None
    ) -> logging.Logger:
        """
        Return the named logger, configuring logging first if needed.

        Parameters:
            name: Logger name, usually ``__name__``.
            level: Level used if this call performs the setup.
            fmt: Format (or ``"json"``) used if this call performs the setup.
        """
        cls.setup(level=level, fmt=fmt)
        return logging.getLogger(name)
