"""Logging for the server and the index runner.

One console handler (colored) and one rotating file handler below
``<ROOT_DIR>/logs``. Timestamps are rendered in the TIMEZONE zone via pytz.
"""

import logging
import logging.config
import os
from datetime import datetime
from logging import Logger

from pytz import timezone

APP_LOGGER_NAME = "vault_ask"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

ANSI_RESET = "\033[0m"
ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
}

# markers make failures stand out in both the console and the log file
LEVEL_MARKERS: dict[int, str] = {
    logging.CRITICAL: "⛔ ",
    logging.ERROR: "⛔ ",
    logging.WARNING: "⚠️ ",
}


def resolve_log_level(name: str | None = None) -> int:
    """Translate LOG_LEVEL ("debug", "info", "warning", "error") into a logging level. Unknown names mean INFO."""
    name = (name or os.getenv("LOG_LEVEL", "info")).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in a fixed timezone and prefixes warnings and errors with a marker."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # third-party record with a broken format string
            message = str(record.msg)
        record.msg = LEVEL_MARKERS.get(record.levelno, "") + message
        # args are already merged into msg
        record.args = ()
        return super().format(record)


class ConsoleFormatter(TimezoneFormatter):
    """Applies the ANSI color named by the record's ``color`` attribute, if any."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = ANSI_COLORS.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Logger wrapper accepting an optional ``color=`` keyword on every log call.

    Usage::

        logger.info("Indexing complete", color="green")

    The color only reaches the console; the log file stays plain text. Any
    other attribute is delegated to the wrapped Logger.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        # point findCaller at our caller, not at this wrapper
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def setup_logging() -> ColorLogger:
    """Configure console and file handlers and return the application logger.

    Environment:
        ROOT_DIR: Base folder for ``logs/app.log`` (defaults to the working directory).
        LOG_LEVEL: debug, info, warning or error.
        TIMEZONE: pytz zone name used for timestamps (defaults to Europe/Berlin).
        LOG_MAX_BYTES / LOG_BACKUP_COUNT: Size-based rotation of the log file.
    """
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)
    level = resolve_log_level()
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"()": TimezoneFormatter, "format": LOG_FORMAT, "datefmt": LOG_DATEFMT, "tz_name": tz_name},
                "console": {"()": ConsoleFormatter, "format": LOG_FORMAT, "datefmt": LOG_DATEFMT, "tz_name": tz_name},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "level": level,
                    "stream": "ext://sys.stdout",
                },
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "formatter": "plain",
                    "level": level,
                    "filename": os.path.join(log_dir, "app.log"),
                    "maxBytes": int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024))),
                    "backupCount": int(os.getenv("LOG_BACKUP_COUNT", "3")),
                    "encoding": "utf-8",
                },
            },
            "root": {"handlers": ["console", "file"], "level": level},
        }
    )

    # per-request transport logs only when debugging
    transport_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(transport_level)

    return ColorLogger(logging.getLogger(APP_LOGGER_NAME))
