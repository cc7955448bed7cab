"""Logging configuration for the invoice AI bridge.

Two handlers share one logger tree:
  console: coloured on demand via ``ColorLogger(color=...)``
  file:    plain text, rotated, in ``<ROOT_DIR>/logs/app.log``

Timestamps are rendered in the ``TIMEZONE`` zone. Configured secrets
(webhook secret, API keys, bearer tokens) are masked before a record is
written anywhere.
"""

from datetime import datetime
from logging import Logger
import logging
import logging.config
import os
import re

from pytz import timezone

LOGGER_NAME = "invoice_ai_bridge"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# env keys whose values never reach a log line
SECRET_ENV_KEYS = (
    "APP_API_KEY",
    "CCC_WEBHOOK_SECRET",
    "DB_SUPABASE_API_KEY",
    "EMBED_OPENAI_API_KEY",
    "LLM_OPENAI_API_KEY",
    "OCR_TESSERACT_API_KEY",
    "CLAIMS_CCC_PROD_TOKEN",
    "CLAIMS_CCC_SANDBOX_TOKEN",
)
REDACTED = "***"

_BEARER = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+")

ANSI_COLORS = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "white": "\033[37m",
}
ANSI_RESET = "\033[0m"


def get_log_level() -> int:
    return LEVELS.get(os.getenv("LOG_LEVEL", "info").strip().lower(), logging.INFO)


class RedactSecretsFilter(logging.Filter):
    """Masks secret values and bearer tokens in the rendered message.

    The record is rewritten in place and always passes.
    """

    def __init__(self, secrets: list[str] | None = None):
        super().__init__()
        if secrets is None:
            secrets = [os.getenv(key, "") for key in SECRET_ENV_KEYS]
        # longest first so a secret containing another is masked whole
        self.secrets = sorted({s for s in secrets if s and len(s) >= 4}, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return _BEARER.sub(rf"\g<1>{REDACTED}", text)

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        record.msg = self.redact(message)
        record.args = ()
        return True


class TimezoneFormatter(logging.Formatter):
    """Renders asctime in a pytz zone and marks warnings and errors."""

    PREFIXES = {logging.WARNING: "⚠️ ", logging.ERROR: "⛔ ", logging.CRITICAL: "⛔ "}

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        moment = datetime.fromtimestamp(record.created, self.tz)
        return moment.strftime(datefmt) if datefmt else moment.isoformat()

    def format(self, record):
        prefix = self.PREFIXES.get(record.levelno, "")
        if not prefix:
            return super().format(record)
        # format a copy so the prefix does not leak into the other handler
        marked = logging.makeLogRecord(record.__dict__)
        marked.msg = prefix + record.getMessage()
        marked.args = ()
        return super().format(marked)


class ColorFormatter(TimezoneFormatter):
    def format(self, record) -> str:
        line = super().format(record)
        ansi = ANSI_COLORS.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi else line


class ColorLogger:
    """Logger facade whose log methods accept an optional ``color=`` keyword.

    Usage::

        logger.info("webhook accepted", color="green")

    Only the console handler renders colours. Everything that is not a log
    method is delegated to the wrapped logger.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
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
    """Configure the root logger and return the application logger.

    Reads LOG_LEVEL, TIMEZONE, ROOT_DIR, LOG_MAX_BYTES and LOG_BACKUP_COUNT.
    """
    level = get_log_level()
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)

    line_format = "%(asctime)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": RedactSecretsFilter},
        },
        "formatters": {
            "plain": {"()": TimezoneFormatter, "tz_name": tz_name, "format": line_format, "datefmt": date_format},
            "color": {"()": ColorFormatter, "tz_name": tz_name, "format": line_format, "datefmt": date_format},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "color",
                "filters": ["redact"],
                "level": level,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": os.path.join(log_dir, "app.log"),
                "maxBytes": int(os.getenv("LOG_MAX_BYTES", 10 * 1024 * 1024)),
                "backupCount": int(os.getenv("LOG_BACKUP_COUNT", 5)),
                "encoding": "utf-8",
                "formatter": "plain",
                "filters": ["redact"],
                "level": level,
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    # one INFO line per outbound request otherwise
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
