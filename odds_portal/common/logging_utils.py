"""Central logging utilities for the odds portal scraper.

Goals:
- Single place to configure logging for the CLI and ad-hoc scripts.
- Library modules only call get_logger(name) / logging.getLogger(__name__); handlers
  are installed by the entry point.
- Respect environment variables when no explicit value is passed:
    LOG_LEVEL=INFO|DEBUG|... (default: INFO)
    LOG_FORMAT=console|plain|json (default: console)
    LOG_NO_COLOR=1 to disable color output even on console format.
    LOG_TIMEZONE=utc|local (default: local)

Usage:
    from odds_portal.common.logging_utils import configure_logging, get_logger
    configure_logging(service="odds-portal", level=settings.log_level)  # idempotent
    logger = get_logger(__name__)
    logger.info("Hello")

Calling configure_logging() multiple times is safe; subsequent calls are no-ops unless
`force=True` is passed.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False

_PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# LogRecord attributes that are never copied into the JSON payload
_RESERVED_ATTRS = frozenset(
    logging.makeLogRecord({}).__dict__.keys() | {"message", "asctime", "taskName"}
)


def _timestamp(record: logging.LogRecord, tz_local: bool) -> datetime:
    ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return ts.astimezone() if tz_local else ts


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",  # grey
        "INFO": "\x1b[38;5;39m",  # blue
        "WARNING": "\x1b[38;5;214m",  # orange
        "ERROR": "\x1b[38;5;196m",  # red
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",  # white on red
    }
    RESET = "\x1b[0m"

    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts_str = _timestamp(record, self.tz_local).strftime(_DATE_FORMAT)
        base = f"{ts_str} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname, "")
        return f"{color}{base}{self.RESET}" if color else base


class JsonFormatter(logging.Formatter):
    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": _timestamp(record, self.tz_local).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # extra=... attributes (league, season, url, ...)
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in payload or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = repr(value)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(log_format: str, tz_local: bool) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(tz_local=tz_local)
    no_color = os.getenv("LOG_NO_COLOR") == "1"
    if log_format == "console" and sys.stderr.isatty() and not no_color:
        return ColorFormatter(tz_local=tz_local)
    return logging.Formatter(fmt=_PLAIN_FORMAT, datefmt=_DATE_FORMAT)


def configure_logging(
    service: str | None = None,
    *,
    level: Union[str, int, None] = None,
    log_format: str | None = None,
    force: bool = False,
) -> None:
    """Configure root logging once.

    Parameters
    ----------
    service: Optional logical service name (added as 'service' field by get_logger adapters)
    level: Level name or number; falls back to LOG_LEVEL.
    log_format: console | plain | json; falls back to LOG_FORMAT.
    force: If True, reconfigure even if already configured.
    """
    global _ALREADY_CONFIGURED
    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        fmt = (log_format or os.getenv("LOG_FORMAT", "console")).lower()
        tz_local = os.getenv("LOG_TIMEZONE", "local").lower() != "utc"

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)

        handler = logging.StreamHandler()
        handler.setFormatter(_build_formatter(fmt, tz_local))
        root.addHandler(handler)
        root.setLevel(_resolve_level(level))

        # asyncio is noisy at DEBUG
        logging.getLogger("asyncio").setLevel(logging.WARNING)

        _ServiceLoggerAdapter.BASE_SERVICE = service
        _ALREADY_CONFIGURED = True


def get_logger(name: str) -> Union[logging.Logger, logging.LoggerAdapter]:
    base = logging.getLogger(name)
    service = _ServiceLoggerAdapter.BASE_SERVICE
    if service:
        return _ServiceLoggerAdapter(base, {"service": service})
    return base


class _ServiceLoggerAdapter(logging.LoggerAdapter):
    # Set by configure_logging when a service name is given
    BASE_SERVICE: Optional[str] = None

    def process(self, msg: Any, kwargs: Dict[str, Any]):  # noqa: D401
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("service", self.extra["service"])
        kwargs["extra"] = extra
        return msg, kwargs


__all__ = [
    "ColorFormatter",
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
