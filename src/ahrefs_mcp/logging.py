"""Logging for ahrefs-mcp.

All output goes to stderr so it never interleaves with protocol traffic and
lands in the journal when the server runs under systemd.

Usage:
    from ahrefs_mcp.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", format="json")
    log = get_logger("ahrefs_mcp.dispatch")
    log.info("Tool called", tool="getBacklinks")
"""

from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

__all__ = [
    "HumanFormatter",
    "JSONFormatter",
    "RequestLog",
    "RequestLogger",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

ROOT_LOGGER = "ahrefs_mcp"

# Attributes every LogRecord has; anything else came in through `extra`.
_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys() | {"message", "asctime"}
)

_SENSITIVE_PARAMS = frozenset({"api_key", "apikey", "key", "token", "access_token", "secret"})


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.ERROR:
            data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        data.update(_extra_fields(record))
        return json.dumps(data, default=str)


class HumanFormatter(logging.Formatter):
    """`HH:MM:SS LEVEL logger: message key=value ...`"""

    def __init__(self) -> None:
        super().__init__(datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record, self.datefmt)} {record.levelname:<7} "
            f"{record.name}: {record.getMessage()}"
        )
        extra = _extra_fields(record)
        if extra:
            line += " " + " ".join(f"{k}={v!r}" for k, v in extra.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str | int = "INFO", format: str = "human") -> None:
    """Install a single stderr handler on the package logger.

    Args:
        level: Level name or number.
        format: "human" or "json".
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level if isinstance(level, int) else level.upper())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if format == "json" else HumanFormatter())

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False


class StructuredLogger:
    """Thin wrapper that turns keyword arguments into `extra` fields.

    Positional arguments are %-format arguments, as with `logging.Logger`:

        log.info("Tool %s called", name, tool=name, arguments=["target"])
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, args: tuple, exc_info: Any, fields: dict) -> None:
        self._logger.log(level, msg, *args, exc_info=exc_info, extra=fields or None, stacklevel=3)

    def debug(self, msg: str, *args: Any, exc_info: Any = None, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, args, exc_info, fields)

    def info(self, msg: str, *args: Any, exc_info: Any = None, **fields: Any) -> None:
        self._log(logging.INFO, msg, args, exc_info, fields)

    def warning(self, msg: str, *args: Any, exc_info: Any = None, **fields: Any) -> None:
        self._log(logging.WARNING, msg, args, exc_info, fields)

    def error(self, msg: str, *args: Any, exc_info: Any = None, **fields: Any) -> None:
        self._log(logging.ERROR, msg, args, exc_info, fields)

    def child(self, suffix: str) -> StructuredLogger:
        return StructuredLogger(f"{self.name}.{suffix}")


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


# =============================================================================
# Upstream request logging
# =============================================================================


@dataclass
class RequestLog:
    """One outbound HTTP request."""

    method: str
    url: str
    status_code: int | None = None
    response_size: int | None = None
    latency_ms: float | None = None
    error: str | None = None
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def complete(
        self,
        status_code: int | None = None,
        response_size: int | None = None,
        error: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_size = response_size
        self.error = error
        self.latency_ms = round((time.perf_counter() - self._started) * 1000, 2)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "method": self.method,
            "url": self.url,
            "status_code": self.status_code,
            "latency_ms": self.latency_ms,
        }
        if self.response_size is not None:
            data["response_size"] = self.response_size
        if self.error:
            data["error"] = self.error
        return data


class RequestLogger:
    """Logs upstream requests with credential-looking query values redacted."""

    def __init__(self, name: str = "ahrefs_mcp.upstream") -> None:
        self._logger = logging.getLogger(name)

    @staticmethod
    def sanitize_url(url: str) -> str:
        parts = urlsplit(url)
        if not parts.query:
            return url
        query = [
            (k, "[REDACTED]" if k.lower() in _SENSITIVE_PARAMS else v)
            for k, v in parse_qsl(parts.query, keep_blank_values=True)
        ]
        return urlunsplit(parts._replace(query=urlencode(query)))

    def log_request(self, method: str, url: str) -> RequestLog:
        entry = RequestLog(method=method.upper(), url=self.sanitize_url(url))
        self._logger.debug("-> %s %s", entry.method, entry.url)
        return entry

    def log_response(self, entry: RequestLog) -> None:
        if entry.error:
            self._logger.warning(
                "<- %s %s failed: %s", entry.method, entry.url, entry.error, extra=entry.to_dict()
            )
        else:
            self._logger.info(
                "<- %s %s %s (%sms)",
                entry.method,
                entry.url,
                entry.status_code,
                entry.latency_ms,
                extra=entry.to_dict(),
            )
