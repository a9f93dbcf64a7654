"""Error hierarchy for ahrefs-mcp.

Three families of failures flow through the gateway:

- ArgumentValidationError: the caller sent a malformed tool call. Surfaced
  as a protocol-level InvalidParams error.
- CatalogError: the loaded catalog is inconsistent. Raised at load time.
- UpstreamError: the HTTP call to the upstream API failed, either at the
  network level or with a non-2xx status. Delivered inside an isError
  result envelope.

Example:
    >>> try:
    ...     map_arguments(binding, {}, settings)
    ... except MissingParameterError as e:
    ...     print(e.parameter)
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AhrefsMCPError",
    "ConfigurationError",
    "CatalogError",
    "ArgumentValidationError",
    "MissingParameterError",
    "MissingBodyError",
    "InvalidBodyError",
    "UpstreamError",
    "UpstreamHTTPError",
    "UpstreamNetworkError",
    "log_exception",
]


def log_exception(
    logger: Any,
    msg: str,
    exc: BaseException,
    *,
    level: str = "warning",
    include_traceback: bool = True,
) -> None:
    """Log an exception with its type name, optionally with traceback.

    Args:
        logger: A `logging.Logger` or `StructuredLogger`.
        msg: Context message.
        exc: The exception.
        level: Log level name ("debug", "info", "warning", "error").
        include_traceback: Attach exc_info to the record.
    """
    log_fn = getattr(logger, level.lower(), logger.warning)
    log_fn(
        "%s: %s: %s",
        msg,
        type(exc).__name__,
        exc,
        exc_info=exc if include_traceback else None,
    )


# =============================================================================
# Base
# =============================================================================


class AhrefsMCPError(Exception):
    """Base exception for all ahrefs-mcp errors.

    Attributes:
        message: Human-readable description.
        details: Structured context for programmatic consumers.
        hint: Optional suggestion shown after the message.
        docs_url: Optional link shown after the message.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        hint: str | None = None,
        docs_url: str | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.hint = hint
        self.docs_url = docs_url
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.docs_url:
            parts.append(f"Docs: {self.docs_url}")
        return "\n".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ConfigurationError(AhrefsMCPError):
    """Missing or invalid process configuration."""

    def __init__(self, message: str, *, setting: str | None = None, **kwargs: Any) -> None:
        self.setting = setting
        details = kwargs.pop("details", None) or {}
        if setting:
            details["setting"] = setting
            kwargs.setdefault("hint", f"Set {setting} in the environment or in a .env file.")
        super().__init__(message, details=details, **kwargs)


class CatalogError(AhrefsMCPError):
    """The operation catalog is malformed or internally inconsistent."""

    def __init__(self, message: str, *, tool_name: str | None = None, **kwargs: Any) -> None:
        self.tool_name = tool_name
        details = kwargs.pop("details", None) or {}
        if tool_name:
            details["tool_name"] = tool_name
            message = f"Tool '{tool_name}': {message}"
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# Argument validation
# =============================================================================


class ArgumentValidationError(AhrefsMCPError):
    """A tool call's arguments cannot be mapped to an upstream request."""


class MissingParameterError(ArgumentValidationError):
    """A required parameter was absent (or null) in the tool arguments."""

    def __init__(self, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(
            f"Missing required parameter: {parameter}",
            details={"parameter": parameter},
        )


class MissingBodyError(ArgumentValidationError):
    """The operation requires a request body and none was supplied."""

    def __init__(self) -> None:
        super().__init__(
            "Missing required requestBody",
            details={"body": "requestBody"},
            hint="Pass 'requestBody' or the body fields as arguments.",
        )


class InvalidBodyError(ArgumentValidationError):
    """Body-located parameters cannot be merged into a non-object requestBody."""

    def __init__(self, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(
            f"Cannot set body field '{parameter}' on a non-object requestBody",
            details={"parameter": parameter, "body": "requestBody"},
        )


# =============================================================================
# Upstream
# =============================================================================


class UpstreamError(AhrefsMCPError):
    """The call to the upstream API did not succeed."""


class UpstreamHTTPError(UpstreamError):
    """The upstream API answered with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response.
        body: Decoded response body (JSON value or text).
    """

    def __init__(self, status_code: int, body: Any = None, message: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            message or f"Request failed with status code {status_code}",
            details={"status_code": status_code},
        )


class UpstreamNetworkError(UpstreamError):
    """No response was received (DNS, refused connection, timeout, ...)."""

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        self.timeout = timeout
        super().__init__(message, details={"timeout": timeout})
