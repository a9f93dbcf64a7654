"""Response translation: upstream outcome -> MCP result envelope.

Successful responses become a single text item. Failures become an isError
envelope whose text is a readable message and whose `error` field carries a
JSON-RPC style code for programmatic consumers. Translation never raises.
"""

from __future__ import annotations

import json
import logging
from enum import IntEnum
from typing import Any, List, Optional

from mcp import types
from pydantic import BaseModel, ConfigDict, Field

from ahrefs_mcp.errors import UpstreamHTTPError, log_exception
from ahrefs_mcp.upstream import UpstreamResponse

__all__ = [
    "ErrorKind",
    "ResultEnvelope",
    "extract_error_message",
    "map_upstream_error",
    "render_json",
    "translate",
    "translate_failure",
    "translate_success",
]

log = logging.getLogger(__name__)


class ErrorKind(IntEnum):
    INVALID_PARAMS = types.INVALID_PARAMS
    METHOD_NOT_FOUND = types.METHOD_NOT_FOUND
    INTERNAL_ERROR = types.INTERNAL_ERROR
    # Not defined in mcp.types; JSON-RPC implementation-defined server error range.
    REQUEST_TIMEOUT = -32001


_SERVER_ERROR_STATUSES = frozenset({500, 502, 503, 504})
_MESSAGE_FIELDS = ("error", "message", "detail")


class ResultEnvelope(BaseModel):
    """Result of one call-tool request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: List[types.TextContent]
    is_error: bool = Field(default=False, alias="isError")
    error: Optional[types.ErrorData] = None

    @classmethod
    def text(cls, text: str) -> "ResultEnvelope":
        return cls(content=[types.TextContent(type="text", text=text)])

    @classmethod
    def failure(cls, error: types.ErrorData) -> "ResultEnvelope":
        return cls(
            content=[types.TextContent(type="text", text=error.message)],
            is_error=True,
            error=error,
        )

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""

    def to_result(self) -> types.CallToolResult:
        # CallToolResult allows extra fields; the structured error rides along.
        extra = {"error": self.error.model_dump(exclude_none=True)} if self.error else {}
        return types.CallToolResult(content=list(self.content), isError=self.is_error, **extra)


def render_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def translate_success(response: UpstreamResponse) -> ResultEnvelope:
    if response.is_structured:
        try:
            return ResultEnvelope.text(render_json(response.data))
        except (TypeError, ValueError) as e:
            log_exception(log, "Failed to serialize JSON response, returning as string", e)
    return ResultEnvelope.text(response.text)


def extract_error_message(body: Any, fallback: str) -> str:
    """First non-empty `error`, `message` or `detail` field of the body."""
    if isinstance(body, dict):
        for key in _MESSAGE_FIELDS:
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else render_json(value)
    return fallback


def _error(kind: ErrorKind, message: str, data: Any = None) -> types.ErrorData:
    return types.ErrorData(code=int(kind), message=message, data=data)


def map_upstream_error(error: object) -> types.ErrorData:
    """Map an upstream failure to a protocol error code and message."""
    if isinstance(error, UpstreamHTTPError):
        status = error.status_code
        message = extract_error_message(error.body, error.message)
        log.error("API Error: Status %s, Message: %s", status, message)
        data = {"status": status}

        if status == 400:
            return _error(ErrorKind.INVALID_PARAMS, f"API Bad Request: {message}", data)
        if status == 404:
            return _error(ErrorKind.METHOD_NOT_FOUND, f"API Not Found: {message}", data)
        if status == 408:
            return _error(ErrorKind.REQUEST_TIMEOUT, f"API Request Timeout: {message}", data)
        if status in _SERVER_ERROR_STATUSES:
            return _error(ErrorKind.INTERNAL_ERROR, f"API Server Error ({status}): {message}", data)
        return _error(ErrorKind.INTERNAL_ERROR, f"API Request Failed ({status}): {message}", data)

    if isinstance(error, Exception):
        message = getattr(error, "message", None) or str(error) or type(error).__name__
        log.error("Request Error: %s", message)
        return _error(ErrorKind.INTERNAL_ERROR, f"Request failed: {message}")

    log.error("Unknown internal error occurred: %r", error)
    return _error(ErrorKind.INTERNAL_ERROR, "An unknown internal error occurred")


def translate_failure(error: object) -> ResultEnvelope:
    return ResultEnvelope.failure(map_upstream_error(error))


def translate(outcome: object) -> ResultEnvelope:
    if isinstance(outcome, UpstreamResponse):
        return translate_success(outcome)
    return translate_failure(outcome)
