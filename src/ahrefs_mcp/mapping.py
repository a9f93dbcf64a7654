"""Argument mapping: tool-call arguments -> outbound HTTP request.

`map_arguments` walks the operation's parameters in declared order and
places each argument in the path, query string, headers or JSON body. A
missing required parameter aborts the whole mapping before anything is sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from ahrefs_mcp.catalog.models import OperationBinding, ParameterLocation
from ahrefs_mcp.errors import InvalidBodyError, MissingBodyError, MissingParameterError
from ahrefs_mcp.settings import Settings

__all__ = [
    "OutboundRequest",
    "map_arguments",
    "LOWERCASE_PARAMS",
    "BODY_ARGUMENT",
    "DEFAULT_CONTENT_TYPE",
]

log = logging.getLogger(__name__)

# The upstream API is case-sensitive on these; callers often send "US".
LOWERCASE_PARAMS = frozenset({"us_state", "country", "country_code"})

BODY_ARGUMENT = "requestBody"
DEFAULT_CONTENT_TYPE = "application/json"

# Characters encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class OutboundRequest:
    method: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    @property
    def has_body(self) -> bool:
        return self.body is not None


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_path_value(value: Any) -> str:
    return quote(_to_str(value), safe=_URI_COMPONENT_SAFE)


def map_arguments(
    binding: OperationBinding,
    args: Mapping[str, Any],
    settings: Settings,
) -> OutboundRequest:
    """Build the outbound request for one tool call.

    Args:
        binding: HTTP details of the operation.
        args: Tool-call arguments. Not modified.
        settings: Provides the credential and User-Agent.

    Returns:
        A fresh OutboundRequest.

    Raises:
        MissingParameterError: A required parameter is absent or null.
        MissingBodyError: The operation requires a body and none was given.
        InvalidBodyError: Body fields were given alongside a non-object requestBody.
    """
    path = binding.path
    query: Dict[str, Any] = {}
    headers: Dict[str, str] = {
        "Accept": "application/json",
        "User-Agent": settings.user_agent,
    }
    body = args.get(BODY_ARGUMENT)
    if isinstance(body, Mapping):
        body = dict(body)

    for spec in binding.parameters:
        value = args.get(spec.name)

        if value is None:
            if spec.required:
                raise MissingParameterError(spec.name)
            continue

        if spec.name in LOWERCASE_PARAMS:
            value = _to_str(value).lower()

        if spec.location is ParameterLocation.PATH:
            path = path.replace("{" + spec.name + "}", encode_path_value(value))
        elif spec.location is ParameterLocation.QUERY:
            query[spec.name] = value
        elif spec.location is ParameterLocation.HEADER:
            headers[spec.name] = _to_str(value)
        elif spec.location is ParameterLocation.BODY:
            if body is None:
                body = {}
            elif not isinstance(body, dict):
                raise InvalidBodyError(spec.name)
            body[spec.name] = value

    body_info = binding.request_body
    if body is not None:
        content_type = (body_info.content_type if body_info else None) or DEFAULT_CONTENT_TYPE
        headers["Content-Type"] = content_type
    elif body_info is not None and body_info.required:
        raise MissingBodyError()

    headers["Authorization"] = f"Bearer {settings.api_key}"

    log.debug("Mapped %s %s (query=%s, body=%s)", binding.method, path, sorted(query), body is not None)
    return OutboundRequest(
        method=binding.method,
        path=path,
        query=query,
        headers=headers,
        body=body,
    )
