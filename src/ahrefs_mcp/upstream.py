"""Upstream invoker: executes mapped requests against the Ahrefs API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ahrefs_mcp.errors import UpstreamHTTPError, UpstreamNetworkError
from ahrefs_mcp.logging import RequestLogger
from ahrefs_mcp.mapping import OutboundRequest
from ahrefs_mcp.settings import Settings

__all__ = ["UpstreamInvoker", "UpstreamResponse", "decode_body", "is_json_content_type"]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    content_type: str
    data: Any
    text: str
    url: str = ""
    method: str = ""

    @property
    def is_structured(self) -> bool:
        return is_json_content_type(self.content_type) and isinstance(self.data, (dict, list))


def is_json_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and "json" in content_type.lower()


def decode_body(resp: httpx.Response) -> Any:
    """JSON value when the response says JSON and parses, else text."""
    if is_json_content_type(resp.headers.get("content-type")):
        try:
            return resp.json()
        except ValueError:
            pass
    return resp.text


def _request_kwargs(request: OutboundRequest) -> dict:
    kwargs: dict = {"params": request.query or None, "headers": request.headers}
    if not request.has_body:
        return kwargs

    body = request.body
    content_type = (request.content_type or "").lower()
    if "json" in content_type:
        kwargs["json"] = body
    elif content_type.startswith("application/x-www-form-urlencoded") and isinstance(body, dict):
        kwargs["data"] = body
    elif isinstance(body, (str, bytes)):
        kwargs["content"] = body
    else:
        kwargs["content"] = json.dumps(body)
    return kwargs


class UpstreamInvoker:
    """One HTTP call per invocation. No retries, no caching.

    Args:
        settings: Base URL and timeout.
        client: Optional pre-built client (tests pass one with a mock transport).
            A client passed in is not closed by `aclose()`.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
        )
        self._timeout = settings.timeout
        self._requests = RequestLogger()

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    async def invoke(self, request: OutboundRequest) -> UpstreamResponse:
        """Execute the request.

        Raises:
            UpstreamHTTPError: Response status outside 2xx.
            UpstreamNetworkError: No response (DNS, connect, timeout, ...).
        """
        entry = self._requests.log_request(
            request.method, f"{self.base_url.rstrip('/')}{request.path}"
        )
        try:
            resp = await self._client.request(
                request.method, request.path, **_request_kwargs(request)
            )
        except httpx.TimeoutException as e:
            entry.complete(error=f"timeout: {e}")
            self._requests.log_response(entry)
            raise UpstreamNetworkError(
                f"timeout of {self._timeout:g}s exceeded", timeout=True
            ) from e
        except httpx.RequestError as e:
            entry.complete(error=str(e) or type(e).__name__)
            self._requests.log_response(entry)
            raise UpstreamNetworkError(str(e) or type(e).__name__) from e

        entry.complete(status_code=resp.status_code, response_size=len(resp.content))
        self._requests.log_response(entry)

        body = decode_body(resp)
        if not 200 <= resp.status_code < 300:
            raise UpstreamHTTPError(resp.status_code, body)

        return UpstreamResponse(
            status_code=resp.status_code,
            content_type=resp.headers.get("content-type", ""),
            data=body,
            text=resp.text,
            url=str(resp.request.url),
            method=resp.request.method,
        )

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> "UpstreamInvoker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
