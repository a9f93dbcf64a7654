"""Tool dispatch: list-tools, call-tool and the `doc` meta-tool.

Malformed calls (unknown tool, missing argument) are rejected with an
`McpError`, which the session turns into a JSON-RPC error response. Calls
that reach the upstream API always produce a `ResultEnvelope`; upstream
failures are encoded in it with `isError=True`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from mcp import types
from mcp.shared.exceptions import McpError

from ahrefs_mcp.catalog import Catalog
from ahrefs_mcp.errors import ArgumentValidationError, log_exception
from ahrefs_mcp.logging import get_logger
from ahrefs_mcp.mapping import map_arguments
from ahrefs_mcp.settings import Settings
from ahrefs_mcp.translate import ErrorKind, ResultEnvelope, render_json, translate_failure, translate_success
from ahrefs_mcp.upstream import UpstreamInvoker

__all__ = ["ToolDispatcher", "DOC_TOOL_NAME", "NAMESPACE_SEPARATOR", "strip_namespace"]

log = get_logger(__name__)

DOC_TOOL_NAME = "doc"
NAMESPACE_SEPARATOR = "_"


def strip_namespace(name: str) -> str:
    """`ahrefs_getBacklinks` -> `getBacklinks`."""
    return name.rsplit(NAMESPACE_SEPARATOR, 1)[-1]


def _protocol_error(kind: ErrorKind, message: str, data: Any = None) -> McpError:
    return McpError(types.ErrorData(code=int(kind), message=message, data=data))


class ToolDispatcher:
    """Resolves tool calls against the catalog and runs them upstream."""

    def __init__(self, catalog: Catalog, invoker: UpstreamInvoker, settings: Settings) -> None:
        self.catalog = catalog
        self.invoker = invoker
        self.settings = settings

    def list_tools(self) -> List[types.Tool]:
        log.info("Handling ListTools request")
        return [
            types.Tool(name=s.name, description=s.description, inputSchema=s.input_schema)
            for s in self.catalog.summaries()
        ]

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ResultEnvelope:
        args: Dict[str, Any] = dict(arguments or {})
        log.info("Received CallTool request for: %s", name, tool=name, arguments=sorted(args))

        if name == DOC_TOOL_NAME:
            return self.describe(args.get("tool"))

        if name not in self.catalog:
            log.error("Tool not found: %s", name)
            raise _protocol_error(ErrorKind.METHOD_NOT_FOUND, f"Tool '{name}' not found.")

        binding = self.catalog.binding(name)
        if binding is None:
            log.error("Missing operation details for tool: %s", name)
            raise _protocol_error(
                ErrorKind.INTERNAL_ERROR, f"Internal configuration error for tool '{name}'."
            )

        try:
            request = map_arguments(binding, args, self.settings)
        except ArgumentValidationError as e:
            log.error("Invalid arguments for tool %s: %s", name, e.message, tool=name, **e.details)
            raise _protocol_error(
                ErrorKind.INVALID_PARAMS, e.message, {"tool": name, **e.details}
            ) from e

        log.info("Making API call: %s %s%s", request.method, self.invoker.base_url, request.path)
        try:
            response = await self.invoker.invoke(request)
        except Exception as e:
            log_exception(log, f"Error during API call for tool {name}", e, include_traceback=False)
            return translate_failure(e)

        log.info(
            "API call successful for %s, Status: %s",
            name,
            response.status_code,
            tool=name,
            status_code=response.status_code,
        )
        return translate_success(response)

    def describe(self, tool: Any) -> ResultEnvelope:
        """Input schema of another tool, pretty-printed."""
        target = strip_namespace(str(tool) if tool is not None else "")
        summary = self.catalog.summary(target)
        if summary is None:
            log.error("Tool not found: %s", target)
            raise _protocol_error(ErrorKind.METHOD_NOT_FOUND, f"Tool '{target}' not found.")
        return ResultEnvelope.text(render_json(summary.input_schema))
