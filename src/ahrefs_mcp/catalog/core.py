"""The operation catalog.

Tool entries arrive in the generated format, where the public MCP tool
definition and the private HTTP details share one object:

    {
        "name": "getBacklinks",
        "description": "...",
        "inputSchema": {...},
        "_original_method": "GET",
        "_original_path": "/site-explorer/all-backlinks",
        "_original_parameters": [{"name": "target", "in": "query", "required": true}],
        "_original_request_body": null
    }

`Catalog` splits each entry into a public `ToolSummary` and a private
`OperationBinding`, joined by tool name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from ahrefs_mcp.catalog.io import CatalogSource, load_catalog_document
from ahrefs_mcp.catalog.models import (
    OperationBinding,
    OperationDescriptor,
    ParameterSpec,
    RequestBodySpec,
    ToolSummary,
)
from ahrefs_mcp.errors import CatalogError

__all__ = ["Catalog", "load_catalog", "parse_entry"]

log = logging.getLogger(__name__)

_HIDDEN_PREFIX = "_original_"


def parse_entry(entry: Dict[str, Any]) -> OperationDescriptor:
    """Split one generated catalog entry into summary and binding."""
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise CatalogError("Catalog entry has no name")

    try:
        summary = ToolSummary(
            name=name,
            description=entry.get("description"),
            input_schema=entry.get("inputSchema") or {"type": "object"},
        )

        method = entry.get(_HIDDEN_PREFIX + "method")
        path = entry.get(_HIDDEN_PREFIX + "path")
        if not method or not path:
            return OperationDescriptor(summary=summary)

        body_info = entry.get(_HIDDEN_PREFIX + "request_body")
        binding = OperationBinding(
            method=str(method).upper(),
            path=path,
            parameters=tuple(
                ParameterSpec.model_validate(p)
                for p in entry.get(_HIDDEN_PREFIX + "parameters") or []
            ),
            request_body=RequestBodySpec.model_validate(body_info) if body_info else None,
        )
    except ValidationError as e:
        raise CatalogError(f"invalid entry: {e}", tool_name=name) from e

    unbound = binding.unbound_placeholders()
    if unbound:
        raise CatalogError(
            f"path {binding.path!r} has placeholders without a path parameter: {', '.join(unbound)}",
            tool_name=name,
        )
    return OperationDescriptor(summary=summary, binding=binding)


class Catalog:
    """Ordered, read-only registry of tools."""

    def __init__(self, descriptors: List[OperationDescriptor]) -> None:
        self._order: List[str] = []
        self._by_name: Dict[str, OperationDescriptor] = {}
        for d in descriptors:
            if d.name in self._by_name:
                raise CatalogError("duplicate tool name", tool_name=d.name)
            self._order.append(d.name)
            self._by_name[d.name] = d

    @classmethod
    def from_entries(cls, entries: List[Dict[str, Any]]) -> "Catalog":
        catalog = cls([parse_entry(e) for e in entries])
        log.info(
            "Loaded catalog with %d tools (%d bound to HTTP operations)",
            len(catalog),
            sum(1 for d in catalog if d.binding is not None),
        )
        return catalog

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[OperationDescriptor]:
        return (self._by_name[n] for n in self._order)

    def names(self) -> List[str]:
        return list(self._order)

    def get(self, name: str) -> Optional[OperationDescriptor]:
        return self._by_name.get(name)

    def summary(self, name: str) -> Optional[ToolSummary]:
        d = self._by_name.get(name)
        return d.summary if d else None

    def binding(self, name: str) -> Optional[OperationBinding]:
        d = self._by_name.get(name)
        return d.binding if d else None

    def summaries(self) -> List[ToolSummary]:
        return [d.summary for d in self]


def load_catalog(source: CatalogSource) -> Catalog:
    return Catalog.from_entries(load_catalog_document(source))
