"""
Root conftest.py for ahrefs-mcp tests.

This file provides:
1. Common pytest markers for test categorization
2. Shared fixtures: settings, a small catalog, and an upstream invoker
   backed by httpx.MockTransport
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

import httpx
import pytest

from ahrefs_mcp.catalog import Catalog
from ahrefs_mcp.dispatch import ToolDispatcher
from ahrefs_mcp.settings import Settings
from ahrefs_mcp.upstream import UpstreamInvoker

BASE_URL = "https://api.example.test/v3"

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        norm = str(item.fspath).replace("\\", "/")
        if "/tests/integration/" in norm:
            item.add_marker(pytest.mark.integration)
        if "dispatch" in norm or "server" in norm:
            item.add_marker(pytest.mark.mcp)


def pytest_configure(config):
    """Register custom markers."""
    for name, desc in [
        ("integration", "Tests that run the ASGI app end to end"),
        ("mcp", "MCP dispatch/session tests"),
        ("slow", "Slow-running tests"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


# =============================================================================
# SETTINGS / CATALOG FIXTURES
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", base_url=BASE_URL)


@pytest.fixture
def catalog_entries() -> List[Dict[str, Any]]:
    """Entries in the generated catalog format."""
    return [
        {
            "name": "doc",
            "description": "Show the input schema of another tool",
            "inputSchema": {
                "type": "object",
                "properties": {"tool": {"type": "string"}},
                "required": ["tool"],
            },
        },
        {
            "name": "getBacklinks",
            "description": "All backlinks of a target",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "target": {"type": "string"},
                    "limit": {"type": "integer"},
                    "country": {"type": "string"},
                },
                "required": ["target"],
            },
            "_original_method": "GET",
            "_original_path": "/site-explorer/all-backlinks",
            "_original_parameters": [
                {"name": "target", "in": "query", "required": True},
                {"name": "limit", "in": "query", "required": False},
                {"name": "country", "in": "query", "required": False},
            ],
            "_original_request_body": None,
        },
        {
            "name": "getProject",
            "description": "A rank tracker project",
            "inputSchema": {
                "type": "object",
                "properties": {"project_id": {"type": "string"}},
                "required": ["project_id"],
            },
            "_original_method": "GET",
            "_original_path": "/rank-tracker/projects/{project_id}",
            "_original_parameters": [
                {"name": "project_id", "in": "path", "required": True},
                {"name": "x-request-id", "in": "header", "required": False},
            ],
        },
        {
            "name": "createKeywordList",
            "description": "Create a keyword list",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "keywords": {"type": "array", "items": {"type": "string"}},
                },
            },
            "_original_method": "POST",
            "_original_path": "/keywords-explorer/lists",
            "_original_parameters": [
                {"name": "name", "in": "body", "required": False},
                {"name": "keywords", "in": "body", "required": False},
            ],
            "_original_request_body": {"required": True, "content_type": "application/json"},
        },
    ]


@pytest.fixture
def catalog(catalog_entries) -> Catalog:
    return Catalog.from_entries(catalog_entries)


# =============================================================================
# UPSTREAM FIXTURES
# =============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_invoker(settings):
    """Factory: handler -> (invoker, transport)."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(
            base_url=settings.base_url, timeout=settings.timeout, transport=transport
        )
        return UpstreamInvoker(settings, client=client), transport

    return _make


@pytest.fixture
def make_dispatcher(catalog, settings, make_invoker):
    """Factory: handler -> (dispatcher, transport)."""

    def _make(handler: Callable[[httpx.Request], httpx.Response] | None = None):
        invoker, transport = make_invoker(handler or (lambda r: httpx.Response(200, json={"ok": True})))
        return ToolDispatcher(catalog, invoker, settings), transport

    return _make
