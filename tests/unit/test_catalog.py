"""Tests for catalog loading and lookups."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from ahrefs_mcp.catalog import (
    Catalog,
    ParameterLocation,
    load_catalog,
    load_catalog_document,
    parse_entry,
)
from ahrefs_mcp.errors import CatalogError

EXAMPLE_CATALOG = Path(__file__).resolve().parents[2] / "examples" / "catalog.json"

# =============================================================================
# Entry parsing
# =============================================================================


class TestParseEntry:
    """Generated entries split into summary + binding."""

    def test_bound_entry(self, catalog_entries):
        d = parse_entry(catalog_entries[2])

        assert d.name == "getProject"
        assert d.summary.input_schema["required"] == ["project_id"]
        assert d.binding.method == "GET"
        assert d.binding.path == "/rank-tracker/projects/{project_id}"
        assert [p.location for p in d.binding.parameters] == [
            ParameterLocation.PATH,
            ParameterLocation.HEADER,
        ]
        assert d.binding.request_body is None

    def test_summary_only_entry(self, catalog_entries):
        d = parse_entry(catalog_entries[0])

        assert d.name == "doc"
        assert d.binding is None

    def test_method_upper_cased(self):
        d = parse_entry({"name": "t", "_original_method": "post", "_original_path": "/x"})

        assert d.binding.method == "POST"

    def test_request_body_info(self, catalog_entries):
        d = parse_entry(catalog_entries[3])

        assert d.binding.request_body.required is True
        assert d.binding.request_body.content_type == "application/json"

    def test_default_input_schema(self):
        d = parse_entry({"name": "t"})

        assert d.summary.input_schema == {"type": "object"}

    def test_summary_has_no_private_fields(self, catalog_entries):
        d = parse_entry(catalog_entries[1])

        assert "_original" not in json.dumps(d.summary.model_dump())

    def test_unbound_placeholder_rejected(self):
        entry = {
            "name": "broken",
            "_original_method": "GET",
            "_original_path": "/things/{thing_id}",
            "_original_parameters": [{"name": "thing_id", "in": "query", "required": True}],
        }

        with pytest.raises(CatalogError) as exc_info:
            parse_entry(entry)

        assert exc_info.value.tool_name == "broken"
        assert "thing_id" in exc_info.value.message

    def test_unknown_location_rejected(self):
        entry = {
            "name": "cookie",
            "_original_method": "GET",
            "_original_path": "/x",
            "_original_parameters": [{"name": "sid", "in": "cookie"}],
        }

        with pytest.raises(CatalogError):
            parse_entry(entry)

    def test_missing_name_rejected(self):
        with pytest.raises(CatalogError):
            parse_entry({"inputSchema": {}})


# =============================================================================
# Catalog
# =============================================================================


class TestCatalog:
    """Ordered registry behavior."""

    def test_order_preserved(self, catalog, catalog_entries):
        assert catalog.names() == [e["name"] for e in catalog_entries]
        assert [s.name for s in catalog.summaries()] == catalog.names()

    def test_lookups(self, catalog):
        assert "getBacklinks" in catalog
        assert "missing" not in catalog
        assert catalog.get("missing") is None
        assert catalog.binding("doc") is None
        assert catalog.binding("getBacklinks").path == "/site-explorer/all-backlinks"
        assert len(catalog) == 4

    def test_duplicate_names_rejected(self, catalog_entries):
        with pytest.raises(CatalogError) as exc_info:
            Catalog.from_entries(catalog_entries + [catalog_entries[1]])

        assert exc_info.value.tool_name == "getBacklinks"

    def test_descriptors_immutable(self, catalog):
        binding = catalog.binding("getBacklinks")

        with pytest.raises(Exception):
            binding.path = "/other"  # type: ignore[misc]


# =============================================================================
# Loading
# =============================================================================


class TestLoadCatalog:
    """Sources accepted by load_catalog."""

    def test_from_list(self, catalog_entries):
        assert len(load_catalog(catalog_entries)) == 4

    def test_from_tools_mapping(self, catalog_entries):
        assert load_catalog({"tools": catalog_entries}).names()[0] == "doc"

    def test_from_json_file(self, tmp_path, catalog_entries):
        path = tmp_path / "tools.json"
        path.write_text(json.dumps(catalog_entries), encoding="utf-8")

        assert len(load_catalog(path)) == 4
        assert len(load_catalog(str(path))) == 4

    def test_from_yaml_file(self, tmp_path, catalog_entries):
        path = tmp_path / "tools.yaml"
        path.write_text(yaml.safe_dump({"tools": catalog_entries}), encoding="utf-8")

        assert load_catalog(path).binding("createKeywordList").method == "POST"

    def test_from_json_string(self, catalog_entries):
        assert len(load_catalog(json.dumps(catalog_entries))) == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError):
            load_catalog(tmp_path / "nope.json")

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "tools.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CatalogError):
            load_catalog(path)

    @pytest.mark.parametrize("document", [{"no": "tools"}, "just a string", [1, 2]])
    def test_wrong_shape(self, document):
        with pytest.raises(CatalogError):
            load_catalog_document(document if not isinstance(document, str) else json.dumps(document))

    def test_bundled_example_catalog(self):
        catalog = load_catalog(EXAMPLE_CATALOG)

        assert catalog.names()[0] == "doc"
        assert catalog.binding("doc") is None
        assert catalog.binding("batch-analysis-batch-analysis").request_body.required is True
