from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ahrefs_mcp.errors import CatalogError

__all__ = ["load_catalog_document", "CatalogSource"]

CatalogSource = Union[str, Path, List[Dict[str, Any]], Dict[str, Any]]


def load_catalog_document(source: CatalogSource) -> List[Dict[str, Any]]:
    """Load raw catalog entries from various sources.

    Supports:
    - List: the tool entries themselves
    - Dict: a document with a top-level "tools" list
    - Local file path: JSON or YAML
    - Raw JSON/YAML string

    Example:
        # Generated file
        entries = load_catalog_document("./tools.json")

        # Already parsed
        entries = load_catalog_document([{"name": "getBacklinks", ...}])
    """
    if isinstance(source, (list, dict)):
        return _entries(source)

    if isinstance(source, Path):
        if not source.is_file():
            raise CatalogError(f"Catalog file not found: {source}")
        return _entries(_load_file(source))

    p = Path(source)
    if _looks_like_path(source) and p.is_file():
        return _entries(_load_file(p))

    return _entries(_parse_string(source))


def _looks_like_path(text: str) -> bool:
    return "\n" not in text and not text.lstrip().startswith(("[", "{"))


def _load_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")

    if path.suffix == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CatalogError(f"Invalid JSON in {path}: {e}") from e
    return _parse_string(text)


def _parse_string(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CatalogError(f"Catalog is neither JSON nor YAML: {e}") from e


def _entries(document: Any) -> List[Dict[str, Any]]:
    if isinstance(document, dict):
        document = document.get("tools")
    if not isinstance(document, list):
        raise CatalogError("Catalog must be a list of tools or a mapping with a 'tools' list")
    for i, entry in enumerate(document):
        if not isinstance(entry, dict):
            raise CatalogError(f"Catalog entry #{i} is not an object")
    return document
