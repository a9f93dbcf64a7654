from .core import Catalog, load_catalog, parse_entry
from .io import load_catalog_document
from .models import (
    OperationBinding,
    OperationDescriptor,
    ParameterLocation,
    ParameterSpec,
    RequestBodySpec,
    ToolSummary,
)

__all__ = [
    "Catalog",
    "OperationBinding",
    "OperationDescriptor",
    "ParameterLocation",
    "ParameterSpec",
    "RequestBodySpec",
    "ToolSummary",
    "load_catalog",
    "load_catalog_document",
    "parse_entry",
]
