from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "ParameterLocation",
    "ParameterSpec",
    "RequestBodySpec",
    "OperationBinding",
    "ToolSummary",
    "OperationDescriptor",
]

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


class ParameterSpec(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    location: ParameterLocation = Field(alias="in")
    required: bool = False


class RequestBodySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    required: bool = False
    content_type: Optional[str] = None


class OperationBinding(BaseModel):
    """Private HTTP details of a tool. Never exposed to callers."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    parameters: Tuple[ParameterSpec, ...] = ()
    request_body: Optional[RequestBodySpec] = None

    def placeholders(self) -> list[str]:
        return _PLACEHOLDER.findall(self.path)

    def unbound_placeholders(self) -> list[str]:
        """Placeholders in the path template with no path-located parameter."""
        declared = {p.name for p in self.parameters if p.location is ParameterLocation.PATH}
        return [name for name in self.placeholders() if name not in declared]


class ToolSummary(BaseModel):
    """What list-tools shows: name, description and input schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    input_schema: Dict[str, Any] = Field(default_factory=lambda: {"type": "object"})


class OperationDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: ToolSummary
    binding: Optional[OperationBinding] = None

    @property
    def name(self) -> str:
        return self.summary.name
