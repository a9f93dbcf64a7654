import os

from dotenv import find_dotenv, load_dotenv

__version__ = "1.0.0"

if not os.environ.get("AHREFS_MCP_ENV_LOADED"):
    load_dotenv(find_dotenv(usecwd=True))
    os.environ["AHREFS_MCP_ENV_LOADED"] = "1"

from ahrefs_mcp.catalog import Catalog, load_catalog
from ahrefs_mcp.dispatch import ToolDispatcher
from ahrefs_mcp.errors import (
    AhrefsMCPError,
    ArgumentValidationError,
    CatalogError,
    ConfigurationError,
    MissingBodyError,
    MissingParameterError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamNetworkError,
)
from ahrefs_mcp.logging import configure_logging, get_logger
from ahrefs_mcp.mapping import OutboundRequest, map_arguments
from ahrefs_mcp.settings import Settings
from ahrefs_mcp.translate import ErrorKind, ResultEnvelope, translate
from ahrefs_mcp.upstream import UpstreamInvoker, UpstreamResponse

__all__ = [
    "AhrefsMCPError",
    "ArgumentValidationError",
    "Catalog",
    "CatalogError",
    "ConfigurationError",
    "ErrorKind",
    "MissingBodyError",
    "MissingParameterError",
    "OutboundRequest",
    "ResultEnvelope",
    "Settings",
    "ToolDispatcher",
    "UpstreamError",
    "UpstreamHTTPError",
    "UpstreamInvoker",
    "UpstreamNetworkError",
    "UpstreamResponse",
    "__version__",
    "configure_logging",
    "get_logger",
    "load_catalog",
    "map_arguments",
    "translate",
]
