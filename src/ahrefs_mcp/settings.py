"""Process configuration.

Settings are read once at startup and handed to the components that need
them; nothing on the request path reads the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from ahrefs_mcp.errors import ConfigurationError

__all__ = ["Settings", "DEFAULT_BASE_URL", "DEFAULT_PORT", "DEFAULT_TIMEOUT", "USER_AGENT"]

DEFAULT_BASE_URL = "https://api.ahrefs.com/v3"
DEFAULT_PORT = 3000
DEFAULT_TIMEOUT = 30.0
USER_AGENT = "ahrefs-mcp-server"
LOG_FORMATS = ("human", "json")


@dataclass(frozen=True)
class Settings:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    log_format: str = "human"
    catalog_path: Optional[Path] = None
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key is not configured", setting="API_KEY")
        if self.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be positive, got {self.timeout}", setting="API_TIMEOUT"
            )
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigurationError(
                f"Unknown log level {self.log_level!r}", setting="LOG_LEVEL"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Log format must be one of {', '.join(LOG_FORMATS)}, got {self.log_format!r}",
                setting="LOG_FORMAT",
            )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides) -> "Settings":
        """Build settings from environment variables.

        `overrides` win over the environment; None values are ignored so CLI
        options can be passed through unconditionally.
        """
        env = os.environ if env is None else env
        values: dict = {
            "api_key": env.get("API_KEY", ""),
            "base_url": env.get("API_BASE_URL") or DEFAULT_BASE_URL,
            "timeout": _parse_number(env, "API_TIMEOUT", float, DEFAULT_TIMEOUT),
            "host": env.get("HOST") or "0.0.0.0",
            "port": _parse_number(env, "PORT", int, DEFAULT_PORT),
            "log_level": (env.get("LOG_LEVEL") or "INFO").upper(),
            "log_format": env.get("LOG_FORMAT") or "human",
            "catalog_path": Path(env["AHREFS_MCP_CATALOG"]) if env.get("AHREFS_MCP_CATALOG") else None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides) -> "Settings":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def __repr__(self) -> str:
        return (
            f"Settings(base_url={self.base_url!r}, timeout={self.timeout}, "
            f"host={self.host!r}, port={self.port}, api_key='***')"
        )


def _parse_number(env: Mapping[str, str], name: str, kind: type, default):
    raw = env.get(name)
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", setting=name) from None
