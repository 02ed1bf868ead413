"""Generator configuration and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .json_types import JSONValue


class ConfigLoadError(RuntimeError):
    """Raised when a configuration file cannot be loaded."""


class InfoConfig(BaseModel):
    """Values for the document ``info`` block."""

    model_config = ConfigDict(extra="forbid")

    version: str = "0.0.1"
    description: str = ""


class GeneratorConfig(BaseModel):
    """Read-only settings consumed by route discovery and document assembly."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    api_path: str = "api"
    webhook_path: str = "webhooks"
    api_domain: Optional[str] = None
    servers: dict[str, str] = Field(default_factory=dict)
    app_name: str = "Application"
    app_url: str = "http://localhost"
    info: InfoConfig = Field(default_factory=InfoConfig)
    debug: bool = False

    @property
    def default_protocol(self) -> str:
        """Protocol of ``app_url``, used for domains configured without one."""
        protocol, separator, _ = self.app_url.partition("://")
        return protocol if separator else "http"

    def url(self, path: str) -> str:
        """Make ``path`` absolute against ``app_url`` unless it already is."""
        if "://" in path:
            return path.rstrip("/")
        base = self.app_url.rstrip("/")
        relative = path.strip("/")
        return f"{base}/{relative}" if relative else base


def load_config(path: Path) -> GeneratorConfig:
    """Load and validate a generator configuration from YAML.

    Args:
        path (Path): Path to the YAML configuration file.

    Returns:
        GeneratorConfig: Validated configuration; defaults for an empty file.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigLoadError(f"Failed to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    payload_value: JSONValue = payload
    if payload_value is None:
        return GeneratorConfig()
    if not isinstance(payload_value, dict):
        raise ConfigLoadError(
            f"Config document must deserialize to a mapping, got {type(payload_value)!r}"
        )

    try:
        return GeneratorConfig.model_validate(payload_value)
    except ValidationError as exc:
        raise ConfigLoadError(f"Config validation failed for {path}: {exc}") from exc
