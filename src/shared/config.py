"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from src.shared.constants import (
    DEFAULT_API_MARKER_SUFFIX,
    DEFAULT_COMPONENT_MARKERS,
    DEFAULT_HANDLER_MARKERS,
    DEFAULT_INJECTION_MARKERS,
    DEFAULT_SERVICE_MARKERS,
)
from src.shared.errors import ConfigurationError


class SharedConfig(BaseSettings):
    """Base configuration shared across all entry points."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class InspectorConfig(SharedConfig):
    """Configuration for the convention inspector."""
    handler_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HANDLER_MARKERS),
        validation_alias="INSPECTOR_HANDLER_MARKERS",
    )
    service_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SERVICE_MARKERS),
        validation_alias="INSPECTOR_SERVICE_MARKERS",
    )
    injection_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INJECTION_MARKERS),
        validation_alias="INSPECTOR_INJECTION_MARKERS",
    )
    component_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COMPONENT_MARKERS),
        validation_alias="INSPECTOR_COMPONENT_MARKERS",
    )
    api_marker_suffix: str = Field(
        default=DEFAULT_API_MARKER_SUFFIX,
        validation_alias="INSPECTOR_API_MARKER_SUFFIX",
    )
    query_timeout: float | None = Field(
        default=None, gt=0, validation_alias="INSPECTOR_QUERY_TIMEOUT"
    )
    source_glob: str = Field(
        default="**/*.java", validation_alias="INSPECTOR_SOURCE_GLOB"
    )


def load_inspector_config(path: Path | str | None = None) -> InspectorConfig:
    """Load inspector configuration, overlaying an optional YAML file.

    Environment variables still apply for keys the file does not set.
    Unknown keys are ignored so that forward-compatible config files work.

    Args:
        path: Path to config YAML.  If ``None`` or the file does not
              exist, returns env/default configuration.

    Returns:
        Populated configuration.

    Raises:
        ConfigurationError: If the file is not valid YAML or holds
            values of the wrong type.
    """
    if path is None:
        return InspectorConfig()

    path = Path(path)
    if not path.exists():
        return InspectorConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    valid = set(InspectorConfig.model_fields)
    picked = {k: v for k, v in raw.items() if k in valid}
    try:
        return InspectorConfig(**picked)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc
