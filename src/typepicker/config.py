"""Configuration management for typepicker.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to TypePickerConfig constructor)
2. Environment variables (TYPEPICKER_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [templates]
    url = "http://localhost:10000"
    timeout_seconds = 20

Example environment variable override:
    TYPEPICKER_TEMPLATES__URL="http://codewind.internal:9090"
    TYPEPICKER_LOGGING__LEVEL=DEBUG
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TemplateSourceConfig(BaseSettings):
    """Template backend connection configuration.

    Attributes:
        url: Base URL of the template backend
        timeout_seconds: Request timeout in seconds
        max_retries: Retry attempts for transient failures
        show_enabled_only: Only request templates from enabled repositories
    """

    model_config = SettingsConfigDict(
        env_prefix="TYPEPICKER_TEMPLATES__",
        extra="forbid",
    )

    url: str = Field(
        default="http://localhost:10000",
        description="Template backend base URL",
    )
    timeout_seconds: int = Field(default=30, ge=1, le=300)
    max_retries: int = Field(default=2, ge=0, le=10)
    show_enabled_only: bool = Field(default=True)

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so endpoint paths can be appended."""
        return v.rstrip("/")


class InspectorConfig(BaseSettings):
    """Project inspection configuration.

    Attributes:
        enabled: Run detection when a project path is set
    """

    model_config = SettingsConfigDict(
        env_prefix="TYPEPICKER_INSPECTOR__",
        extra="forbid",
    )

    enabled: bool = Field(default=True)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="TYPEPICKER_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=10, ge=1, le=1000)
    retention_count: int = Field(default=5, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class TypePickerConfig(BaseSettings):
    """Root configuration for typepicker.

    Environment variable format for nested config:
        TYPEPICKER_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="TYPEPICKER_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    templates: TemplateSourceConfig = Field(default_factory=TemplateSourceConfig)
    inspector: InspectorConfig = Field(default_factory=InspectorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> TypePickerConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./typepicker.toml (current directory)
    3. ~/.config/typepicker/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        TypePickerConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path: Path | None = config_path
    else:
        search_paths = [
            Path.cwd() / "typepicker.toml",
            Path.home() / ".config" / "typepicker" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            try:
                toml_data = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {selected_path}: {e}") from e

    # Pydantic will automatically overlay environment variables
    try:
        return TypePickerConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
