"""Central Configuration System for Cultural Footprint.

This module is the single source of truth for application configuration.
Every other module that needs settings imports from here.

Configuration priority (highest wins):
1. Environment variables (FOOTPRINT_*, nested with "__")
2. Config file (YAML)
3. In-code defaults

Example:
    >>> from footprint.config import get_config, get_api_key
    >>> cfg = get_config()
    >>> print(cfg.ai.model_name)
    gemini-2.5-flash

Config File Format (YAML):
    ```yaml
    ai:
      enabled: true
      model_name: gemini-2.5-flash
      temperature: 0.4
      timeout_seconds: 60

    paths:
      data_dir: ~/.footprint

    storage:
      entries_key: media_tracker_entries
      messages_key: guestbook_messages
      zoom_key: timeline_zoom

    debug: false
    ```
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# Configure module logger - never log secrets
logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Raised when a config file exists but cannot be read or parsed."""

    pass


class APIKeyNotFoundError(ConfigError):
    """Raised when no Gemini API key is configured."""

    pass


# =============================================================================
# Configuration Models
# =============================================================================


class AIConfig(BaseModel):
    """Configuration for Gemini-backed entry ingestion.

    Attributes:
        enabled: Whether AI ingestion may be attempted at all.
        model_name: Gemini model identifier.
        temperature: Sampling temperature (0.0=deterministic, 2.0=creative).
        timeout_seconds: Upper bound for a single ingestion request.
    """

    enabled: bool = Field(default=True, description="Allow AI-assisted ingestion.")
    model_name: str = Field(default="gemini-2.5-flash", description="Gemini model identifier.")
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (0=deterministic, 2=creative).",
    )
    timeout_seconds: int = Field(
        default=60, ge=5, le=600, description="Request timeout in seconds."
    )


class PathsConfig(BaseModel):
    """Filesystem locations used by the application.

    Attributes:
        data_dir: Directory holding the persisted blobs. Default ~/.footprint
        log_dir: Directory for log files. Default: data_dir/logs
    """

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".footprint",
        description="Directory for persisted entries and messages.",
    )
    log_dir: Path | None = Field(default=None, description="Log directory.")

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        """Expand ~ in user-supplied paths."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    @model_validator(mode="after")
    def resolve_defaults(self) -> "PathsConfig":
        """Resolve None defaults relative to data_dir."""
        if self.log_dir is None:
            object.__setattr__(self, "log_dir", self.data_dir / "logs")
        else:
            object.__setattr__(self, "log_dir", Path(self.log_dir).expanduser())
        return self

    def ensure_dirs_exist(self) -> None:
        """Create all configured directories if they don't exist."""
        for directory in [self.data_dir, self.log_dir]:
            if directory is not None:
                directory.mkdir(parents=True, exist_ok=True)


class StorageConfig(BaseModel):
    """Names of the independent persisted blobs."""

    entries_key: str = "media_tracker_entries"
    messages_key: str = "guestbook_messages"
    zoom_key: str = "timeline_zoom"


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Attributes:
        ai: Gemini ingestion settings.
        paths: Filesystem path configuration.
        storage: Persisted blob keys.
        api_key: Gemini API key, read from GEMINI_API_KEY or FOOTPRINT_API_KEY.
        debug: Enable debug logging.
    """

    ai: AIConfig = Field(default_factory=AIConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "FOOTPRINT_API_KEY"),
    )
    debug: bool = Field(default=False, description="Enable debug mode.")

    model_config = SettingsConfigDict(
        env_prefix="FOOTPRINT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values read from the YAML file (passed as init kwargs)
        return env_settings, init_settings, file_secret_settings

    def is_ai_available(self) -> bool:
        """Check if AI is enabled AND an API key is configured."""
        return self.ai.enabled and self.api_key is not None


# =============================================================================
# Module-Level Functions
# =============================================================================


def _default_search_paths() -> list[Path]:
    return [
        Path("./footprint.yaml"),
        Path("./footprint.yml"),
        Path.home() / ".footprint" / "config.yaml",
    ]


def _read_yaml(config_file: Path) -> dict[str, Any]:
    try:
        content = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Failed to read config file {config_file}: {e}") from e

    if not content.strip():
        return {}

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in config file {config_file}: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(f"Config file {config_file} must contain a mapping")
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error).
    If the config file or an environment override is invalid, logs a warning
    and falls back (file values dropped first, then environment). Never raises.

    Args:
        path: Optional path to config file. If None, searches default locations.

    Returns:
        Fully-populated AppConfig instance.
    """
    search_paths = [path] if path is not None else _default_search_paths()
    config_file = next((p for p in search_paths if p.exists()), None)

    config_data: dict[str, Any] = {}
    if config_file is not None:
        try:
            config_data = _read_yaml(config_file)
            logger.debug(f"Loaded configuration from {config_file}")
        except ConfigFileError as e:
            logger.warning(f"{e}. Using defaults.")

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        logger.warning(f"Error parsing config values: {e.error_count()} invalid field(s).")

    if config_data:
        try:
            config = AppConfig()
            logger.warning(f"Ignoring values from {config_file}.")
            return config
        except ValidationError as e:
            logger.warning(f"Invalid FOOTPRINT_* environment values: {e.error_count()} field(s).")

    logger.warning("Using default configuration; environment overrides are ignored.")
    # model_construct() skips every settings source, including the environment
    return AppConfig.model_construct()


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton."""
    return load_config()


def get_api_key() -> SecretStr:
    """Convenience function to get the Gemini API key.

    Returns:
        SecretStr wrapper around the API key.

    Raises:
        APIKeyNotFoundError: If no API key is configured.
    """
    key = get_config().api_key
    if key is None or not key.get_secret_value().strip():
        raise APIKeyNotFoundError(
            "No API key found. Set the GEMINI_API_KEY environment variable."
        )
    return key


def reset_config() -> None:
    """Clear the configuration cache so the next get_config() reloads."""
    get_config.cache_clear()
