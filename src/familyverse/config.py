"""Central configuration for the FamilyVerse widget synchronizer.

This module is the single source of truth for settings. Every other module
that needs placeholders, status texts, key prefixes or logging options
imports from here.

The configuration system supports:
- Multi-source configuration (environment variables > config file > defaults)
- A configurable key-prefix policy for the two stored schemas
- Graceful degradation when the config file is missing or malformed

Example:
    >>> from familyverse.config import get_config
    >>> cfg = get_config()
    >>> cfg.display.placeholder_title
    'No comics yet'

Config File Format (YAML):
    ```yaml
    display:
      placeholder_title: No comics yet
      placeholder_author: Unknown
      placeholder_image: placeholder_memory
      status_done: "Picture taken today! 📸"
      status_pending: "Take a picture today! 📸"

    keys:
      prefixes: ["flutter.flutter.", ""]

    clock:
      timezone: Europe/Berlin   # omit for the system local zone

    logging:
      level: WARNING
      file: ~/.familyverse/logs/widget.log

    store_path: ~/.familyverse/FlutterSharedPreferences.xml
    ```
"""

from __future__ import annotations

import functools
import logging
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from familyverse.core.schema import DEFAULT_PREFIXES, KeySchema
from familyverse.errors import ConfigError, ConfigFileError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".familyverse"


# =============================================================================
# Sections
# =============================================================================


class DisplayConfig(BaseModel):
    """Fixed texts and resources shown when data is missing.

    Attributes:
        placeholder_title: Title shown without a featured memory, and whenever
            the cover image fails to decode.
        placeholder_author: Author shown when none was stored.
        placeholder_image: Resource name the renderer paints instead of a cover.
        status_done: Status slot text once today's picture exists.
        status_pending: Status slot text before today's picture.
    """

    placeholder_title: str = Field(default="No comics yet", min_length=1)
    placeholder_author: str = Field(default="Unknown", min_length=1)
    placeholder_image: str = Field(default="placeholder_memory", min_length=1)
    status_done: str = "Picture taken today! 📸"
    status_pending: str = "Take a picture today! 📸"

    @field_validator("placeholder_title", "placeholder_author")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("placeholder text must not be blank")
        return v


class KeysConfig(BaseModel):
    """Which stored key family wins.

    Prefixes are tried in order against every bare key; ``""`` is the legacy
    unprefixed family.
    """

    prefixes: list[str] = Field(default_factory=lambda: list(DEFAULT_PREFIXES))

    def build_schema(self) -> KeySchema:
        return KeySchema.from_prefixes(self.prefixes)


class ClockConfig(BaseModel):
    """Time zone that defines "today" and the calendar date labels."""

    timezone: str | None = Field(
        default=None, description="IANA zone name. None means the system local zone."
    )

    @field_validator("timezone")
    @classmethod
    def known_zone(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    def get_tzinfo(self) -> tzinfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None


class LoggingConfig(BaseModel):
    """Log level and optional log file."""

    level: str = "WARNING"
    file: Path | None = None

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        if isinstance(v, (str, Path)) and str(v):
            return Path(v).expanduser()
        return v


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Configuration priority (highest wins):
    1. Environment variables (FAMILYVERSE_*, nested with ``__``)
    2. Config file (YAML)
    3. In-code defaults

    Example:
        >>> # FAMILYVERSE_CLOCK__TIMEZONE=UTC overrides clock.timezone
        >>> config = AppConfig()
        >>> config.keys.prefixes
        ['flutter.flutter.', '']
    """

    display: DisplayConfig = Field(default_factory=DisplayConfig)
    keys: KeysConfig = Field(default_factory=KeysConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    store_path: Path | None = Field(
        default=None, description="Default preferences file for the CLI."
    )
    debug: bool = False

    model_config = {
        "env_prefix": "FAMILYVERSE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("store_path", mode="before")
    @classmethod
    def expand_store_path(cls, v: Any) -> Any:
        if isinstance(v, (str, Path)) and str(v):
            return Path(v).expanduser()
        return v


# =============================================================================
# Module-Level Functions
# =============================================================================


def _read_yaml(config_file: Path) -> dict[str, Any]:
    try:
        content = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {config_file}: {e}") from e

    try:
        loaded = yaml.safe_load(content) if content.strip() else None
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Malformed YAML in {config_file}: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(f"Config file {config_file} must contain a mapping")
    return loaded


def load_config(path: Path | None = None, strict: bool = False) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, defaults and environment are used (not an
    error). A malformed file logs a warning and falls back to defaults,
    unless ``strict`` is set.

    Args:
        path: Explicit config file; the default locations are not searched
            when given. If None, searches default locations.
        strict: Raise instead of falling back on bad files or values.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: In strict mode, if the file is unreadable or malformed.
        ConfigError: In strict mode, if values fail validation.
    """
    if path is not None:
        # An explicit file is the only candidate, even when it is missing
        search_paths = [path]
    else:
        search_paths = [
            Path("./familyverse.yaml"),
            Path("./familyverse.yml"),
            DEFAULT_CONFIG_DIR / "config.yaml",
            DEFAULT_CONFIG_DIR / "config.yml",
        ]
    config_file = next((p for p in search_paths if p.exists()), None)

    if path is not None and config_file is None:
        message = f"Config file not found: {path}"
        if strict:
            raise ConfigFileError(message)
        logger.warning(f"{message}. Using defaults.")

    config_data: dict[str, Any] = {}
    if config_file is not None:
        try:
            config_data = _read_yaml(config_file)
        except ConfigFileError as e:
            if strict:
                raise
            logger.warning(f"{e}. Using defaults.")

    try:
        # Init kwargs outrank env in pydantic-settings, so env sections are layered on top
        env_config = AppConfig()
        merged = _deep_merge(config_data, env_config.model_dump(exclude_unset=True))
        config = AppConfig(**merged)
    except Exception as e:
        if strict:
            raise ConfigError(f"Invalid configuration values: {e}") from e
        logger.warning(f"Error parsing config values: {e}. Using defaults.")
        return AppConfig.model_construct()

    logger.debug(f"Configuration loaded from {config_file or 'defaults'}")
    return config


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Example:
        >>> from familyverse.config import get_config
        >>> cfg = get_config()
        >>> print(cfg.clock.timezone)
    """
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache for testing.

    After calling this, the next call to get_config() reloads from sources.
    """
    get_config.cache_clear()
