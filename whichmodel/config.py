#!/usr/bin/env python3
"""
Centralized configuration management for whichmodel.

Settings come from environment variables first, then from an optional YAML
config file, then from the defaults declared on the model.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Type

import yaml
from pydantic import Field, ValidationInfo, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .errors import AuthError

DEFAULT_RECOMMENDER_MODEL = "deepseek/deepseek-v3.2"
DEFAULT_CACHE_TTL_SECONDS = 3600
DEFAULT_REPLICATE_PRICE_TTL_SECONDS = 86_400
DEFAULT_REPLICATE_PRICE_MAX_STALE_SECONDS = 604_800
DEFAULT_REPLICATE_PRICE_FETCH_BUDGET = 40
DEFAULT_REPLICATE_PRICE_CONCURRENCY = 4

OPENROUTER_KEY_PREFIX = "sk-or-v1-"


def default_config_path(
    env: Optional[Mapping[str, str]] = None,
    platform: Optional[str] = None,
    home: Optional[Path] = None,
) -> Path:
    """Location of the user config file when WHICHMODEL_CONFIG is not set."""
    env = os.environ if env is None else env
    platform = sys.platform if platform is None else platform
    home = Path.home() if home is None else home

    if platform == "win32":
        app_data = env.get("APPDATA") or str(home)
        return Path(app_data) / "whichmodel" / "config.yaml"
    return home / ".config" / "whichmodel" / "config.yaml"


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the YAML config file, returning an empty dict if it is unusable.

    JSON files are accepted as well since YAML is a superset of JSON.
    """
    if path is None:
        override = os.environ.get("WHICHMODEL_CONFIG")
        path = Path(override) if override else default_config_path()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return {}

    return data if isinstance(data, dict) else {}


def resolve_cache_dir(
    env: Mapping[str, str],
    platform: str,
    home: Path,
) -> Path:
    """Resolve the cache root for this platform.

    Windows uses %LOCALAPPDATA%\\whichmodel\\cache, everything else follows
    XDG: $XDG_CACHE_HOME/whichmodel or ~/.cache/whichmodel.
    """
    if platform == "win32":
        local_app_data = env.get("LOCALAPPDATA") or str(home / "AppData" / "Local")
        return Path(local_app_data) / "whichmodel" / "cache"

    xdg_cache = env.get("XDG_CACHE_HOME") or str(home / ".cache")
    return Path(xdg_cache) / "whichmodel"


class ConfigFileSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by the YAML config file."""

    def __init__(self, settings_cls: Type[BaseSettings]):
        super().__init__(settings_cls)
        self._data = load_config_file()

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        # File keys are snake_case field names; the model validates by alias.
        key = field.validation_alias if isinstance(field.validation_alias, str) else field_name
        return self._data.get(field_name), key, False

    def __call__(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                values[key] = value
        return values


class WhichModelConfig(BaseSettings):
    """Main configuration for whichmodel."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # Recommender
    api_key: Optional[str] = Field(default=None, validation_alias="OPENROUTER_API_KEY")
    recommender_model: str = Field(
        default=DEFAULT_RECOMMENDER_MODEL, validation_alias="WHICHMODEL_MODEL"
    )

    # Catalog cache
    cache_ttl: int = Field(
        default=DEFAULT_CACHE_TTL_SECONDS, validation_alias="WHICHMODEL_CACHE_TTL"
    )
    cache_dir: Optional[Path] = Field(default=None, validation_alias="WHICHMODEL_CACHE_DIR")

    # Source credentials
    fal_api_key: Optional[str] = Field(default=None, validation_alias="FAL_API_KEY")
    replicate_api_token: Optional[str] = Field(
        default=None, validation_alias="REPLICATE_API_TOKEN"
    )
    elevenlabs_api_key: Optional[str] = Field(
        default=None, validation_alias="ELEVENLABS_API_KEY"
    )
    together_api_key: Optional[str] = Field(default=None, validation_alias="TOGETHER_API_KEY")

    # Replicate price enrichment
    replicate_price_ttl_seconds: int = Field(
        default=DEFAULT_REPLICATE_PRICE_TTL_SECONDS,
        validation_alias="WHICHMODEL_REPLICATE_PRICE_TTL_SECONDS",
    )
    replicate_price_max_stale_seconds: int = Field(
        default=DEFAULT_REPLICATE_PRICE_MAX_STALE_SECONDS,
        validation_alias="WHICHMODEL_REPLICATE_PRICE_MAX_STALE_SECONDS",
    )
    replicate_price_fetch_budget: int = Field(
        default=DEFAULT_REPLICATE_PRICE_FETCH_BUDGET,
        validation_alias="WHICHMODEL_REPLICATE_PRICE_FETCH_BUDGET",
    )
    replicate_price_concurrency: int = Field(
        default=DEFAULT_REPLICATE_PRICE_CONCURRENCY,
        validation_alias="WHICHMODEL_REPLICATE_PRICE_CONCURRENCY",
    )

    # Logging Configuration
    log_level: str = Field(default="WARNING", validation_alias="WHICHMODEL_LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="WHICHMODEL_LOG_FORMAT")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            ConfigFileSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("cache_ttl", "replicate_price_ttl_seconds", "replicate_price_max_stale_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("replicate_price_fetch_budget")
    @classmethod
    def validate_fetch_budget(cls, v: int) -> int:
        if v < 0:
            return DEFAULT_REPLICATE_PRICE_FETCH_BUDGET
        return v

    @field_validator("replicate_price_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            return DEFAULT_REPLICATE_PRICE_CONCURRENCY
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = {"console", "json"}
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    def resolved_cache_dir(self) -> Path:
        """Cache root, honoring the explicit override."""
        if self.cache_dir is not None:
            return self.cache_dir
        return resolve_cache_dir(os.environ, sys.platform, Path.home())

    def api_key_warning(self) -> Optional[str]:
        """Warning for keys that do not look like OpenRouter keys."""
        if self.api_key and not self.api_key.startswith(OPENROUTER_KEY_PREFIX):
            return (
                "API key doesn't look like an OpenRouter key "
                f"(should start with {OPENROUTER_KEY_PREFIX})"
            )
        return None


def require_api_key(config: WhichModelConfig) -> str:
    """Return the recommender API key or raise AuthError."""
    if not config.api_key:
        raise AuthError(
            "OPENROUTER_API_KEY is not set.",
            recovery_hint=(
                "Get your API key at: https://openrouter.ai/keys\n"
                "Then run:\n"
                "  export OPENROUTER_API_KEY=sk-or-..."
            ),
        )
    return config.api_key


# Global config instance
_config: Optional[WhichModelConfig] = None


def get_config() -> WhichModelConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = WhichModelConfig()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
