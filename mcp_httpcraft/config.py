"""Unified configuration management using YAML with environment overlay."""

import os
import sys
import logging
from pathlib import Path
from functools import lru_cache
from typing import Optional, Dict, Any, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Configuration file path
CONFIG_FILE = Path("config.yaml")
CONFIG_FILE_ENV = "MCP_HTTPCRAFT_CONFIG_FILE"


class HttpCraftConfig(BaseModel):
    """Settings for launching the external httpcraft executable."""

    path: str = Field("httpcraft", description="Executable path or name on PATH")
    timeout: float = Field(30.0, description="Request timeout in seconds", gt=0)
    chain_timeout: float = Field(
        60.0, description="Chain timeout in seconds (chains run longer)", gt=0
    )
    max_buffer: int = Field(
        10 * 1024 * 1024, description="Maximum bytes captured per stream", ge=1
    )
    kill_grace: float = Field(
        5.0, description="Seconds between SIGTERM and SIGKILL", gt=0
    )
    cwd: Optional[str] = Field(None, description="Default working directory")


class DecoderConfig(BaseModel):
    """Settings for response decoding."""

    max_response_size: int = Field(
        10 * 1024 * 1024, description="Largest stdout accepted by the decoder", ge=1
    )
    validate_structure: bool = Field(
        True, description="Attach advisory validation warnings to responses"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Logging level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class Settings(BaseSettings):
    """Unified settings for the httpcraft bridge."""

    httpcraft: HttpCraftConfig = Field(default_factory=HttpCraftConfig)
    decoder: DecoderConfig = Field(default_factory=DecoderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",  # Allows HTTPCRAFT__TIMEOUT env var
        extra="ignore",
        validate_default=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Customize settings sources to include the YAML file and legacy env vars."""
        from pydantic_settings.sources import PydanticBaseSettingsSource

        class YamlConfigSource(PydanticBaseSettingsSource):
            """Load settings from the YAML config file."""

            def get_field_value(
                self, field: FieldInfo, field_name: str
            ) -> Tuple[Any, str, bool]:
                data = self()
                if field_name in data:
                    return data[field_name], field_name, True
                return None, field_name, False

            def __call__(self) -> Dict[str, Any]:
                return cls._yaml_config_source()

        class LegacyEnvVars(PydanticBaseSettingsSource):
            """Load legacy flat environment variables."""

            def get_field_value(
                self, field: FieldInfo, field_name: str
            ) -> Tuple[Any, str, bool]:
                data = self()
                if field_name in data:
                    return data[field_name], field_name, True
                return None, field_name, False

            def __call__(self) -> Dict[str, Any]:
                return cls._legacy_env_source()

        # Precedence (first source wins): init > nested env > legacy env > yaml
        return (
            init_settings,
            env_settings,
            LegacyEnvVars(settings_cls),
            YamlConfigSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def _yaml_config_source(cls) -> Dict[str, Any]:
        """Load configuration from the YAML file."""
        # Under pytest the default config.yaml is ignored unless a file is
        # named explicitly, so a developer's local config cannot leak in.
        if "pytest" in sys.modules and CONFIG_FILE_ENV not in os.environ:
            return {}

        config_file = Path(os.getenv(CONFIG_FILE_ENV, str(CONFIG_FILE)))
        if not config_file.exists():
            return {}

        try:
            with open(config_file) as f:
                config_data = yaml.safe_load(f) or {}
            logger.debug(f"Loaded configuration from {config_file}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load {config_file}: {e}")
            return {}

        if not isinstance(config_data, dict):
            logger.warning(f"Ignoring {config_file}: top level must be a mapping")
            return {}

        # "decoder:" with no content loads as None
        for key in list(config_data.keys()):
            if config_data[key] is None:
                config_data[key] = {}

        return config_data

    @classmethod
    def _legacy_env_source(cls) -> Dict[str, Any]:
        """Support legacy flat environment variables."""
        config_data: Dict[str, Any] = {}

        legacy_mappings = {
            "HTTPCRAFT_PATH": ("httpcraft", "path"),
            "HTTPCRAFT_TIMEOUT": ("httpcraft", "timeout"),
            "HTTPCRAFT_MAX_BUFFER": ("httpcraft", "max_buffer"),
            "HTTPCRAFT_MAX_RESPONSE_SIZE": ("decoder", "max_response_size"),
            "LOG_LEVEL": ("logging", "level"),
        }

        for env_key, path in legacy_mappings.items():
            value = os.getenv(env_key)
            if value is None:
                value = os.getenv(env_key.lower())

            if value is not None:
                current = config_data
                for key in path[:-1]:
                    current = current.setdefault(key, {})
                current[path[-1]] = value

        return config_data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
