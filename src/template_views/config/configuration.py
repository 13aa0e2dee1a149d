"""
Engine configuration with validation.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..error.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EXTNAME = ".html"
DEFAULT_LAYOUTS_DIR = "views/layouts/"
DEFAULT_PARTIALS_DIR = "views/partials/"

# Environment variables recognized by load_config, without prefix
ENV_FIELDS = ("extname", "layouts_dir", "partials_dir", "default_layout")

class EngineConfig(BaseModel):
    """Construction-time configuration for a view engine."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    extname: str = Field(default=DEFAULT_EXTNAME, description="Template file extension")
    layouts_dir: str = Field(default=DEFAULT_LAYOUTS_DIR, description="Directory holding layouts")
    partials_dir: Union[str, List[Any]] = Field(
        default=DEFAULT_PARTIALS_DIR,
        description="Partials directory, or a list of directories/source objects",
    )
    default_layout: Optional[str] = Field(default=None, description="Layout applied when a render names none")
    helpers: Dict[str, Callable] = Field(default_factory=dict, description="Helpers available to every template")
    compiler_options: Dict[str, Any] = Field(default_factory=dict, description="Options passed to the compiler")

    @field_validator("extname")
    @classmethod
    def normalize_extname(cls, value: str) -> str:
        """Make sure the extension starts with a dot."""
        if not value:
            raise ValueError("extname must not be empty")
        if not value.startswith("."):
            value = "." + value
        return value

    @field_validator("layouts_dir", mode="before")
    @classmethod
    def convert_path(cls, value: Any) -> Any:
        """Accept Path objects for directories."""
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @field_validator("partials_dir", mode="before")
    @classmethod
    def convert_partials_dir(cls, value: Any) -> Any:
        """Accept Path objects and tuples for partials directories."""
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        if isinstance(value, tuple):
            return list(value)
        return value

    @field_validator("default_layout", mode="before")
    @classmethod
    def convert_no_layout(cls, value: Any) -> Optional[str]:
        """Treat False and empty strings as 'no layout'."""
        if value is False or value == "":
            return None
        return value

    @field_validator("helpers", "compiler_options", mode="before")
    @classmethod
    def convert_none(cls, value: Any) -> Any:
        return {} if value is None else value

    def is_default(self, field: str) -> bool:
        """True when ``field`` was not set explicitly."""
        return field not in self.model_fields_set


def ensure_engine_config(config: Union[EngineConfig, Dict[str, Any], None] = None) -> EngineConfig:
    """Ensure a valid engine configuration."""
    if isinstance(config, EngineConfig):
        return config

    try:
        return EngineConfig(**(config or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file (YAML or JSON).

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If the file is not found or cannot be parsed
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    if path.suffix not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(f"Unsupported config file format: {file_path}")

    try:
        content = path.read_text(encoding="utf-8")

        if path.suffix == ".json":
            loaded_config = json.loads(content) or {}
        else:
            loaded_config = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format in {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format in {file_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {e}") from e

    if not isinstance(loaded_config, dict):
        raise ConfigurationError(f"Configuration in {file_path} must be a mapping")

    logger.debug("Loaded configuration from %s", file_path)
    return loaded_config


def load_configuration_from_env(env_prefix: str = "TEMPLATE_VIEWS_") -> Dict[str, Any]:
    """Collect configuration values from environment variables."""
    config = {}
    for field in ENV_FIELDS:
        value = os.environ.get(env_prefix + field.upper())
        if value is None:
            continue
        if field == "partials_dir" and os.pathsep in value:
            config[field] = [part for part in value.split(os.pathsep) if part]
        else:
            config[field] = value
    return config


def load_config(
    config_path: Optional[str] = None,
    env_prefix: str = "TEMPLATE_VIEWS_",
    overrides: Optional[Dict[str, Any]] = None,
) -> EngineConfig:
    """
    Load configuration from a file and the environment.

    Precedence, lowest first: file, environment, ``overrides``.

    Raises:
        ConfigurationError: If the file is unreadable or values are invalid
    """
    config: Dict[str, Any] = {}

    if config_path:
        logger.info("Loading configuration from %s", config_path)
        config.update(load_config_file(config_path))

    config.update(load_configuration_from_env(env_prefix))
    config.update(overrides or {})

    return ensure_engine_config(config)
