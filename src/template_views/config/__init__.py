"""
Configuration loading and validation.
"""
from .configuration import (
    DEFAULT_EXTNAME,
    DEFAULT_LAYOUTS_DIR,
    DEFAULT_PARTIALS_DIR,
    EngineConfig,
    ensure_engine_config,
    load_config,
    load_config_file,
    load_configuration_from_env,
)

__all__ = [
    'DEFAULT_EXTNAME',
    'DEFAULT_LAYOUTS_DIR',
    'DEFAULT_PARTIALS_DIR',
    'EngineConfig',
    'ensure_engine_config',
    'load_config',
    'load_config_file',
    'load_configuration_from_env',
]
