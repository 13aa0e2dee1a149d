"""
Template Views: a cached view engine with partials and layouts, rendered with Jinja2.
"""
from typing import Any, Dict, Union

from .cache import PathCache
from .compiler import CompiledTemplate, Jinja2Compiler
from .config import EngineConfig, load_config
from .engine import RenderOptions, ViewEngine
from .error import (
    CompileError,
    ConfigurationError,
    ListingError,
    ReadError,
    TemplateViewsError,
)
from .layout import resolve_layout_path
from .partials import DirectorySource, InlineSource

__version__ = "1.0.0"

def create(config: Union[EngineConfig, Dict[str, Any], None] = None, **kwargs: Any) -> ViewEngine:
    """
    Create a view engine from a configuration object or keyword options.

    Keyword options override the matching fields of ``config``.
    """
    if isinstance(config, EngineConfig):
        config = {name: getattr(config, name) for name in config.model_fields_set}
    config = {**(config or {}), **kwargs}
    return ViewEngine(config)

def view_engine(config: Union[EngineConfig, Dict[str, Any], None] = None, **kwargs: Any):
    """Return the ``render_view(view_path, options, callback)`` callable of a new engine."""
    return create(config, **kwargs).engine

__all__ = [
    "create",
    "view_engine",
    "ViewEngine",
    "RenderOptions",
    "EngineConfig",
    "load_config",
    "PathCache",
    "CompiledTemplate",
    "Jinja2Compiler",
    "DirectorySource",
    "InlineSource",
    "resolve_layout_path",
    "TemplateViewsError",
    "ListingError",
    "ReadError",
    "CompileError",
    "ConfigurationError",
    "__version__",
]
