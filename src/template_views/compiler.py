"""
Template compilation: the Jinja2 compiler boundary and the cached compiler.
"""
import json
import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

import yaml
from jinja2 import Environment, Template, TemplateSyntaxError, select_autoescape
from markupsafe import Markup

from .cache import PathCache, normalize_key
from .error.exceptions import CompileError, ErrorContext
from .loader import FileReader

logger = logging.getLogger(__name__)

# Model key carrying render metadata (helpers, partials, file path)
META_KEY = "view"

ENVIRONMENT_OPTIONS = (
    "autoescape",
    "trim_blocks",
    "lstrip_blocks",
    "keep_trailing_newline",
    "extensions",
)

@runtime_checkable
class TemplateCompilerEngine(Protocol):
    """Protocol for the external template compiler."""

    def compile(self, text: str, options: Mapping[str, Any]) -> Callable[[Dict[str, Any]], str]:
        """
        Compile template text into a callable template.

        Args:
            text: Raw template source
            options: Compiler options

        Returns:
            Callable taking a model and returning rendered text
        """
        ...

class CompiledTemplate:
    """Callable handle around a compiled Jinja2 template."""

    def __init__(self, template: Template, name: Optional[str] = None):
        self.template = template
        self.name = name

    def __call__(self, model: Optional[Dict[str, Any]] = None, **extra: Any) -> Markup:
        model = {**(model or {}), **extra}
        namespace: Dict[str, Any] = {}

        meta = model.get(META_KEY)
        partials = getattr(meta, "partials", None) or {}
        helpers = getattr(meta, "helpers", None) or {}
        namespace.update(helpers)
        namespace["partials"] = partials

        def partial(name: str, **kwargs: Any) -> Markup:
            try:
                handle = partials[name]
            except KeyError:
                raise KeyError(f"Partial not found: {name}") from None
            return handle({**model, **kwargs})

        namespace["partial"] = partial
        namespace.update(model)

        return Markup(self.template.render(namespace))

    def __repr__(self) -> str:
        return f"<CompiledTemplate {self.name or '(string)'}>"

class Jinja2Compiler:
    """Compiles template text with Jinja2."""

    def __init__(self):
        self._environments: Dict[Tuple, Environment] = {}

    def environment(self, options: Optional[Mapping[str, Any]] = None) -> Environment:
        """Return the Jinja2 environment for a set of compiler options."""
        settings = {k: options[k] for k in ENVIRONMENT_OPTIONS if options and k in options}
        key = tuple(sorted((k, repr(v)) for k, v in settings.items()))

        env = self._environments.get(key)
        if env is None:
            settings.setdefault("autoescape", select_autoescape(["html", "xml"]))
            env = Environment(**settings)
            env.filters.update({
                "to_json": lambda obj: json.dumps(obj, indent=2),
                "to_yaml": lambda obj: yaml.dump(obj, default_flow_style=False),
                "basename": lambda p: os.path.basename(p) if p else "",
                "dirname": lambda p: os.path.dirname(p) if p else "",
            })
            self._environments[key] = env
        return env

    def compile(self, text: str, options: Optional[Mapping[str, Any]] = None) -> CompiledTemplate:
        """
        Compile template text.

        Raises:
            jinja2.TemplateSyntaxError: If the source is not a valid template
        """
        name = options.get("name") if options else None
        template = self.environment(options).from_string(text)
        return CompiledTemplate(template, name)

class TemplateCompiler:
    """Reads and compiles templates, backed by its own PathCache."""

    def __init__(
        self,
        reader: FileReader,
        compiler: Optional[TemplateCompilerEngine] = None,
        compiler_options: Optional[Mapping[str, Any]] = None,
        cache: Optional[PathCache] = None,
    ):
        self.reader = reader
        self.compiler = compiler or Jinja2Compiler()
        self.compiler_options = dict(compiler_options or {})
        self.cache = cache if cache is not None else PathCache("template")

    async def compile(self, file_path: str, use_cache: bool = False) -> Callable[[Dict[str, Any]], str]:
        """
        Read and compile a template file.

        Args:
            file_path: Template file path
            use_cache: Whether to reuse/populate the file and template caches

        Returns:
            Compiled template handle

        Raises:
            ReadError: If the file cannot be read
            CompileError: If the compiler rejects the source
        """
        file_path = normalize_key(file_path)

        async def compute():
            text = await self.reader.read(file_path, use_cache)
            options = {**self.compiler_options, "compiler": self.compiler, "name": file_path}
            try:
                template = self.compiler.compile(text, options)
            except TemplateSyntaxError as e:
                logger.error("Template syntax error in %s line %s: %s", file_path, e.lineno, e.message)
                raise CompileError(
                    f"Unable to compile template {file_path}: {e}",
                    ErrorContext("TemplateCompiler", "compile"),
                    path=file_path,
                    details={"line": e.lineno},
                ) from e
            logger.debug("Compiled template %s", file_path)
            return template

        return await self.cache.get(file_path, compute, use_cache)
