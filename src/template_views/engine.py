"""
View engine: renders views through the caches, partials and an optional layout.
"""
import asyncio
import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .cache import PathCache, normalize_key
from .compiler import META_KEY, TemplateCompiler, TemplateCompilerEngine
from .config.configuration import EngineConfig, ensure_engine_config
from .layout import resolve_layout_path
from .loader import DirectoryLister, FileReader
from .partials import PartialsAggregator, get_template_name
from .utils.logging import get_logger

logger = logging.getLogger(__name__)

# Host option keys consumed by the engine rather than passed to templates
ENGINE_OPTION_KEYS = ("cache", "layout", "helpers", "partials")

RenderCallback = Callable[[Optional[BaseException], Optional[str]], Any]

class RenderOptions(BaseModel):
    """Per-render options."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    cache: bool = False
    view: Optional[str] = None
    layout: Optional[str] = None
    helpers: Optional[Dict[str, Callable]] = None
    partials: Optional[Dict[str, Any]] = None
    partials_dir: Optional[Any] = None

    @field_validator("layout", mode="before")
    @classmethod
    def convert_no_layout(cls, value: Any) -> Optional[str]:
        """Treat False and empty strings as 'no layout'."""
        if value is False or value == "":
            return None
        return value

class RenderMeta(BaseModel):
    """Render metadata exposed to templates under the ``view`` key."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    file_path: str
    view: Optional[str] = None
    layout: Optional[str] = None
    cache: bool = False
    helpers: Dict[str, Callable] = {}
    partials: Dict[str, Any] = {}

class ViewEngine:
    """
    Resolves views to rendered text.

    Holds three caches (directory listings, file contents, compiled
    templates) for the lifetime of the instance. Renders opt into them with
    the ``cache`` option.
    """

    def __init__(
        self,
        config: Union[EngineConfig, Dict[str, Any], None] = None,
        compiler: Optional[TemplateCompilerEngine] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration or a dictionary of its fields
            compiler: External template compiler (Jinja2 by default)
        """
        self.config = ensure_engine_config(config)

        self.directory_cache = PathCache("directory")
        self.file_cache = PathCache("file")
        self.template_cache = PathCache("template")

        self.lister = DirectoryLister(self.config.extname, self.directory_cache)
        self.reader = FileReader(self.file_cache)
        self.compiler = TemplateCompiler(
            self.reader,
            compiler=compiler,
            compiler_options=self.config.compiler_options,
            cache=self.template_cache,
        )
        self.partials = PartialsAggregator(self.lister, self.compiler, self.config.extname)

        # Host framework integration point
        self.engine = self.render_view

    @property
    def extname(self) -> str:
        return self.config.extname

    def reset_cache(self) -> None:
        """Empty all caches."""
        self.directory_cache.clear()
        self.file_cache.clear()
        self.template_cache.clear()

    async def get_template(self, file_path: str, cache: bool = False) -> Callable:
        return await self.compiler.compile(file_path, cache)

    async def get_partials(self, cache: bool = False, partials_dir: Optional[Any] = None) -> Dict[str, Any]:
        """Aggregate partials from ``partials_dir``, or the configured sources."""
        sources = self.config.partials_dir if partials_dir is None else partials_dir
        return await self.partials.aggregate(sources, cache)

    async def render(
        self,
        file_path: str,
        context: Optional[Mapping[str, Any]] = None,
        options: Optional[RenderOptions] = None,
    ) -> str:
        """
        Render a template file.

        The template and the partials are requested concurrently. Partials
        supplied in ``options`` are used as is, without discovery.

        Args:
            file_path: Template file path
            context: Template variables
            options: Render options

        Returns:
            Rendered text
        """
        template, options = await self.load(file_path, options or RenderOptions())
        return self.apply_template(template, file_path, context, options)

    async def load(self, file_path: str, options: RenderOptions) -> Tuple[Callable, RenderOptions]:
        """Compile a template and resolve the partials it renders with."""
        if options.partials is not None:
            return await self.get_template(file_path, options.cache), options

        template, partials = await asyncio.gather(
            self.get_template(file_path, options.cache),
            self.get_partials(options.cache, options.partials_dir),
        )
        return template, options.model_copy(update={"partials": partials})

    def apply_template(
        self,
        template: Callable,
        file_path: str,
        context: Optional[Mapping[str, Any]],
        options: RenderOptions,
    ) -> str:
        """Call a compiled template with the context and its render metadata."""
        context = context or {}
        if META_KEY in context:
            logger.debug("Template variable %r in %s replaced by render metadata", META_KEY, file_path)

        helpers = self.config.helpers if options.helpers is None else options.helpers
        meta = RenderMeta(
            file_path=normalize_key(file_path),
            view=options.view,
            layout=options.layout,
            cache=options.cache,
            helpers=helpers,
            partials=options.partials or {},
        )

        model = {**context, META_KEY: meta}
        return template(model)

    async def render_view_async(self, view_path: str, options: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render a view, wrapped in its layout when one applies.

        Partials are aggregated once and shared by the view and its layout.
        A host option named ``view`` is not visible to templates: that key
        holds the render metadata.

        Args:
            view_path: View file path
            options: Host options: ``settings``, ``cache``, ``layout``,
                ``helpers``, ``partials`` plus the template variables

        Returns:
            Rendered text
        """
        options = dict(options or {})
        config = self.config

        view = None
        partials_dir = config.partials_dir
        layouts_dir = config.layouts_dir

        # Layout and partial directories default to subdirectories of the
        # host's views root when it is known.
        settings = options.get("settings") or {}
        views_path = settings.get("views") if isinstance(settings, Mapping) else None
        if isinstance(views_path, (str, os.PathLike)):
            views_path = os.fspath(views_path)
            view = get_template_name(os.path.relpath(view_path, views_path), extname=self.extname)
            if config.is_default("partials_dir"):
                partials_dir = os.path.join(views_path, "partials/")
            if config.is_default("layouts_dir"):
                layouts_dir = os.path.join(views_path, "layouts/")

        render_logger = get_logger(__name__, view=view or view_path)

        # Render-level helpers override instance-level ones
        helpers = {**config.helpers, **(options.get("helpers") or {})}

        render_options = RenderOptions(
            cache=bool(options.get("cache")),
            view=view,
            layout=options["layout"] if "layout" in options else config.default_layout,
            helpers=helpers,
            partials=options.get("partials"),
            partials_dir=partials_dir,
        )
        context = {k: v for k, v in options.items() if k not in ENGINE_OPTION_KEYS}

        template, render_options = await self.load(view_path, render_options)
        body = self.apply_template(template, view_path, context, render_options)

        layout_path = resolve_layout_path(layouts_dir, render_options.layout, self.extname)
        if not layout_path:
            return str(body)

        render_logger.debug("Rendering layout %s", layout_path)
        result = await self.render(
            layout_path,
            {**context, "body": body},
            render_options.model_copy(update={"layout": None}),
        )
        return str(result)

    def render_view(
        self,
        view_path: str,
        options: Optional[Mapping[str, Any]],
        callback: RenderCallback,
    ) -> "asyncio.Task[str]":
        """
        Render a view and deliver the outcome to ``callback``.

        ``callback(error, text)`` is called exactly once on a later loop turn:
        with ``(None, text)`` on success or ``(error, None)`` on failure.
        Must be called from a running event loop.

        Returns:
            The render task
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.render_view_async(view_path, options))

        def deliver(done: "asyncio.Task[str]") -> None:
            if done.cancelled():
                loop.call_soon(callback, asyncio.CancelledError(), None)
                return

            error = done.exception()
            if error is not None:
                logger.error("Failed to render view %s: %s", view_path, error)
                loop.call_soon(callback, error, None)
            else:
                loop.call_soon(callback, None, done.result())

        task.add_done_callback(deliver)
        return task
