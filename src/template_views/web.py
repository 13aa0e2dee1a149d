"""
aiohttp integration: serve views rendered by a ViewEngine.
"""
import logging
import os
from typing import Any, Dict, Mapping, Optional

from aiohttp import web

from .engine import ViewEngine
from .error.exceptions import ReadError

logger = logging.getLogger(__name__)

ENGINE_KEY = web.AppKey("template_views_engine", ViewEngine)
VIEWS_KEY = web.AppKey("template_views_views", str)
CACHE_KEY = web.AppKey("template_views_cache", bool)
CONTEXT_KEY = web.AppKey("template_views_context", dict)

def setup(
    app: web.Application,
    engine: ViewEngine,
    views_dir: str,
    cache: bool = True,
    context: Optional[Dict[str, Any]] = None,
) -> ViewEngine:
    """
    Attach a view engine to an application.

    Args:
        app: aiohttp application
        engine: View engine used for rendering
        views_dir: Views root; layouts and partials default to subdirectories
        cache: Whether renders use the engine caches
        context: Variables added to every render

    Returns:
        The engine
    """
    app[ENGINE_KEY] = engine
    app[VIEWS_KEY] = os.path.abspath(views_dir)
    app[CACHE_KEY] = cache
    app[CONTEXT_KEY] = dict(context or {})
    return engine

def get_engine(app: web.Application) -> ViewEngine:
    try:
        return app[ENGINE_KEY]
    except KeyError:
        raise RuntimeError("View engine is not set up for this application") from None

def view_path_for(engine: ViewEngine, views_dir: str, view: str) -> str:
    """Map a view name to its file under the views root."""
    if not os.path.splitext(view)[1]:
        view += engine.extname
    return os.path.abspath(os.path.join(views_dir, view))

async def render_string(
    view: str,
    request: web.Request,
    context: Optional[Mapping[str, Any]] = None,
    **options: Any,
) -> str:
    """
    Render a view for a request.

    Args:
        view: View name relative to the views root
        request: Current request
        context: Template variables
        **options: Engine options (``layout``, ``helpers``, ``partials``, ``cache``)

    Raises:
        web.HTTPNotFound: If the view file does not exist
    """
    app = request.app
    engine = get_engine(app)
    views_dir = app[VIEWS_KEY]
    view_path = view_path_for(engine, views_dir, view)

    render_options = {
        "settings": {"views": views_dir},
        "cache": app[CACHE_KEY],
        "request": request,
        **app[CONTEXT_KEY],
        **(context or {}),
        **options,
    }

    try:
        return await engine.render_view_async(view_path, render_options)
    except ReadError as e:
        if e.path == view_path:
            logger.info("View not found: %s", view)
            raise web.HTTPNotFound(text=f"View not found: {view}") from e
        raise

async def render_template(
    view: str,
    request: web.Request,
    context: Optional[Mapping[str, Any]] = None,
    *,
    status: int = 200,
    **options: Any,
) -> web.Response:
    """Render a view into a ``text/html`` response."""
    text = await render_string(view, request, context, **options)
    return web.Response(text=text, status=status, content_type="text/html")

def create_app(
    engine: ViewEngine,
    views_dir: str,
    default_view: str = "home",
    cache: bool = True,
    context: Optional[Dict[str, Any]] = None,
) -> web.Application:
    """
    Build an application serving ``GET /`` and ``GET /{view}``.
    """
    app = web.Application()
    setup(app, engine, views_dir, cache=cache, context=context)

    async def handle(request: web.Request) -> web.Response:
        view = request.match_info.get("view") or default_view
        return await render_template(view, request)

    app.router.add_get("/", handle)
    app.router.add_get("/{view:[A-Za-z0-9_\\-/]+}", handle)
    return app
