import os
import json
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from aiohttp import web
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config.configuration import load_config
from .engine import ViewEngine
from .error.exceptions import TemplateViewsError
from .utils.logging import configure_logging
from .web import create_app, view_path_for

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="template-views",
    help="Render views with partials and layouts"
)
console = Console()
logger = logging.getLogger("template-views")

def load_context(file_path: Optional[Path]) -> Dict[str, Any]:
    """
    Load template variables from a YAML or JSON file.

    Raises:
        typer.BadParameter: If the file cannot be parsed into a mapping
    """
    if file_path is None:
        return {}

    try:
        content = file_path.read_text(encoding="utf-8")
        if file_path.suffix == ".json":
            context = json.loads(content)
        else:
            context = yaml.safe_load(content)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise typer.BadParameter(f"Cannot load context from {file_path}: {e}")

    if context is None:
        return {}
    if not isinstance(context, dict):
        raise typer.BadParameter(f"Context in {file_path} must be a mapping")
    return context

def build_engine(config_path: Optional[Path], extname: Optional[str]) -> ViewEngine:
    overrides = {"extname": extname} if extname else {}
    config = load_config(str(config_path) if config_path else None, overrides=overrides)
    return ViewEngine(config)

@app.callback()
def main(
    log_level: str = typer.Option(os.getenv("LOG_LEVEL", "WARNING"), "--log-level", help="Log level"),
    structured: bool = typer.Option(False, "--json-logs", help="Emit structured JSON logs"),
):
    """Template Views CLI."""
    handler = None if structured else RichHandler(rich_tracebacks=True, console=Console(stderr=True))
    configure_logging(level=log_level, structured=structured, handler=handler, version=__version__)

@app.command("render")
def render(
    view: str = typer.Argument(..., help="View name relative to the views directory"),
    views: Path = typer.Option(Path("views"), "--views", "-v", help="Views directory"),
    context_file: Optional[Path] = typer.Option(None, "--context", "-c", help="YAML or JSON file with template variables"),
    layout: Optional[str] = typer.Option(None, "--layout", "-l", help="Layout name"),
    no_layout: bool = typer.Option(False, "--no-layout", help="Render without a layout"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine configuration file"),
    extname: Optional[str] = typer.Option(None, "--extname", help="Template file extension"),
):
    """Render a view and print the result."""
    try:
        engine = build_engine(config_path, extname)
        options: Dict[str, Any] = {"settings": {"views": str(views)}, **load_context(context_file)}
        if no_layout:
            options["layout"] = None
        elif layout:
            options["layout"] = layout

        view_path = view_path_for(engine, str(views), view)
        output = asyncio.run(engine.render_view_async(view_path, options))
    except TemplateViewsError as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    # Plain output so it can be redirected
    typer.echo(output)

@app.command("partials")
def partials(
    views: Path = typer.Option(Path("views"), "--views", "-v", help="Views directory"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine configuration file"),
    extname: Optional[str] = typer.Option(None, "--extname", help="Template file extension"),
):
    """List the partials available to views."""
    try:
        engine = build_engine(config_path, extname)
        partials_dir = None
        if engine.config.is_default("partials_dir"):
            partials_dir = os.path.join(str(views), "partials/")
        found = asyncio.run(engine.get_partials(partials_dir=partials_dir))
    except TemplateViewsError as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    table = Table(title="Partials")
    table.add_column("Name", style="cyan")
    table.add_column("Template")
    for name in sorted(found):
        table.add_row(name, getattr(found[name], "name", None) or "")
    console.print(table)

@app.command("serve")
def serve(
    views: Path = typer.Option(Path("views"), "--views", "-v", help="Views directory"),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(3000, "--port", "-p", help="Port to listen on"),
    default_view: str = typer.Option("home", "--default-view", help="View served at /"),
    context_file: Optional[Path] = typer.Option(None, "--context", "-c", help="YAML or JSON file with template variables"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Reload templates on every request"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine configuration file"),
):
    """Serve views over HTTP."""
    try:
        engine = build_engine(config_path, None)
    except TemplateViewsError as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    application = create_app(
        engine,
        str(views),
        default_view=default_view,
        cache=not no_cache,
        context=load_context(context_file),
    )
    console.print(f"template-views serving [cyan]{views}[/cyan] on http://{host}:{port}")
    web.run_app(application, host=host, port=port, print=None)

@app.command("version")
def version():
    """Show the version."""
    console.print(f"template-views {__version__}")

if __name__ == "__main__":
    app()
