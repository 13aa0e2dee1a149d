"""Pytest configuration and fixtures."""
import pytest
from pathlib import Path
from template_views.engine import ViewEngine

def write(path: Path, content: str) -> Path:
    """Write a template file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path

@pytest.fixture
def views_dir(tmp_path):
    """Create a views tree with a layout and partials."""
    views = tmp_path / "views"
    write(views / "home.html", "<p>{{title}}</p>")
    write(views / "with_partial.html", "{{ partial('header') }}<p>{{ title }}</p>")
    write(views / "shout.html", "{{ shout(title) }}")
    write(views / "layouts" / "main.html", "<html>{{body}}</html>")
    write(views / "layouts" / "alt.html", "<main>{{body}}</main>")
    write(views / "partials" / "header.html", "<h1>{{ title }}</h1>")
    write(views / "partials" / "notes.txt", "not a template")
    return views

@pytest.fixture
def listing_dir(tmp_path):
    """Create a directory with mixed file types."""
    root = tmp_path / "listing"
    write(root / "a.html", "a")
    write(root / "sub" / "b.html", "b")
    write(root / "c.txt", "c")
    return root

@pytest.fixture
def engine():
    """Create an engine with the main layout as default."""
    return ViewEngine({"default_layout": "main"})

@pytest.fixture
def view_options(views_dir):
    """Host options pointing at the views tree."""
    return {"settings": {"views": str(views_dir)}, "title": "X"}
