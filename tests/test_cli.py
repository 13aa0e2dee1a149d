"""Tests for the command line interface."""
from typer.testing import CliRunner

from template_views.cli import app

runner = CliRunner()

def test_render_with_layout_and_context(views_dir, tmp_path):
    context = tmp_path / "context.yaml"
    context.write_text("title: X\n")

    result = runner.invoke(app, ["render", "home", "--views", str(views_dir), "--context", str(context), "--layout", "main"])

    assert result.exit_code == 0
    assert "<html><p>X</p></html>" in result.stdout

def test_render_without_layout_from_config(views_dir, tmp_path):
    config = tmp_path / "views.yaml"
    config.write_text("default_layout: main\n")
    context = tmp_path / "context.json"
    context.write_text('{"title": "J"}')

    result = runner.invoke(app, [
        "render", "home", "--views", str(views_dir), "--context", str(context),
        "--config", str(config), "--no-layout",
    ])

    assert result.exit_code == 0
    assert result.stdout.strip() == "<p>J</p>"

def test_render_missing_view_fails(views_dir):
    result = runner.invoke(app, ["render", "nope", "--views", str(views_dir)])

    assert result.exit_code == 1
    assert "Error" in result.stdout

def test_partials_table(views_dir):
    result = runner.invoke(app, ["partials", "--views", str(views_dir)])

    assert result.exit_code == 0
    assert "header" in result.stdout
    assert "notes" not in result.stdout
