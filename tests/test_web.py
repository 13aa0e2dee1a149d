"""Tests for the aiohttp integration."""
import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from template_views.engine import ViewEngine
from template_views.web import create_app, get_engine, render_template, setup

@pytest.mark.asyncio
async def test_serves_views_with_layout(views_dir):
    app = create_app(ViewEngine({"default_layout": "main"}), str(views_dir), context={"title": "X"})

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        assert resp.status == 200
        assert resp.content_type == "text/html"
        assert await resp.text() == "<html><p>X</p></html>"

        resp = await client.get("/with_partial")
        assert await resp.text() == "<html><h1>X</h1><p>X</p></html>"

@pytest.mark.asyncio
async def test_missing_view_is_404(views_dir):
    app = create_app(ViewEngine(), str(views_dir))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/nope")
        assert resp.status == 404

@pytest.mark.asyncio
async def test_render_template_in_handler(views_dir):
    engine = ViewEngine({"default_layout": "main"})
    app = web.Application()
    setup(app, engine, str(views_dir))

    async def handler(request):
        return await render_template("home", request, {"title": "Hi"}, layout="alt", status=201)

    app.router.add_get("/page", handler)

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/page")
        assert resp.status == 201
        assert await resp.text() == "<main><p>Hi</p></main>"

    assert get_engine(app) is engine
    assert len(engine.template_cache) > 0

def test_get_engine_requires_setup():
    with pytest.raises(RuntimeError):
        get_engine(web.Application())
