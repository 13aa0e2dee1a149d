"""
Example server rendering ``views/home.html`` inside the ``main`` layout.

Run with ``python examples/basic/server.py`` and open http://localhost:3000/.
"""
import logging
import os

from aiohttp import web

import template_views
from template_views.web import render_template, setup

VIEWS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "views")

async def home(request: web.Request) -> web.Response:
    return await render_template("home", request, {
        "title": "test title",
        "people": [
            {"firstName": "a", "lastName": "b", "image": "http://example.com/a.png"},
            {"firstName": "c", "lastName": "d", "image": None},
        ],
    })

def make_app() -> web.Application:
    app = web.Application()
    setup(app, template_views.create(default_layout="main"), VIEWS_DIR)
    app.router.add_get("/", home)
    return app

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    web.run_app(make_app(), port=3000)
