# tennis_assistant/routes/__init__.py
"""
Blueprint registration.

Every route module exposes a flask.Blueprint named **bp**. The app factory
(tennis_assistant/__init__.py) stores shared objects like `registry`,
`catalog` and `assistant` into `app.extensions` so the route modules can
reach them via `from flask import current_app`.
"""

from __future__ import annotations

import logging

from flask import Flask

from . import catalog, chat, health, session

log = logging.getLogger(__name__)

BLUEPRINT_MODULES = (chat, session, health, catalog)


def register_routes(app: Flask, url_prefix: str = "/api") -> None:
    for module in BLUEPRINT_MODULES:
        app.register_blueprint(module.bp, url_prefix=url_prefix)
        log.info(f"REGISTER_ROUTES_SUCCESS | blueprint={module.bp.name} | prefix={url_prefix}")
