"""
Request helpers shared by the blueprints.
"""
from __future__ import annotations

from flask import current_app, request

SESSION_HEADER = "X-Session-Id"
DEFAULT_SESSION_ID = "default"


def session_id_from_request() -> str:
    return (request.headers.get(SESSION_HEADER) or "").strip() or DEFAULT_SESSION_ID


def extension(name: str):
    """Shared object created by the app factory; KeyError if missing."""
    return current_app.extensions[name]
