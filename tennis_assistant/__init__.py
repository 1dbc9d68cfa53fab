"""
TennisShop Assistant Application Factory
========================================

Wires the in-memory architecture:
- catalog.py (product-info.json, loaded once)
- session_registry.py (sessions + background sweeper)
- bot_core.py (flows, limits and the LLM fallback)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from flask import Flask
from flask_cors import CORS

from .bot_core import AssistantCore
from .catalog import CatalogStore
from .config import BaseConfig, get_config
from .llm_service import LLMService
from .routes import register_routes
from .routes._common import SESSION_HEADER
from .session_registry import SessionRegistry, SessionSweeper

log = logging.getLogger(__name__)


def create_app(
    config: Optional[BaseConfig] = None,
    llm_service: Optional[LLMService] = None,
    catalog: Optional[CatalogStore] = None,
) -> Flask:
    """
    App factory.

    INITIALIZATION ORDER:
    1. Config + CORS for /api/*
    2. Catalog (falls back to minimal data when the file is unusable)
    3. Session registry and sweeper
    4. Assistant core (LLM service optional)
    5. Routes and JSON error handlers
    """
    cfg = config or get_config()
    app = Flask(__name__)
    app.config.from_object(cfg)
    app.json.sort_keys = False

    allowed_origins = [o.strip() for o in cfg.CORS_ALLOW_ORIGINS.split(",") if o.strip()] or ["*"]
    CORS(
        app,
        resources={r"/api/*": {
            "origins": allowed_origins,
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", SESSION_HEADER],
        }},
        supports_credentials=False,
    )

    # ────────────────────────────────────────────────────────
    # STEP 2: Catalog
    # ────────────────────────────────────────────────────────
    if catalog is None:
        catalog = CatalogStore.load(cfg.PRODUCT_INFO_PATH)
    app.extensions["catalog"] = catalog

    # ────────────────────────────────────────────────────────
    # STEP 3: Sessions
    # ────────────────────────────────────────────────────────
    registry = SessionRegistry(timeout_minutes=cfg.SESSION_TIMEOUT_MINUTES)
    sweeper = SessionSweeper(
        registry,
        interval_seconds=cfg.SESSION_SWEEP_INTERVAL_SECONDS,
        timeout_minutes=cfg.SESSION_TIMEOUT_MINUTES,
    )
    if cfg.SESSION_SWEEP_ENABLED:
        sweeper.start()
    else:
        log.info("SWEEPER_DISABLED | SESSION_SWEEP_ENABLED=false")
    app.extensions["registry"] = registry
    app.extensions["sweeper"] = sweeper

    # ────────────────────────────────────────────────────────
    # STEP 4: Assistant core
    # ────────────────────────────────────────────────────────
    assistant = AssistantCore(registry, catalog, cfg, llm_service or LLMService(cfg))
    app.extensions["config"] = cfg
    app.extensions["assistant"] = assistant
    log.info(
        f"INIT_ASSISTANT_SUCCESS | llm_configured={assistant.llm_service.is_configured} | "
        f"products={len(catalog.products)} | fallback_catalog={catalog.from_fallback}"
    )

    # ────────────────────────────────────────────────────────
    # STEP 5: Routes + error handlers
    # ────────────────────────────────────────────────────────
    register_routes(app)

    @app.errorhandler(500)
    def handle_internal_error(error):
        log.error(f"INTERNAL_ERROR | error={error}", exc_info=True)
        return {
            "error": "Internal server error",
            "timestamp": datetime.now().isoformat(),
            "details": str(error) if app.debug else "Contact support",
        }, 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return {
            "error": "Endpoint not found",
            "timestamp": datetime.now().isoformat(),
        }, 404

    log.info(f"APP_INIT_COMPLETE | extensions={list(app.extensions.keys())}")
    return app
