# tennis_assistant/routes/health.py
"""
Readiness/liveness probe.

Always 200 while Flask is serving: a missing catalog or API key degrades
the assistant but does not make it unhealthy.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict

from flask import Blueprint, jsonify

from ._common import extension

log = logging.getLogger(__name__)
bp = Blueprint("health", __name__)


@bp.get("/health")
def health_check():
    cfg = extension("config")
    registry = extension("registry")
    catalog = extension("catalog")
    assistant = extension("assistant")

    payload: Dict[str, Any] = {
        "status": "OK",
        "timestamp": datetime.now().isoformat(),
        "environment": os.getenv("APP_ENV", "development"),
        "model": cfg.LLM_MODEL,
        "maxTokensPerSession": cfg.MAX_TOKENS_PER_SESSION,
        "maxChatsPerSession": cfg.MAX_CHATS_PER_SESSION,
        "maxFlowsPerSession": cfg.MAX_FLOWS_PER_SESSION,
        "activeSessions": registry.active_count(),
        "productInfoLoaded": catalog.is_loaded(),
        "productInfoFallback": catalog.from_fallback,
        "llmConfigured": assistant.llm_service.is_configured,
        "ecommerceFlowActive": True,
        "storeType": "tennis_ecommerce",
        "service": "tennis_assistant",
    }
    log.debug(f"HEALTH_CHECK | sessions={payload['activeSessions']}")
    return jsonify(payload), 200
