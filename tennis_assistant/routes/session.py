# tennis_assistant/routes/session.py
"""
Session endpoints, keyed by the X-Session-Id header.

GET  /api/session-info   – counters, read-only (never creates a session)
POST /api/reset-session  – start the next chat of an existing session
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, jsonify

from ..models import UserPreferences
from ..usage_limiter import chat_info
from ._common import extension, session_id_from_request

log = logging.getLogger(__name__)
bp = Blueprint("session", __name__)


@bp.get("/session-info")
def session_info():
    session_id = session_id_from_request()
    cfg = extension("config")
    try:
        registry = extension("registry")
        session = registry.peek(session_id)

        if session is None:
            return jsonify({
                "sessionId": session_id,
                "tokenCount": 0,
                "maxTokens": cfg.MAX_TOKENS_PER_SESSION,
                "currentFlow": None,
                "flowData": {},
                "flowStep": 0,
                "chatCount": 0,
                "maxChats": cfg.MAX_CHATS_PER_SESSION,
                "totalCost": 0,
                "userPreferences": UserPreferences().to_dict(),
                "isNew": True,
            }), 200

        with registry.lock_for(session.id):
            payload: Dict[str, Any] = {
                "sessionId": session.id,
                "tokenCount": session.token_count,
                "maxTokens": cfg.MAX_TOKENS_PER_SESSION,
                "currentFlow": session.current_flow,
                "flowData": session.flow_data,
                "flowStep": session.flow_step,
                "chatCount": session.chat_count,
                "maxChats": cfg.MAX_CHATS_PER_SESSION,
                "totalCost": session.total_cost,
                "currentChatCost": session.current_chat_cost,
                "lastActivity": session.last_activity.isoformat(),
                "isExpired": session.is_expired,
                "userPreferences": session.user_preferences.to_dict(),
            }
        return jsonify(payload), 200

    except Exception as exc:  # noqa: BLE001
        log.exception("session-info endpoint failed")
        return jsonify({
            "error": "Unable to load session info",
            "details": str(exc),
            "sessionId": session_id,
            "tokenCount": 0,
            "maxTokens": cfg.MAX_TOKENS_PER_SESSION,
        }), 500


@bp.post("/reset-session")
def reset_session():
    session_id = session_id_from_request()
    try:
        cfg = extension("config")
        registry = extension("registry")
        session = registry.peek(session_id)
        if session is None:
            return jsonify({"success": True, "message": "Nuova sessione creata"}), 200

        registry.reset_chat(session)
        log.info(f"RESET_SESSION | session={session_id} | chat={session.chat_count}/{cfg.MAX_CHATS_PER_SESSION}")
        return jsonify({
            "success": True,
            "message": f"Chat {session.chat_count}/{cfg.MAX_CHATS_PER_SESSION} iniziata",
            "chatInfo": chat_info(session, cfg),
        }), 200

    except Exception as exc:  # noqa: BLE001
        log.exception("reset-session endpoint failed")
        return jsonify({"error": str(exc)}), 500
