# tennis_assistant/routes/chat.py
"""
POST /api/chat

Body:
{
  "message": "vorrei consigli per una racchetta",
  "forceNewSession": false,     # optional
  "context": {...}              # optional: productCatalog, userPreferences
}
Header: X-Session-Id (defaults to "default")
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, Response, jsonify, request

from ..utils.helpers import preview
from ..utils.smart_logger import get_smart_logger
from ._common import extension, session_id_from_request

log = logging.getLogger(__name__)
smart_log = get_smart_logger("chat_route")
bp = Blueprint("chat", __name__)


@bp.post("/chat")
async def chat() -> Response:
    session_id = session_id_from_request()
    try:
        data: Dict[str, Any] = request.get_json(silent=True) or {}
        message = data.get("message")
        if not isinstance(message, str) or not message.strip():
            return jsonify({"error": "Message cannot be empty"}), 400

        context = data.get("context")
        if not isinstance(context, dict):
            context = {}

        log.info(f"CHAT_REQUEST | session={session_id} | message='{preview(message)}'")
        assistant = extension("assistant")
        result = await assistant.handle_message(
            message.strip(),
            session_id,
            force_new_session=data.get("forceNewSession") is True,
            context=context,
        )
        return jsonify(result.payload), result.status_code

    except Exception as e:  # noqa: BLE001
        smart_log.error_occurred(session_id, type(e).__name__, "chat_endpoint", str(e))
        log.error(f"CHAT_ENDPOINT_ERROR | session={session_id} | error={e}", exc_info=True)
        catalog = extension("catalog")
        return jsonify({
            "response": (
                "🤖 Mi dispiace, sto avendo problemi tecnici.<br>"
                f"📞 Per assistenza: {catalog.phone}<br>"
                f"📧 Email: {catalog.email}"
            ),
            "error": True,
        }), 500
