"""
Brain of the TennisShop assistant.

One entry point, `handle_message`, runs a fixed pipeline where the first
applicable stage answers:

• Forced chat reset (only for an existing session)
• Limit gating: chat cap is terminal, per-chat cost cap auto-resets
• Demo order lookup by order code
• Active flow continuation
• New flow detection
• Free-form LLM reply

Everything that mutates a session happens under `registry.lock_for(id)`.
The lock is released while awaiting the model and re-acquired to apply
usage in one block.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from .catalog import CatalogStore
from .config import BaseConfig, get_config
from .enums import FlowIntentKind, MessageRole
from .flow_engine import detect_intent, process_step, start_flow
from .llm_service import LLMService, LLMServiceError
from .models import ChatResult, FlowResult, LLMReply, Session
from .prompts import build_system_prompt
from .session_registry import SessionRegistry
from .usage_limiter import calculate_cost, chat_info, check_limits
from .utils.helpers import find_order_code, trim_history
from .utils.smart_logger import get_smart_logger

log = logging.getLogger(__name__)


class AssistantCore:
    def __init__(
        self,
        registry: SessionRegistry,
        catalog: CatalogStore,
        config: Optional[BaseConfig] = None,
        llm_service: Optional[LLMService] = None,
    ) -> None:
        self.registry = registry
        self.catalog = catalog
        self.cfg = config or get_config()
        self.llm_service = llm_service or LLMService(self.cfg)
        self.smart_log = get_smart_logger("bot_core")

    # ────────────────────────────────────────────────────────
    # Public entry point
    # ────────────────────────────────────────────────────────
    async def handle_message(
        self,
        message: str,
        session_id: str,
        force_new_session: bool = False,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ChatResult:
        started = time.perf_counter()
        context = context or {}

        if force_new_session:
            existing = self.registry.peek(session_id)
            if existing is not None:
                self.registry.reset_chat(existing)
                self.smart_log.flow_decision(session_id, "FORCED_RESET")

        session = self.registry.get_or_create(session_id)
        lock = self.registry.lock_for(session.id)

        with lock:
            self.smart_log.query_start(session.id, message, session.chat_count + 1)
            if session.is_expired:
                self.smart_log.warning(session.id, "SESSION_EXPIRED", "advisory, request still served")

            result = self._gate_limits(session)
            if result is None:
                result = self._demo_order_reply(session, message)
            if result is None:
                result = self._flow_reply(session, message)
            if result is not None:
                self.smart_log.response_generated(session.id, "SCRIPTED", time.perf_counter() - started)
                return result

            if not self.llm_service.is_configured:
                self.smart_log.warning(session.id, "LLM_NOT_CONFIGURED")
                return ChatResult({
                    "response": "🤖 Servizio AI non configurato. Contatta l'amministratore del negozio.",
                    "error": True,
                })

            system_prompt = build_system_prompt(
                session,
                self.catalog,
                context,
                timezone=self.cfg.STORE_TIMEZONE,
                featured_limit=self.cfg.FEATURED_PRODUCTS_IN_PROMPT,
            )
            messages = self._prompt_messages(session, message)

        try:
            self.smart_log.api_call(session.id, "anthropic", "messages.create")
            reply = await self.llm_service.generate(system_prompt, messages)
        except LLMServiceError as e:
            self.smart_log.error_occurred(session.id, type(e).__name__, "llm_generate", str(e))
            log.error(f"LLM_FALLBACK_FAILED | session={session.id} | error={e}", exc_info=True)
            return ChatResult(
                {
                    "response": (
                        "🤖 Mi dispiace, sto avendo problemi tecnici.<br>"
                        f"📞 Per assistenza: {self.catalog.phone}<br>"
                        f"📧 Email: {self.catalog.email}"
                    ),
                    "error": True,
                },
                status_code=500,
            )

        with lock:
            payload = self._apply_usage(session, message, reply)
        self.smart_log.response_generated(session.id, "LLM", time.perf_counter() - started)
        return ChatResult(payload)

    # ────────────────────────────────────────────────────────
    # Pipeline stages
    # ────────────────────────────────────────────────────────
    def _gate_limits(self, session: Session) -> Optional[ChatResult]:
        limits = check_limits(session, self.cfg)
        log.debug(
            f"LIMITS | session={session.id} | chat_cost={limits.current_chat_cost:.4f} | "
            f"remaining_chats={limits.remaining_chats}"
        )

        if limits.chat_limit_reached:
            self.smart_log.limit_reached(session.id, "CHAT_LIMIT", {"chats": session.chat_count})
            used_eur = session.total_cost * self.cfg.USD_TO_EUR_RATE
            return ChatResult({
                "response": (
                    "🚫 <strong>Limite raggiunto!</strong><br>"
                    f"Hai utilizzato tutte le {self.cfg.MAX_CHATS_PER_SESSION} chat disponibili per questa sessione.<br><br>"
                    f"💰 Budget utilizzato: €{used_eur:.3f}<br>"
                    f"📞 Per continuare, contattaci: {self.catalog.phone}<br>"
                    f"📧 Email: {self.catalog.email}"
                ),
                "limitReached": True,
                "chatLimitReached": True,
            })

        if limits.cost_limit_reached:
            self.smart_log.limit_reached(session.id, "COST_LIMIT", {"chat_cost": f"{limits.current_chat_cost:.4f}"})
            self.registry.reset_chat(session)

            if session.chat_count >= self.cfg.MAX_CHATS_PER_SESSION:
                return ChatResult({
                    "response": (
                        "💰 <strong>Budget esaurito!</strong><br>"
                        f"Limite sessione raggiunto ({self.cfg.MAX_CHATS_PER_SESSION} chat utilizzate).<br>"
                        f"📞 Contattaci: {self.catalog.phone}"
                    ),
                    "limitReached": True,
                    "chatLimitReached": True,
                })

            return ChatResult({
                "response": (
                    "💰 <strong>Budget chat esaurito!</strong><br>"
                    f"✅ <strong>Nuova chat avviata!</strong> ({session.chat_count}/{self.cfg.MAX_CHATS_PER_SESSION})<br><br>"
                    "🎾 Riprova il tuo messaggio per continuare!"
                ),
                "newChatStarted": True,
                "chatInfo": chat_info(session, self.cfg),
            })

        if limits.token_limit_reached:
            self.smart_log.warning(session.id, "TOKEN_LIMIT", f"tokens={session.token_count}")
        return None

    def _demo_order_reply(self, session: Session, message: str) -> Optional[ChatResult]:
        code = find_order_code(message)
        demo = self.catalog.demo_order
        if not code or not demo:
            return None

        number = str(demo.get("numero_ordine", ""))
        if code.upper() == number.upper():
            self.smart_log.flow_decision(session.id, "ORDER_TRACKING", f"code={code}")
            link = demo.get("link_tracking", "")
            return ChatResult({
                "response": (
                    f"📦 <strong>Tracking ordine {number}</strong><br>"
                    f"<strong>Stato:</strong> {demo.get('stato', '')}<br>"
                    "<strong>Corriere:</strong> GLS<br>"
                    f"<strong>Tracking:</strong> <a href=\"{link}\" target=\"_blank\">{demo.get('tracking', '')}</a><br>"
                    "<strong>Ultimo aggiornamento:</strong> In transito<br><br>"
                    f"🔗 <a href=\"{link}\" target=\"_blank\">Clicca qui per tracciare il tuo ordine</a>"
                ),
                "orderTracking": True,
                "orderNumber": number,
                "trackingCode": demo.get("tracking"),
                "trackingLink": link,
                "orderStatus": demo.get("stato"),
            })

        self.smart_log.flow_decision(session.id, "ORDER_NOT_FOUND", f"code={code}")
        return ChatResult({
            "response": (
                f"❌ Il codice ordine <strong>{code}</strong> non risulta nei nostri sistemi demo.<br>"
                "Verifica di aver inserito il codice corretto o contattaci per assistenza.<br><br>"
                f"📧 Email: {self.catalog.email}<br>"
                f"📞 Tel: {self.catalog.phone}"
            ),
            "orderTracking": False,
        })

    def _flow_reply(self, session: Session, message: str) -> Optional[ChatResult]:
        intent = detect_intent(message, session)

        if intent.kind is FlowIntentKind.CONTINUE:
            result = process_step(session, message, self.catalog)
            if result is not None:
                return ChatResult(self._flow_payload(session, result))
            intent = detect_intent(message, session)

        if intent.kind is FlowIntentKind.START and intent.flow_type is not None:
            self.smart_log.flow_decision(session.id, "FLOW_START", intent.flow_type.value)
            question = start_flow(session, intent.flow_type)
            return ChatResult({
                "response": question,
                "currentFlow": session.current_flow,
                "flowData": session.flow_data,
                "flowStep": session.flow_step,
                "sessionId": session.id,
                "chatInfo": chat_info(session, self.cfg),
            })

        self.smart_log.flow_decision(session.id, "LLM_FALLBACK", "no flow intent")
        return None

    def _flow_payload(self, session: Session, result: FlowResult) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "response": result.response,
            "currentFlow": session.current_flow,
            "flowData": session.flow_data,
            "flowStep": session.flow_step,
            "flowCompleted": result.completed,
            "recommendations": result.recommendations,
            "products": [p.to_dict() for p in result.products],
            "progress": result.progress,
            "sessionId": session.id,
            "chatInfo": chat_info(session, self.cfg),
        }
        if result.invalid:
            payload["invalid"] = True
        if result.ask_order_number:
            payload["askOrderNumber"] = True
        return payload

    def _prompt_messages(self, session: Session, message: str) -> List[Dict[str, str]]:
        n = self.cfg.HISTORY_PROMPT_MESSAGES
        recent = session.conversation_history[-n:] if n > 0 else []
        return [dict(m) for m in recent] + [{"role": MessageRole.USER.value, "content": message}]

    def _apply_usage(self, session: Session, message: str, reply: LLMReply) -> Dict[str, Any]:
        usage = reply.usage
        cost = calculate_cost(usage.prompt_tokens, usage.completion_tokens, self.cfg)

        session.token_count += usage.total_tokens
        session.current_chat_cost += cost
        session.total_cost += cost
        session.conversation_history.extend([
            {"role": MessageRole.USER.value, "content": message},
            {"role": MessageRole.ASSISTANT.value, "content": reply.content},
        ])
        trim_history(session.conversation_history, self.cfg.HISTORY_MAX_MESSAGES)
        self.smart_log.usage_update(session.id, usage.total_tokens, cost, session.current_chat_cost)

        return {
            "response": reply.content,
            "tokensUsed": usage.total_tokens,
            "totalTokens": session.token_count,
            "remainingTokens": self.cfg.MAX_TOKENS_PER_SESSION - session.token_count,
            "currentFlow": session.current_flow,
            "flowData": session.flow_data,
            "userPreferences": session.user_preferences.to_dict(),
            "sessionId": session.id,
            "costInfo": {
                "thisCall": cost,
                "currentChatCost": session.current_chat_cost,
                "totalSessionCost": session.total_cost,
                "remainingBudget": self.cfg.MAX_COST_PER_CHAT - session.current_chat_cost,
            },
            "chatInfo": chat_info(session, self.cfg),
        }
