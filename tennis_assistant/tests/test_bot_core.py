from __future__ import annotations

import pytest

from tennis_assistant.bot_core import AssistantCore
from tennis_assistant.enums import FlowType
from tennis_assistant.flow_config import FLOW_STEPS
from tennis_assistant.usage_limiter import calculate_cost

pytestmark = pytest.mark.asyncio


async def test_new_session_starts_consultation_flow(assistant, fake_llm):
    result = await assistant.handle_message("vorrei consigli per una racchetta", "s1")

    assert result.status_code == 200
    assert result.payload["currentFlow"] == "product_consultation"
    assert result.payload["flowStep"] == 0
    assert result.payload["response"] == FLOW_STEPS[FlowType.PRODUCT_CONSULTATION][0].question
    assert fake_llm.call_count == 0


async def test_mid_flow_answer_advances(assistant, fake_llm):
    await assistant.handle_message("vorrei consigli per una racchetta", "s1")
    result = await assistant.handle_message("2", "s1")

    payload = result.payload
    assert payload["flowData"] == {"level": "intermedio"}
    assert payload["flowStep"] == 1
    assert payload["response"] == FLOW_STEPS[FlowType.PRODUCT_CONSULTATION][1].question
    assert payload["progress"] == "2/3"
    assert payload["flowCompleted"] is False
    assert payload["chatInfo"]["currentChat"] == 1
    assert fake_llm.call_count == 0


async def test_invalid_flow_answer_is_flagged(assistant):
    await assistant.handle_message("che taglia prendo?", "s1")
    result = await assistant.handle_message("racchette", "s1")

    assert result.payload["invalid"] is True
    assert result.payload["currentFlow"] == "size_guide"
    assert result.payload["flowStep"] == 0


async def test_completed_consultation_returns_products(assistant, registry):
    for message in ("consulenza", "professionale", "oltre 200", "racchette"):
        result = await assistant.handle_message(message, "s1")

    payload = result.payload
    assert payload["flowCompleted"] is True
    assert payload["currentFlow"] is None
    assert payload["products"]
    assert all(p["price"] > 200 for p in payload["products"])
    assert registry.peek("s1").flow_count == 1


async def test_tracking_without_code_asks_for_order_number(assistant):
    await assistant.handle_message("problema con il mio ordine", "s1")
    result = await assistant.handle_message("tracking", "s1")

    assert result.payload["askOrderNumber"] is True
    assert result.payload["flowCompleted"] is False


async def test_chat_limit_blocks_without_llm_call(assistant, registry, fake_llm, cfg):
    session = registry.get_or_create("s1")
    session.chat_count = cfg.MAX_CHATS_PER_SESSION
    session.total_cost = 0.1

    result = await assistant.handle_message("ciao, che orari avete?", "s1")

    assert result.payload["chatLimitReached"] is True
    assert result.payload["limitReached"] is True
    assert "€0.092" in result.payload["response"]
    assert fake_llm.call_count == 0


async def test_cost_limit_starts_new_chat_and_drops_message(assistant, registry, fake_llm, cfg):
    session = registry.get_or_create("s1")
    session.current_chat_cost = cfg.MAX_COST_PER_CHAT
    session.conversation_history = [{"role": "user", "content": "vecchio"}]

    result = await assistant.handle_message("vorrei consigli", "s1")

    assert result.payload["newChatStarted"] is True
    assert result.payload["chatInfo"]["currentChat"] == 1
    assert session.current_chat_cost == 0
    assert session.chat_count == 1
    assert session.conversation_history == []
    assert session.current_flow is None
    assert fake_llm.call_count == 0


async def test_cost_limit_on_last_chat_exhausts_session(assistant, registry, cfg):
    session = registry.get_or_create("s1")
    session.chat_count = cfg.MAX_CHATS_PER_SESSION - 1
    session.current_chat_cost = cfg.MAX_COST_PER_CHAT

    result = await assistant.handle_message("ciao", "s1")

    assert result.payload["chatLimitReached"] is True
    assert "Budget esaurito" in result.payload["response"]
    assert session.chat_count == cfg.MAX_CHATS_PER_SESSION


async def test_demo_order_found(assistant, fake_llm):
    result = await assistant.handle_message("dov'è il mio ordine ts123456?", "s1")

    payload = result.payload
    assert payload["orderTracking"] is True
    assert payload["orderNumber"] == "TS123456"
    assert payload["trackingCode"] == "GLS987654321"
    assert payload["trackingLink"] in payload["response"]
    assert payload["orderStatus"] == "Spedito"
    assert fake_llm.call_count == 0


async def test_demo_order_not_found(assistant, fake_llm):
    result = await assistant.handle_message("ordine TS999999", "s1")

    assert result.payload["orderTracking"] is False
    assert "TS999999" in result.payload["response"]
    assert "non risulta" in result.payload["response"]
    assert fake_llm.call_count == 0


async def test_order_code_short_circuits_active_flow(assistant):
    await assistant.handle_message("consulenza", "s1")
    result = await assistant.handle_message("TS123456", "s1")
    assert result.payload["orderTracking"] is True


async def test_llm_reply_records_usage(assistant, registry, fake_llm, cfg):
    result = await assistant.handle_message("ciao, siete aperti domenica?", "s1")
    session = registry.peek("s1")
    cost = calculate_cost(100, 50, cfg)

    assert result.status_code == 200
    assert result.payload["response"] == fake_llm.content
    assert result.payload["tokensUsed"] == 150
    assert session.token_count == 150
    assert session.current_chat_cost == pytest.approx(cost)
    assert session.total_cost == pytest.approx(cost)
    assert result.payload["remainingTokens"] == cfg.MAX_TOKENS_PER_SESSION - 150
    assert result.payload["costInfo"]["thisCall"] == pytest.approx(cost)
    assert result.payload["costInfo"]["remainingBudget"] == pytest.approx(cfg.MAX_COST_PER_CHAT - cost)
    assert [m["role"] for m in session.conversation_history] == ["user", "assistant"]
    assert fake_llm.call_count == 1


async def test_llm_prompt_uses_recent_history_only(assistant, registry, fake_llm, cfg):
    session = registry.get_or_create("s1")
    for i in range(5):
        session.conversation_history.extend([
            {"role": "user", "content": f"domanda {i}"},
            {"role": "assistant", "content": f"risposta {i}"},
        ])

    await assistant.handle_message("ultima domanda", "s1")

    sent = fake_llm.calls[0]["messages"]
    assert len(sent) == cfg.HISTORY_PROMPT_MESSAGES + 1
    assert sent[0] == {"role": "user", "content": "domanda 2"}
    assert sent[-1] == {"role": "user", "content": "ultima domanda"}
    assert len(session.conversation_history) == cfg.HISTORY_MAX_MESSAGES
    assert session.conversation_history[-1]["content"] == fake_llm.content


async def test_llm_failure_returns_500_payload(registry, catalog, cfg, failing_llm):
    assistant = AssistantCore(registry, catalog, cfg, failing_llm)
    result = await assistant.handle_message("ciao", "s1")

    assert result.status_code == 500
    assert result.payload["error"] is True
    assert catalog.phone in result.payload["response"]
    assert registry.peek("s1").token_count == 0
    assert failing_llm.call_count == 1


async def test_unconfigured_llm_still_runs_flows(registry, catalog, cfg, fake_llm):
    fake_llm.configured = False
    assistant = AssistantCore(registry, catalog, cfg, fake_llm)

    flow = await assistant.handle_message("che taglia?", "s1")
    assert flow.payload["currentFlow"] == "size_guide"

    free = await assistant.handle_message("ciao", "s2")
    assert free.status_code == 200
    assert free.payload["error"] is True
    assert "non configurato" in free.payload["response"]
    assert fake_llm.call_count == 0


async def test_force_new_session_resets_existing_chat(assistant, registry):
    await assistant.handle_message("consulenza", "s1")
    result = await assistant.handle_message("ciao", "s1", force_new_session=True)

    session = registry.peek("s1")
    assert session.chat_count == 1
    assert session.current_flow is None
    assert result.payload["chatInfo"]["currentChat"] == 1


async def test_force_new_session_ignored_for_unknown_session(assistant, registry):
    await assistant.handle_message("ciao", "fresh", force_new_session=True)
    assert registry.peek("fresh").chat_count == 0


async def test_context_preferences_reach_prompt(assistant, fake_llm):
    await assistant.handle_message(
        "cosa mi suggerisci oggi?",
        "s1",
        context={"userPreferences": {"level": "avanzato", "budget": "100to200"}},
    )
    prompt = fake_llm.calls[0]["system_prompt"]
    assert "Livello di gioco: avanzato" in prompt
    assert "Budget: 100to200" in prompt


async def test_zero_prompt_history_sends_only_new_message(assistant, registry, fake_llm, cfg):
    cfg.HISTORY_PROMPT_MESSAGES = 0
    session = registry.get_or_create("s1")
    session.conversation_history.extend([
        {"role": "user", "content": "domanda"},
        {"role": "assistant", "content": "risposta"},
    ])

    await assistant.handle_message("ultima domanda", "s1")

    assert fake_llm.calls[0]["messages"] == [{"role": "user", "content": "ultima domanda"}]
