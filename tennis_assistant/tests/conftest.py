# tennis_assistant/tests/conftest.py
"""
Shared fixtures: testing config, the packaged catalog, a fresh registry and
a fake LLM that records every call instead of reaching Anthropic.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from tennis_assistant import create_app
from tennis_assistant.bot_core import AssistantCore
from tennis_assistant.catalog import CatalogStore
from tennis_assistant.config import DEFAULT_PRODUCT_INFO_PATH, TestingConfig
from tennis_assistant.llm_service import LLMServiceError
from tennis_assistant.models import LLMReply, TokenUsage
from tennis_assistant.session_registry import SessionRegistry


class FakeLLM:
    """Stands in for LLMService; counts calls and replays a canned reply."""

    def __init__(self, content: str = "🎾 Ciao! Come posso aiutarti?", prompt_tokens: int = 100,
                 completion_tokens: int = 50, configured: bool = True) -> None:
        self.content = content
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.configured = configured
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, object]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate(self, system_prompt: str, messages: List[Dict[str, str]]) -> LLMReply:
        self.calls.append({"system_prompt": system_prompt, "messages": list(messages)})
        if self.error is not None:
            raise self.error
        return LLMReply(
            content=self.content,
            usage=TokenUsage(
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
                total_tokens=self.prompt_tokens + self.completion_tokens,
            ),
        )


@pytest.fixture
def cfg() -> TestingConfig:
    return TestingConfig()


@pytest.fixture
def catalog() -> CatalogStore:
    return CatalogStore.load(DEFAULT_PRODUCT_INFO_PATH)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry(timeout_minutes=45)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def failing_llm() -> FakeLLM:
    llm = FakeLLM()
    llm.error = LLMServiceError("upstream timeout")
    return llm


@pytest.fixture
def assistant(registry, catalog, cfg, fake_llm) -> AssistantCore:
    return AssistantCore(registry, catalog, cfg, fake_llm)


@pytest.fixture
def app(cfg, catalog, fake_llm):
    app = create_app(cfg, llm_service=fake_llm, catalog=catalog)
    app.config["TESTING"] = True
    yield app
    app.extensions["sweeper"].stop()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
