# tennis_assistant/llm_service.py
"""
LLM service
───────────
Thin async wrapper over the Anthropic Messages API: system prompt plus
role/content messages in, reply text plus normalised token usage out.

A missing or malformed key never raises at construction; callers check
`is_configured` first and show a "service not configured" reply instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import anthropic

from .config import BaseConfig, get_config
from .models import LLMReply, TokenUsage

log = logging.getLogger(__name__)


class LLMServiceError(RuntimeError):
    """Raised when the model call fails (network, API status, timeout)."""


def _extract_text(resp: Any) -> str:
    parts = []
    for block in getattr(resp, "content", None) or []:
        if getattr(block, "type", None) == "text":
            parts.append(getattr(block, "text", "") or "")
    return "".join(parts).strip()


def _extract_usage(resp: Any) -> TokenUsage:
    usage = getattr(resp, "usage", None)
    prompt_tokens = int(getattr(usage, "input_tokens", 0) or 0)
    completion_tokens = int(getattr(usage, "output_tokens", 0) or 0)
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
    )


class LLMService:
    """Service class for the assistant's free-form replies."""

    def __init__(self, config: Optional[BaseConfig] = None) -> None:
        self.cfg = config or get_config()
        self.anthropic: Optional[anthropic.AsyncAnthropic] = None
        if self.cfg.llm_configured:
            self.anthropic = anthropic.AsyncAnthropic(
                api_key=self.cfg.ANTHROPIC_API_KEY,
                timeout=self.cfg.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
        else:
            log.warning("LLM_NOT_CONFIGURED | ANTHROPIC_API_KEY missing or not an 'sk-ant-' key")

    @property
    def is_configured(self) -> bool:
        return self.anthropic is not None

    async def generate(self, system_prompt: str, messages: List[Dict[str, str]]) -> LLMReply:
        if self.anthropic is None:
            raise LLMServiceError("LLM service not configured")

        try:
            resp = await self.anthropic.messages.create(
                model=self.cfg.LLM_MODEL,
                system=system_prompt,
                messages=messages,
                temperature=self.cfg.LLM_TEMPERATURE,
                max_tokens=self.cfg.LLM_MAX_TOKENS,
            )
        except anthropic.APIError as exc:
            log.error(f"LLM_CALL_FAILED | model={self.cfg.LLM_MODEL} | error={exc}")
            raise LLMServiceError(str(exc)) from exc
        except Exception as exc:  # noqa: BLE001
            log.error(
                f"LLM_CALL_UNEXPECTED | model={self.cfg.LLM_MODEL} | error={type(exc).__name__}: {exc}",
                exc_info=True,
            )
            raise LLMServiceError(f"{type(exc).__name__}: {exc}") from exc

        reply = LLMReply(content=_extract_text(resp), usage=_extract_usage(resp))
        log.info(
            f"LLM_CALL_OK | model={self.cfg.LLM_MODEL} | prompt_tokens={reply.usage.prompt_tokens} | "
            f"completion_tokens={reply.usage.completion_tokens}"
        )
        return reply
