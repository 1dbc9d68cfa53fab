"""
Usage limits and pricing. Pure functions of session counters and config.
"""

from __future__ import annotations

from typing import Dict

from .config import BaseConfig
from .models import Session, UsageSnapshot


def check_limits(session: Session, config: BaseConfig) -> UsageSnapshot:
    current_chat_cost = session.current_chat_cost or 0.0
    return UsageSnapshot(
        token_limit_reached=session.token_count >= config.MAX_TOKENS_PER_SESSION,
        flow_limit_reached=session.flow_count >= config.MAX_FLOWS_PER_SESSION,
        chat_limit_reached=session.chat_count >= config.MAX_CHATS_PER_SESSION,
        cost_limit_reached=current_chat_cost >= config.MAX_COST_PER_CHAT,
        session_expired=session.is_expired,
        current_chat_cost=current_chat_cost,
        remaining_chats=config.MAX_CHATS_PER_SESSION - session.chat_count,
        remaining_budget=config.MAX_COST_PER_CHAT - current_chat_cost,
    )


def calculate_cost(input_tokens: int, output_tokens: int, config: BaseConfig) -> float:
    """USD cost of one call, linear in tokens (rates are per 1000 tokens)."""
    return (input_tokens * config.INPUT_TOKEN_COST / 1000) + (output_tokens * config.OUTPUT_TOKEN_COST / 1000)


def chat_info(session: Session, config: BaseConfig) -> Dict[str, int]:
    return {
        "currentChat": session.chat_count or 1,
        "maxChats": config.MAX_CHATS_PER_SESSION,
        "remainingChats": config.MAX_CHATS_PER_SESSION - session.chat_count,
    }
