from __future__ import annotations

from datetime import datetime

import pytest

from tennis_assistant.models import Session
from tennis_assistant.usage_limiter import calculate_cost, chat_info, check_limits


def _session(**overrides) -> Session:
    now = datetime(2024, 5, 1, 10, 0)
    s = Session(id="s1", created_at=now, last_activity=now)
    for k, v in overrides.items():
        setattr(s, k, v)
    return s


def test_fresh_session_hits_no_limit(cfg):
    limits = check_limits(_session(), cfg)
    assert not limits.token_limit_reached
    assert not limits.flow_limit_reached
    assert not limits.chat_limit_reached
    assert not limits.cost_limit_reached
    assert limits.remaining_chats == cfg.MAX_CHATS_PER_SESSION
    assert limits.remaining_budget == pytest.approx(cfg.MAX_COST_PER_CHAT)


def test_limits_trigger_at_the_cap(cfg):
    limits = check_limits(
        _session(
            token_count=cfg.MAX_TOKENS_PER_SESSION,
            flow_count=cfg.MAX_FLOWS_PER_SESSION,
            chat_count=cfg.MAX_CHATS_PER_SESSION,
            current_chat_cost=cfg.MAX_COST_PER_CHAT,
            is_expired=True,
        ),
        cfg,
    )
    assert limits.token_limit_reached
    assert limits.flow_limit_reached
    assert limits.chat_limit_reached
    assert limits.cost_limit_reached
    assert limits.session_expired
    assert limits.remaining_chats == 0


def test_cost_uses_per_thousand_rates(cfg):
    expected = 1000 * cfg.INPUT_TOKEN_COST / 1000 + 2000 * cfg.OUTPUT_TOKEN_COST / 1000
    assert calculate_cost(1000, 2000, cfg) == pytest.approx(expected)
    assert calculate_cost(0, 0, cfg) == 0


@pytest.mark.parametrize(
    "first,second",
    [
        ((100, 50), (200, 25)),
        ((1, 0), (0, 1)),
        ((3333, 777), (4444, 1)),
    ],
)
def test_cost_is_linear_across_split_calls(cfg, first, second):
    combined = calculate_cost(first[0] + second[0], first[1] + second[1], cfg)
    split = calculate_cost(*first, cfg) + calculate_cost(*second, cfg)
    assert combined == pytest.approx(split)


def test_chat_info_shows_at_least_chat_one(cfg):
    assert chat_info(_session(), cfg) == {
        "currentChat": 1,
        "maxChats": cfg.MAX_CHATS_PER_SESSION,
        "remainingChats": cfg.MAX_CHATS_PER_SESSION,
    }
    info = chat_info(_session(chat_count=2), cfg)
    assert info["currentChat"] == 2
    assert info["remainingChats"] == cfg.MAX_CHATS_PER_SESSION - 2
