"""
Utility helpers
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..flow_config import ORDER_CODE_RE


def normalize_input(message: str) -> str:
    return (message or "").strip().lower()


def find_order_code(message: str) -> Optional[str]:
    m = ORDER_CODE_RE.search(message or "")
    return m.group(0) if m else None


def trim_history(history: List[Dict[str, Any]], max_len: int) -> None:
    if max_len <= 0:
        history.clear()
        return
    overflow = len(history) - max_len
    if overflow > 0:
        del history[:overflow]


def preview(text: str, limit: int = 50) -> str:
    text = text or ""
    return text[:limit] + "..." if len(text) > limit else text
