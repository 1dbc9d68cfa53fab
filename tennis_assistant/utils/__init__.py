# tennis_assistant/utils/__init__.py
"""
Expose helpers at package-level for convenience:

    from tennis_assistant.utils import find_order_code
"""

from .helpers import (  # noqa: F401
    find_order_code,
    normalize_input,
    preview,
    trim_history,
)

__all__ = [
    "find_order_code",
    "normalize_input",
    "preview",
    "trim_history",
]
