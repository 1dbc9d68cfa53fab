# tennis_assistant/utils/smart_logger.py
"""
Smart, modular logging system for the shop assistant.
Provides clean, contextual logs with configurable verbosity levels.
"""

import logging
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(Enum):
    MINIMAL = 1      # Only critical flow events
    STANDARD = 2     # Key decisions and state changes
    DETAILED = 3     # Include counters and timing
    DEBUG = 4        # Everything including LLM calls


class SmartLogger:
    def __init__(self, name: str, level: LogLevel = LogLevel.STANDARD):
        self.logger = logging.getLogger(name)
        self.level = level
        self._request_contexts: Dict[str, str] = {}

    def set_level(self, level: LogLevel):
        """Change logging verbosity at runtime"""
        self.level = level

    def _should_log(self, required_level: LogLevel) -> bool:
        return self.level.value >= required_level.value

    def _format_request_id(self, session_id: str) -> str:
        timestamp = datetime.now().strftime('%H%M%S')
        return f"{session_id[-6:]}_{timestamp}"

    def _req(self, session_id: str) -> str:
        return self._request_contexts.get(session_id, "unknown")

    def _clean_log(self, level: str, emoji: str, category: str, message: str, **kwargs):
        details = " | ".join([f"{k}={v}" for k, v in kwargs.items() if v is not None])
        if details:
            full_message = f"{emoji} {category} | {message} | {details}"
        else:
            full_message = f"{emoji} {category} | {message}"

        getattr(self.logger, level.lower())(full_message)

    # ═══════════════════════════════════════════════════════════
    # HIGH-LEVEL FLOW EVENTS
    # ═══════════════════════════════════════════════════════════

    def query_start(self, session_id: str, message: str, chat_number: int):
        """Log start of message processing"""
        if not self._should_log(LogLevel.MINIMAL):
            return

        req_id = self._format_request_id(session_id)
        self._request_contexts[session_id] = req_id

        message_preview = message[:50] + "..." if len(message) > 50 else message
        self._clean_log("info", "💬", "QUERY_START", f"'{message_preview}'",
                        req=req_id, chat=chat_number)

    def flow_decision(self, session_id: str, decision: str, reason: str = None):
        """Log major routing decisions"""
        if not self._should_log(LogLevel.MINIMAL):
            return
        self._clean_log("info", "🎯", "FLOW", decision, req=self._req(session_id), reason=reason)

    def flow_step(self, session_id: str, flow: str, step: int, valid: bool):
        """Log one guided-flow step"""
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("info", "🔄", "FLOW_STEP", "VALID" if valid else "INVALID",
                        req=self._req(session_id), flow=flow, step=step)

    def limit_reached(self, session_id: str, limit: str, details: Dict[str, Any] = None):
        """Log a usage limit hit"""
        if not self._should_log(LogLevel.MINIMAL):
            return
        self._clean_log("warning", "🚫", "LIMIT", limit, req=self._req(session_id), **(details or {}))

    def session_event(self, session_id: str, event: str, details: Dict[str, Any] = None):
        """Log session lifecycle changes (created / reset / swept)"""
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("info", "📝", "SESSION", event, session=session_id, **(details or {}))

    def response_generated(self, session_id: str, response_type: str, elapsed_time: float = None):
        """Log successful response generation"""
        if not self._should_log(LogLevel.MINIMAL):
            return

        extras = {"req": self._req(session_id)}
        if elapsed_time is not None:
            extras["time"] = f"{elapsed_time:.3f}s"

        self._clean_log("info", "✅", "RESPONSE", response_type, **extras)
        self._request_contexts.pop(session_id, None)

    def error_occurred(self, session_id: str, error_type: str, operation: str, error_msg: str = None):
        """Log errors with context"""
        # Errors are always logged regardless of level
        self._clean_log("error", "❌", "ERROR", f"{error_type} in {operation}",
                        req=self._req(session_id), msg=error_msg)

    def warning(self, session_id: str, warning_type: str, details: str = None):
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("warning", "⚠️", "WARNING", warning_type, req=self._req(session_id), details=details)

    # ═══════════════════════════════════════════════════════════
    # DETAILED / DEBUG EVENTS
    # ═══════════════════════════════════════════════════════════

    def usage_update(self, session_id: str, tokens: int, cost: float, chat_cost: float):
        """Log counters after an LLM call"""
        if not self._should_log(LogLevel.DETAILED):
            return
        self._clean_log("info", "💰", "USAGE", f"+{tokens} tokens",
                        req=self._req(session_id), cost=f"${cost:.4f}", chat_cost=f"${chat_cost:.4f}")

    def api_call(self, session_id: str, service: str, operation: str, status: str = "started"):
        """Log API calls"""
        if not self._should_log(LogLevel.DEBUG):
            return

        emoji = "📡" if status == "started" else "✅" if status == "success" else "❌"
        self._clean_log("debug", emoji, "API", f"{service}.{operation}",
                        req=self._req(session_id), status=status)


# ═══════════════════════════════════════════════════════════════════════════════
# GLOBAL LOGGER INSTANCES AND CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

_loggers: Dict[str, SmartLogger] = {}


def get_smart_logger(module_name: str, level: Optional[LogLevel] = None) -> SmartLogger:
    """Get or create a smart logger for a module"""
    if module_name not in _loggers:
        default_level = getattr(LogLevel, os.getenv('BOT_LOG_LEVEL', 'STANDARD').upper(), LogLevel.STANDARD)
        _loggers[module_name] = SmartLogger(module_name, level or default_level)

    if level:
        _loggers[module_name].set_level(level)

    return _loggers[module_name]


def configure_logging(level: LogLevel = LogLevel.STANDARD,
                      format_string: str = None,
                      silence_external: bool = True):
    """Configure the entire logging system"""
    if not format_string:
        format_string = '%(asctime)s | %(message)s'

    logging.basicConfig(
        level=logging.DEBUG if level == LogLevel.DEBUG else logging.INFO,
        format=format_string,
        datefmt='%H:%M:%S',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Silence noisy external libraries
    if silence_external:
        logging.getLogger('httpcore').setLevel(logging.WARNING)
        logging.getLogger('httpx').setLevel(logging.WARNING)
        logging.getLogger('anthropic').setLevel(logging.WARNING)
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)

    for smart_logger in _loggers.values():
        smart_logger.set_level(level)
