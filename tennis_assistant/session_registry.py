"""
Session registry
────────────────
In-memory mapping of session id → Session, owned by one registry object
created by the app factory. Sessions are created lazily, reset between
chats and reclaimed only by the periodic sweep.

Locking:
• `_lock` guards the mapping itself.
• `lock_for(session_id)` returns a per-session lock that callers hold while
  mutating counters, history or flow state. It must not be held across the
  LLM call.
"""
from __future__ import annotations

import atexit
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from .models import Idle, Session
from .utils.smart_logger import get_smart_logger

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SessionRegistry:
    def __init__(self, timeout_minutes: int = 45, clock: Clock = datetime.now) -> None:
        self.timeout = timedelta(minutes=timeout_minutes)
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._session_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()
        self.smart_log = get_smart_logger("session_registry")

    # ────────────────────────────────────────────────────────
    # Public API
    # ────────────────────────────────────────────────────────
    def get_or_create(self, session_id: str) -> Session:
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(id=session_id, created_at=now, last_activity=now)
                self._sessions[session_id] = session
                self._session_locks.setdefault(session_id, threading.RLock())
                self.smart_log.session_event(session_id, "CREATED")

            session.last_activity = now
            # Advisory only: callers may still proceed with an expired session
            if now - session.created_at > self.timeout and not session.is_expired:
                session.is_expired = True
                self.smart_log.session_event(session_id, "EXPIRED", {"age": str(now - session.created_at)})
            return session

    def peek(self, session_id: str) -> Optional[Session]:
        """Lookup without touching last_activity."""
        with self._lock:
            return self._sessions.get(session_id)

    def lock_for(self, session_id: str) -> threading.RLock:
        with self._lock:
            return self._session_locks.setdefault(session_id, threading.RLock())

    def reset_chat(self, session: Session) -> Session:
        with self.lock_for(session.id):
            session.chat_count += 1
            session.current_chat_cost = 0.0
            session.conversation_history = []
            session.flow_state = Idle()
        self.smart_log.session_event(session.id, "CHAT_RESET", {"chat": session.chat_count})
        return session

    def sweep(self, timeout_minutes: Optional[int] = None) -> None:
        timeout = timedelta(minutes=timeout_minutes) if timeout_minutes is not None else self.timeout
        now = self._clock()
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if now - s.last_activity > timeout]
            for sid in stale:
                del self._sessions[sid]
                self._session_locks.pop(sid, None)
        for sid in stale:
            self.smart_log.session_event(sid, "SWEPT", {"reason": "inactivity"})
        if stale:
            log.info(f"SESSION_SWEEP | removed={len(stale)} | remaining={self.active_count()}")

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)


class SessionSweeper:
    """Background thread calling `registry.sweep` on a fixed interval."""

    def __init__(self, registry: SessionRegistry, interval_seconds: float, timeout_minutes: int) -> None:
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.timeout_minutes = timeout_minutes
        self._stop = threading.Event()
        self._running = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._exit_hook_registered = False

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="session-sweeper", daemon=True)
        self._thread.start()
        if not self._exit_hook_registered:
            atexit.register(self.stop)
            self._exit_hook_registered = True
        log.info(f"SWEEPER_STARTED | interval={self.interval_seconds}s | timeout={self.timeout_minutes}min")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            log.info("SWEEPER_STOPPED")

    def run_once(self) -> bool:
        """Run one sweep unless another is in progress. Returns whether it ran."""
        if not self._running.acquire(blocking=False):
            log.debug("SWEEP_SKIPPED | previous sweep still running")
            return False
        try:
            self.registry.sweep(self.timeout_minutes)
            return True
        finally:
            self._running.release()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception as e:  # noqa: BLE001
                log.error(f"SWEEP_FAILED | error={e}", exc_info=True)
