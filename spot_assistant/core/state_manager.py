# Role: In-memory session context store. Owns lifecycle of SessionContext objects:
# create/get by session_id, record one conversation step per turn, enforce bounded history,
# and evict idle sessions from a background sweeper thread.

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

import spot_assistant.config as config
from spot_assistant.models.intent import Intent
from spot_assistant.models.query_result import QueryResult
from spot_assistant.models.state import ConversationStep, SessionContext

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateManager:
    def __init__(
        self,
        max_history_steps: int = config.MAX_HISTORY_STEPS,
        session_ttl_minutes: float = config.SESSION_TTL_MINUTES,
        sweep_interval_seconds: float = config.SWEEP_INTERVAL_SECONDS,
        sweep_retry_seconds: float = config.SWEEP_RETRY_SECONDS,
        clock: Optional[Clock] = None,
    ) -> None:
        self._states: Dict[str, SessionContext] = {}
        self._locks: Dict[str, threading.Lock] = {}
        # Key line: the map lock guards insert/remove only; per-session locks guard mutation.
        self._map_lock = threading.Lock()

        self._max_history_steps = max_history_steps
        self._ttl = timedelta(minutes=session_ttl_minutes)
        self._sweep_interval = sweep_interval_seconds
        self._sweep_retry = sweep_retry_seconds
        self._clock = clock or _utcnow

        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._states)

    def __contains__(self, session_id: object) -> bool:
        with self._map_lock:
            return session_id in self._states

    def now(self) -> datetime:
        return self._clock()

    def _entry(self, session_id: str) -> Tuple[SessionContext, threading.Lock]:
        # Reuse existing context or initialize a fresh one; context and lock are fetched together.
        with self._map_lock:
            state = self._states.get(session_id)
            if state is None:
                now = self._clock()
                state = SessionContext(session_id=session_id, created_at=now, last_accessed_at=now)
                self._states[session_id] = state
                self._locks[session_id] = threading.Lock()
                logger.info("Created conversation context for session %s", session_id)
            return state, self._locks[session_id]

    def get_or_create(self, session_id: str) -> SessionContext:
        state, lock = self._entry(session_id)
        with lock:
            state.last_accessed_at = self._clock()
        return state

    def get(self, session_id: str) -> Optional[SessionContext]:
        with self._map_lock:
            return self._states.get(session_id)

    def snapshot(self, session_id: str) -> Optional[SessionContext]:
        # Role: consistent read-only copy for callers outside the turn pipeline (API, CLI).
        with self._map_lock:
            state = self._states.get(session_id)
            lock = self._locks.get(session_id)
        if state is None or lock is None:
            return None
        with lock:
            return state.model_copy(deep=True)

    def record_turn(self, session_id: str, intent: Intent, result: QueryResult) -> SessionContext:
        # 1) Touch + increment the interaction counter
        # 2) Remember last intent/result
        # 3) Append one step; trim to the last N steps
        # All under the session's lock so concurrent turns for one session cannot lose updates.
        state, lock = self._entry(session_id)
        with lock:
            now = self._clock()
            state.last_accessed_at = now
            state.interaction_count += 1
            state.last_intent = intent
            state.last_result = result

            state.conversation_flow.append(
                ConversationStep(
                    timestamp=now,
                    intent_kind=intent.kind,
                    success=result.success,
                    error_message=result.error_message,
                )
            )
            if len(state.conversation_flow) > self._max_history_steps:
                state.conversation_flow = state.conversation_flow[-self._max_history_steps :]

            count = state.interaction_count

        logger.info("Updated conversation context for session %s. Interaction count: %d", session_id, count)
        return state

    def set_preference(self, session_id: str, key: str, value: Any) -> None:
        state, lock = self._entry(session_id)
        with lock:
            state.last_accessed_at = self._clock()
            state.preferences[key] = value

    def remove(self, session_id: str) -> bool:
        with self._map_lock:
            self._locks.pop(session_id, None)
            return self._states.pop(session_id, None) is not None

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        # Role: drop inactive sessions to avoid unbounded growth (best for long-running servers).
        now = now or self._clock()
        with self._map_lock:
            to_delete = [sid for sid, st in self._states.items() if (now - st.last_accessed_at) > self._ttl]
            for sid in to_delete:
                del self._states[sid]
                self._locks.pop(sid, None)

        for sid in to_delete:
            logger.info("Cleaned up expired conversation context for session %s", sid)
        return len(to_delete)

    # ------------------------------------------------------------------
    # Background sweeper
    # ------------------------------------------------------------------

    def sweep_once(self) -> float:
        """Run one expiry scan and return how long to wait before the next one.

        A failed scan is logged and retried sooner instead of stopping the sweeper.
        """
        try:
            self.cleanup_expired()
        except Exception:
            logger.exception("Error during conversation context cleanup")
            return self._sweep_retry
        return self._sweep_interval

    def _run_sweeper(self) -> None:
        while not self._stop_event.is_set():
            delay = self.sweep_once()
            if self._stop_event.wait(delay):
                break

    def start(self) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(target=self._run_sweeper, name="context-sweeper", daemon=True)
        self._sweeper.start()
        logger.info("Context sweeper started (interval=%ss, ttl=%s)", self._sweep_interval, self._ttl)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None
        logger.info("Context sweeper stopped")

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()
