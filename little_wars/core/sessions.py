"""
In-memory registry handing every session its own engine.

Engines are never shared between sessions; access to one session's engine is
serialized by a per-session lock.
"""

import threading
import time
import uuid
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from little_wars.core.engine import GameEngine
from little_wars.core.logger import get_logger

logger = get_logger("sessions")

# Sessions idle for longer than this are dropped (balance is not persisted)
SESSION_TTL_SECONDS = 3600


class _Session:
    def __init__(self, engine: GameEngine):
        self.engine = engine
        self.lock = threading.Lock()
        self.last_used = time.time()


class EngineRegistry:
    def __init__(self, engine_factory: Callable[[], GameEngine], ttl_seconds: int = SESSION_TTL_SECONDS):
        self._engine_factory = engine_factory
        self._ttl_seconds = ttl_seconds
        self._sessions: Dict[str, _Session] = {}
        self._lock = threading.Lock()

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id: str):
        return session_id in self._sessions

    @contextmanager
    def session(self, session_id: str) -> Iterator[GameEngine]:
        """Exclusive access to the session's engine, creating it on first use."""
        entry = self._get_or_create(session_id)
        with entry.lock:
            entry.last_used = time.time()
            yield entry.engine

    def drop(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self, now: Optional[float] = None) -> int:
        """Remove sessions idle longer than the TTL. Returns how many were removed."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [
                sid for sid, entry in self._sessions.items()
                if now - entry.last_used > self._ttl_seconds
            ]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(f"Dropped {len(expired)} idle sessions")
        return len(expired)

    def _get_or_create(self, session_id: str) -> _Session:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                entry = _Session(self._engine_factory())
                self._sessions[session_id] = entry
                logger.debug(f"Created engine for session {session_id[:8]}")
            return entry
