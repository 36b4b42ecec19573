from __future__ import annotations

import logging
import re
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable


logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def normalize_session_id(session_id: str) -> str:
    """Canonical lowercase form of a UUID4 session id taken from a header.

    Raises ValueError for anything else so junk never reaches the map.
    """
    if not isinstance(session_id, str):
        raise ValueError("Invalid session id")
    sid = session_id.strip().lower()
    if not _SESSION_ID_RE.match(sid):
        raise ValueError("Invalid session id")
    return sid


class SessionNotFound(KeyError):
    """Raised when a session id is unknown, expired or malformed."""


@dataclass
class Session:
    id: str
    created_at: float
    last_activity: float
    # Per-session dispatch context; never shared between sessions.
    handler: Any = None


def _now_epoch() -> float:
    return time.time()


class SessionRegistry:
    """In-memory map of session id -> Session.

    Every mutation happens inside one lock so the request handlers and the
    expiry sweeper can interleave freely. Nothing here blocks on I/O.
    """

    def __init__(
        self,
        handler_factory: Callable[[], Any] | None = None,
        clock: Callable[[], float] = _now_epoch,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._handler_factory = handler_factory
        self._clock = clock
        self.last_evicted: list[str] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def create(self) -> Session:
        handler = self._handler_factory() if self._handler_factory else None
        with self._lock:
            sid = str(uuid.uuid4())
            while sid in self._sessions:
                sid = str(uuid.uuid4())
            now = self._clock()
            session = Session(id=sid, created_at=now, last_activity=now, handler=handler)
            self._sessions[sid] = session
        logger.info("Session %s created", sid)
        return session

    def get(self, session_id: str) -> Session | None:
        try:
            sid = normalize_session_id(session_id)
        except ValueError:
            return None
        with self._lock:
            return self._sessions.get(sid)

    def touch(self, session_id: str) -> Session:
        try:
            sid = normalize_session_id(session_id)
        except ValueError:
            raise SessionNotFound(session_id) from None
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                raise SessionNotFound(sid)
            session.last_activity = self._clock()
            return session

    def evict_expired(self, now: float | None, timeout: float) -> None:
        """Drop every session idle for strictly longer than `timeout` seconds."""
        if now is None:
            now = self._clock()
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now - s.last_activity > timeout]
            for sid in expired:
                del self._sessions[sid]
            self.last_evicted = expired
        for sid in expired:
            logger.info("Session %s expired and removed", sid)
