"""Process-wide table of live navigation sessions.

A session is keyed by the invoking user and the message carrying the
rendered embed, so one user can drive several menus in different channels.
Each session carries its own lock: callbacks for one session queue behind
each other while different sessions never contend.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..telemetry import get_telemetry
from .nav import DEFAULT_MAX_DEPTH, NavStack, NavState

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 15 * 60.0


class SessionError(Exception):
    """Base class for session table failures."""


class SessionExists(SessionError):
    def __init__(self, key: "SessionKey") -> None:
        super().__init__(f"session {key} is already live")
        self.key = key


class SessionUnknown(SessionError):
    def __init__(self, key: "SessionKey") -> None:
        super().__init__(f"session {key} is unknown or expired")
        self.key = key


@dataclass(frozen=True)
class SessionKey:
    user_id: int
    message_id: int

    def __str__(self) -> str:
        return f"{self.user_id}/{self.message_id}"


class Session:
    def __init__(self, key: SessionKey, stack: NavStack, now: float) -> None:
        self.key = key
        self.stack = stack
        self.lock = asyncio.Lock()
        self.last_touched = now

    def touch(self, now: float) -> None:
        self.last_touched = now

    def idle_for(self, now: float) -> float:
        return now - self.last_touched

    def __repr__(self) -> str:
        return f"<Session {self.key} {self.stack.identities()}>"


class SessionTable:
    """Owns every live :class:`NavStack`."""

    def __init__(
        self,
        *,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        max_depth: int = DEFAULT_MAX_DEPTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_timeout = idle_timeout
        self.max_depth = max_depth
        self._clock = clock
        self._sessions: Dict[SessionKey, Session] = {}
        self._by_message: Dict[int, SessionKey] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: SessionKey) -> bool:
        return key in self._sessions

    def _expired(self, session: Session, now: float) -> bool:
        return session.idle_for(now) >= self.idle_timeout

    def _drop(self, key: SessionKey) -> Optional[Session]:
        session = self._sessions.pop(key, None)
        if session is None:
            return None
        if self._by_message.get(key.message_id) == key:
            del self._by_message[key.message_id]
        session.stack.clear()
        return session

    def open(self, key: SessionKey, initial_screen: NavState) -> Session:
        now = self._clock()
        existing = self._sessions.get(key)
        if existing is not None:
            if not self._expired(existing, now):
                raise SessionExists(key)
            self._drop(key)
        stack = NavStack(key.user_id, max_depth=self.max_depth)
        stack.push(initial_screen)
        session = Session(key, stack, now)
        self._sessions[key] = session
        self._by_message[key.message_id] = key
        logger.debug("Opened session %s on %s", key, initial_screen.identity)
        get_telemetry().track_session("opened")
        return session

    def resolve(self, key: SessionKey) -> Session:
        now = self._clock()
        session = self._sessions.get(key)
        if session is None:
            raise SessionUnknown(key)
        if self._expired(session, now):
            self._drop(key)
            get_telemetry().track_session("expired")
            raise SessionUnknown(key)
        session.touch(now)
        return session

    def is_live(self, session: Session) -> bool:
        """True while ``session`` is still the table's entry for its key."""

        return self._sessions.get(session.key) is session and not session.stack.is_empty()

    def close(self, key: SessionKey) -> Optional[Session]:
        session = self._drop(key)
        if session is not None:
            logger.debug("Closed session %s", key)
            get_telemetry().track_session("closed")
        return session

    def owner_of(self, message_id: int) -> Optional[int]:
        key = self._by_message.get(message_id)
        if key is None:
            return None
        session = self._sessions.get(key)
        if session is None or self._expired(session, self._clock()):
            return None
        return key.user_id

    def sweep(self) -> int:
        """Evict idle sessions; sessions busy with a callback are left alone."""

        now = self._clock()
        stale: List[SessionKey] = [
            key
            for key, session in self._sessions.items()
            if self._expired(session, now) and not session.lock.locked()
        ]
        for key in stale:
            self._drop(key)
        if stale:
            logger.info("Evicted %d idle session(s)", len(stale))
            get_telemetry().track_session("evicted", len(stale))
        return len(stale)

    def clear(self) -> int:
        count = len(self._sessions)
        for key in list(self._sessions):
            self._drop(key)
        return count


__all__ = [
    "DEFAULT_IDLE_TIMEOUT",
    "Session",
    "SessionError",
    "SessionExists",
    "SessionKey",
    "SessionTable",
    "SessionUnknown",
]
