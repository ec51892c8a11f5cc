"""In-memory per-user sessions: generation preferences and chat history."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, fields
from threading import Lock
from typing import Deque

MAX_HISTORY = 20


@dataclass
class UserSession:
    image_model: str = "flux"
    image_width: int = 1024
    image_height: int = 1024
    text_model: str = "openai"
    audio_model: str = "openai-audio"
    audio_voice: str = "alloy"
    enhance_prompt: bool = False
    private_mode: bool = False
    language: str = "en"
    history: Deque[dict[str, str]] = field(default_factory=lambda: deque(maxlen=MAX_HISTORY))


_UPDATABLE_FIELDS = frozenset(item.name for item in fields(UserSession)) - {"history"}


class InMemorySessionStore:
    """Session map keyed by user id; lives for the process lifetime.

    Each user key has its own lock so concurrent updates for different users
    never contend. Callers must not hold a session across an upstream call
    and expect it to be unchanged.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, UserSession] = {}
        self._locks: dict[str, Lock] = {}
        self._map_lock = Lock()

    def _entry(self, user_id: object) -> tuple[UserSession, Lock]:
        key = str(user_id)
        with self._map_lock:
            session = self._sessions.get(key)
            if session is None:
                session = UserSession()
                self._sessions[key] = session
                self._locks[key] = Lock()
            return session, self._locks[key]

    def get(self, user_id: object) -> UserSession:
        session, _ = self._entry(user_id)
        return session

    def update(self, user_id: object, **changes: object) -> UserSession:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown session fields: {', '.join(sorted(unknown))}")
        session, lock = self._entry(user_id)
        with lock:
            for name, value in changes.items():
                setattr(session, name, value)
        return session

    def append_message(self, user_id: object, role: str, content: str) -> None:
        session, lock = self._entry(user_id)
        with lock:
            session.history.append({"role": role, "content": content})

    def clear_conversation(self, user_id: object) -> None:
        session, lock = self._entry(user_id)
        with lock:
            session.history.clear()

    def conversation(self, user_id: object) -> list[dict[str, str]]:
        session, lock = self._entry(user_id)
        with lock:
            return [dict(item) for item in session.history]

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._sessions)
