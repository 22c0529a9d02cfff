"""진행 중인 안내 세션을 세션 ID 별로 보관하는 인메모리 저장소."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List

from mall_navigation.services.checkpoint_tracker import NavigationSession
from mall_navigation.services.errors import SessionNotFoundError


@dataclass(slots=True)
class InMemorySessionStore:
    sessions: Dict[str, NavigationSession] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def save(self, session: NavigationSession) -> NavigationSession:
        with self._lock:
            self.sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> NavigationSession:
        with self._lock:
            session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Navigation session {session_id} not found")
        return session

    def discard(self, session_id: str) -> NavigationSession:
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Navigation session {session_id} not found")
        return session

    def active_sessions(self) -> List[NavigationSession]:
        with self._lock:
            return [session for session in self.sessions.values() if session.is_active]
