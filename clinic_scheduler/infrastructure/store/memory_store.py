from __future__ import annotations

import threading
import time
from dataclasses import replace

from clinic_scheduler.application.ports.session_store import SchedulingSessionStorePort
from clinic_scheduler.domain.entities.scheduling_session import SchedulingSession


class MemorySchedulingSessionStore(SchedulingSessionStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, SchedulingSession] = {}
        self._tickets: dict[str, int] = {}
        self._lock = threading.Lock()

    def get_session(self, session_id: str) -> SchedulingSession:
        with self._lock:
            return self._sessions.get(session_id) or SchedulingSession(session_id=session_id)

    def begin_update(self, session_id: str) -> tuple[int, SchedulingSession]:
        with self._lock:
            ticket = self._tickets.get(session_id, 0) + 1
            self._tickets[session_id] = ticket
            session = self._sessions.get(session_id) or SchedulingSession(session_id=session_id)
            return ticket, session

    def commit_update(self, session_id: str, ticket: int, session: SchedulingSession) -> bool:
        with self._lock:
            if self._tickets.get(session_id) != ticket:
                return False
            self._sessions[session_id] = replace(session, updated_at=time.time())
            return True

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
            # bump the ticket so in-flight updates of the deleted session are dropped
            self._tickets[session_id] = self._tickets.get(session_id, 0) + 1
