from __future__ import annotations

from abc import ABC, abstractmethod

from clinic_scheduler.domain.entities.scheduling_session import SchedulingSession


class SchedulingSessionStorePort(ABC):
    @abstractmethod
    def get_session(self, session_id: str) -> SchedulingSession:
        """Current snapshot; a fresh empty session if none exists."""
        raise NotImplementedError

    @abstractmethod
    def begin_update(self, session_id: str) -> tuple[int, SchedulingSession]:
        """
        Take a supersession ticket and the snapshot to build on.
        Any ticket taken earlier for the same session becomes stale.
        """
        raise NotImplementedError

    @abstractmethod
    def commit_update(self, session_id: str, ticket: int, session: SchedulingSession) -> bool:
        """Store ``session`` if ``ticket`` is still the newest. Returns False when superseded."""
        raise NotImplementedError

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        raise NotImplementedError
