"""
Per-connection lifecycle: CONNECTED -> JOINED -> TERMINATED.

TERMINATED is absorbing; once a session gets there no further events are
processed for it.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional


class SessionState(Enum):
    CONNECTED = "connected"
    JOINED = "joined"
    TERMINATED = "terminated"


class Session:
    """One connected participant, independent of its display name."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.name: Optional[str] = None
        self.state = SessionState.CONNECTED

    @property
    def is_joined(self) -> bool:
        return self.state is SessionState.JOINED

    @property
    def is_active(self) -> bool:
        return self.state is not SessionState.TERMINATED

    def mark_joined(self, name: str) -> None:
        if self.state is not SessionState.CONNECTED:
            raise RuntimeError(f"cannot join from state {self.state.value}")
        self.name = name
        self.state = SessionState.JOINED

    def terminate(self) -> SessionState:
        """Move to TERMINATED and return the state the session was in before."""
        previous = self.state
        self.state = SessionState.TERMINATED
        return previous

    def __repr__(self) -> str:
        return f"Session({self.session_id!r}, name={self.name!r}, state={self.state.value})"


class SessionTable:
    """
    Active sessions keyed by session_id, in connection order.

    Terminated sessions are removed; lookups for them return None.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def open(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id)
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> Optional[Session]:
        return self._sessions.pop(session_id, None)

    def active_ids(self) -> List[str]:
        """Snapshot of every session that should receive broadcasts right now."""
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)
