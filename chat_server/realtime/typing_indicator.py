"""Relay of "is typing" toggles. Stateless: nothing is stored, nothing times out server-side."""

from __future__ import annotations

from typing import List, Sequence

from .effects import Effect, to_others
from .events import TypingBroadcast
from .session import Session


def set_typing(session: Session, is_typing: bool, *, active_ids: Sequence[str]) -> List[Effect]:
    # Best-effort UX signal: sessions that have not joined are ignored without an error.
    if not session.is_joined or session.name is None:
        return []
    return [to_others(active_ids, session.session_id, TypingBroadcast(name=session.name, is_typing=bool(is_typing)))]
