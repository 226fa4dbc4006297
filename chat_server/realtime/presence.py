"""
Presence announcements (who is in the room).

WHY:
- Clients never patch their member list incrementally; every join and leave is
  followed by the full roster so all lists resync from one snapshot.
- The subject of a join/leave does not get its own user-joined/user-left, but
  it does get the roster (on join; on leave it is already gone).

Both effects are always issued together and in this order:
1. user-joined / user-left to everyone except the subject
2. user-list to every active session
"""

from __future__ import annotations

from typing import List, Sequence

from .effects import Effect, to_all, to_others
from .events import UserJoinedEvent, UserLeftEvent, UserListEvent


def roster_effect(active_ids: Sequence[str], roster: Sequence[str]) -> Effect:
    return to_all(active_ids, UserListEvent(users=list(roster)))


def announce_join(
    *,
    name: str,
    subject_id: str,
    active_ids: Sequence[str],
    roster: Sequence[str],
) -> List[Effect]:
    return [
        to_others(active_ids, subject_id, UserJoinedEvent(name=name)),
        roster_effect(active_ids, roster),
    ]


def announce_leave(
    *,
    name: str,
    subject_id: str,
    active_ids: Sequence[str],
    roster: Sequence[str],
) -> List[Effect]:
    return [
        to_others(active_ids, subject_id, UserLeftEvent(name=name)),
        roster_effect(active_ids, roster),
    ]
