"""
Outbound effects produced by the event handlers.

Recipients are resolved when the effect is built, from the snapshot of active
sessions at that moment, so delivery never consults live state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from pydantic import BaseModel


@dataclass(frozen=True)
class Effect:
    recipients: Tuple[str, ...]
    event: BaseModel

    def payload(self) -> Dict[str, Any]:
        return self.event.model_dump(by_alias=True)


def to_all(active_ids: Iterable[str], event: BaseModel) -> Effect:
    return Effect(recipients=tuple(active_ids), event=event)


def to_others(active_ids: Iterable[str], exclude: str, event: BaseModel) -> Effect:
    return Effect(recipients=tuple(sid for sid in active_ids if sid != exclude), event=event)


def to_one(session_id: str, event: BaseModel) -> Effect:
    """Targeted effect: only the originating session sees it."""
    return Effect(recipients=(session_id,), event=event)
