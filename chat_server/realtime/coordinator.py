"""
Room coordinator: one event stream for every session in the room.

`dispatch` is the pure part: given the registry, the session table and one
inbound event it mutates the registry/session state and returns the outbound
effects. It never awaits.

`Coordinator` wraps it for the transport. Each event is dispatched and its
effects delivered while holding a single asyncio.Lock, so events for the same
or different sessions never interleave. This is what makes the registry's
check-then-insert race free when two joins for the same name arrive together.

The registry is process-local: run a single ASGI process with the in-memory
channel layer.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from . import presence
from .broadcaster import MessageBroadcaster
from .effects import Effect, to_one
from .errors import AlreadyJoined, ChatError
from .events import ChatMessageEvent, DisconnectEvent, ErrorEvent, JoinEvent, TypingEvent
from .registry import IdentityRegistry
from .session import SessionState, SessionTable
from .typing_indicator import set_typing

logger = logging.getLogger(__name__)

Event = Union[JoinEvent, ChatMessageEvent, TypingEvent, DisconnectEvent]
Deliver = Callable[[str, Dict[str, Any]], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _error(session_id: str, exc: ChatError) -> List[Effect]:
    return [to_one(session_id, ErrorEvent(message=exc.message))]


def dispatch(
    registry: IdentityRegistry,
    sessions: SessionTable,
    session_id: str,
    event: Event,
    *,
    broadcaster: MessageBroadcaster,
    now: datetime,
) -> List[Effect]:
    session = sessions.get(session_id)
    if session is None or not session.is_active:
        # Unknown or terminated session: late frames and duplicate disconnects land here.
        return []

    if isinstance(event, JoinEvent):
        if session.is_joined:
            return _error(session_id, AlreadyJoined())
        try:
            name = registry.register(session_id, event.name)
        except ChatError as exc:
            logger.info("Join rejected for %s: %s", session_id, exc.message)
            return _error(session_id, exc)
        session.mark_joined(name)
        logger.info("User %s joined the chat", name)
        return presence.announce_join(
            name=name,
            subject_id=session_id,
            active_ids=sessions.active_ids(),
            roster=registry.snapshot(),
        )

    if isinstance(event, ChatMessageEvent):
        try:
            return broadcaster.submit(session, event.message, active_ids=sessions.active_ids(), now=now)
        except ChatError as exc:
            return _error(session_id, exc)

    if isinstance(event, TypingEvent):
        return set_typing(session, event.is_typing, active_ids=sessions.active_ids())

    if isinstance(event, DisconnectEvent):
        previous = session.terminate()
        sessions.close(session_id)
        name = registry.unregister(session_id)
        if previous is not SessionState.JOINED or name is None:
            return []
        logger.info("User %s left the chat", name)
        return presence.announce_leave(
            name=name,
            subject_id=session_id,
            active_ids=sessions.active_ids(),
            roster=registry.snapshot(),
        )

    raise TypeError(f"unsupported event: {event!r}")


class Coordinator:
    """
    Owns the room state and serializes every event against it.

    `deliver(session_id, payload)` is the transport's send primitive; a failure
    for one recipient is logged and does not stop delivery to the others.
    """

    def __init__(
        self,
        registry: Optional[IdentityRegistry] = None,
        *,
        broadcaster: Optional[MessageBroadcaster] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.registry = registry if registry is not None else IdentityRegistry()
        self.sessions = SessionTable()
        self.broadcaster = broadcaster if broadcaster is not None else MessageBroadcaster()
        self._clock = clock
        self._lock = asyncio.Lock()

    async def connect(self, session_id: str) -> None:
        async with self._lock:
            self.sessions.open(session_id)

    async def handle(self, session_id: str, event: Event, deliver: Deliver) -> List[Effect]:
        async with self._lock:
            effects = dispatch(
                self.registry,
                self.sessions,
                session_id,
                event,
                broadcaster=self.broadcaster,
                now=self._clock(),
            )
            await self._deliver_all(effects, deliver)
        return effects

    async def disconnect(self, session_id: str, deliver: Deliver) -> List[Effect]:
        return await self.handle(session_id, DisconnectEvent(), deliver)

    def roster(self) -> List[str]:
        return self.registry.snapshot()

    async def _deliver_all(self, effects: List[Effect], deliver: Deliver) -> None:
        for effect in effects:
            payload = effect.payload()
            for recipient in effect.recipients:
                try:
                    await deliver(recipient, payload)
                except Exception:
                    logger.exception("Delivery of %s to %s failed", payload.get("type"), recipient)


# Global coordinator instance. Built at import so the event loop and Django's
# sync worker threads can never race to create two rooms.
_coordinator: Coordinator = Coordinator()


def get_coordinator() -> Coordinator:
    """Process-wide coordinator for the single chat room."""
    return _coordinator


def reset_coordinator() -> None:
    """Replace the process-wide coordinator with an empty room."""
    global _coordinator
    _coordinator = Coordinator()
