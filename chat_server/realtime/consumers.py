"""
WebSocket consumer for the shared chat room.

Key behavior:
- URL: /ws/chat/
- Every socket is one session; its Channels `channel_name` is the session id.
- Frames are JSON objects with a `type` (join, chat-message, typing).
- All room state lives in the process-wide Coordinator; this consumer only
  translates frames to events and channel-layer messages back to frames.
- Fan-out uses per-channel `channel_layer.send` to the recipients resolved by
  the coordinator (no Channels groups), so every broadcast goes to exactly the
  sessions that were active when the event was handled.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer

from .config import config
from .coordinator import get_coordinator
from .errors import UnknownEventType
from .events import ConnectedEvent, ErrorEvent, parse_inbound

logger = logging.getLogger(__name__)


def _get_header(scope: dict, name: str) -> Optional[str]:
    """Get first header value from ASGI scope (header names are lowercased)."""
    want = name.lower().encode("ascii")
    for key, value in scope.get("headers") or []:
        if key == want:
            return value.decode("utf-8", errors="replace").strip()
    return None


def _get_api_key_from_scope(scope: dict) -> Optional[str]:
    """API key from X-API-KEY header, `x-api-key` subprotocol pair (browsers) or ?api_key= query."""
    provided = _get_header(scope, "x-api-key")
    if provided:
        return provided
    # Browser WebSocket API cannot set custom headers; pass subprotocols ['x-api-key', key] instead.
    subprotocols = scope.get("subprotocols") or []
    if len(subprotocols) >= 2 and (subprotocols[0] or "").strip().lower() == "x-api-key":
        return ",".join((s or "").strip() for s in subprotocols[1:]).strip() or None
    query = parse_qs((scope.get("query_string") or b"").decode("utf-8", errors="replace"))
    values = query.get("api_key")
    return values[0].strip() if values else None


class ChatConsumer(AsyncWebsocketConsumer):
    CHAT_EVENT = "chat.event"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.coordinator = get_coordinator()
        self._registered = False

    @property
    def session_id(self) -> str:
        return self.channel_name

    async def connect(self) -> None:
        auth_key = config.CHAT_AUTH_API_KEY
        if auth_key:
            provided = _get_api_key_from_scope(self.scope)
            if not provided or provided != auth_key:
                logger.warning("WebSocket rejected: missing or invalid API key")
                # Closing before accept() rejects the handshake.
                await self.close(code=4401)
                return

        # If the client used subprotocols for the API key, echo the first one so the handshake is valid.
        subprotocols = self.scope.get("subprotocols") or []
        subprotocol = subprotocols[0] if subprotocols else None
        await self.accept(subprotocol=subprotocol)

        await self.coordinator.connect(self.session_id)
        self._registered = True
        logger.info("New connection: %s", self.session_id)

        await self.send_json(ConnectedEvent(session_id=self.session_id).model_dump())

    async def disconnect(self, close_code: int) -> None:
        if not self._registered:
            return
        self._registered = False
        await self.coordinator.disconnect(self.session_id, self._deliver)
        logger.info("Disconnected: %s (code=%s)", self.session_id, close_code)

    async def receive(self, text_data: Optional[str] = None, bytes_data: Optional[bytes] = None) -> None:
        if not text_data or not self._registered:
            return

        try:
            msg = json.loads(text_data)
        except json.JSONDecodeError:
            await self.send_json(ErrorEvent(message="Invalid JSON").model_dump())
            return

        try:
            event = parse_inbound(msg)
        except UnknownEventType as exc:
            await self.send_json(ErrorEvent(message=exc.message).model_dump())
            return

        if event is None:
            return

        await self.coordinator.handle(self.session_id, event, self._deliver)

    async def _deliver(self, session_id: str, payload: Dict[str, Any]) -> None:
        await self.channel_layer.send(session_id, {"type": self.CHAT_EVENT, "payload": payload})

    async def chat_event(self, event: Dict[str, Any]) -> None:
        """Handler for messages addressed to this session by the coordinator."""
        await self.send_json(event["payload"])

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.send(text_data=json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
