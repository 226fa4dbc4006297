"""
Realtime WebSocket app.

This app contains:
- A Channels consumer for `/ws/chat/` (one shared room)
- The room coordinator: identity registry, session lifecycle, message,
  presence and typing fan-out
- In-memory state only; run a single ASGI process
"""
