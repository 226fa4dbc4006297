"""
Project-level Channels routing.

Keeping routing in the project package ensures `chat_server.asgi` can import it.
"""

from realtime.routing import websocket_urlpatterns

__all__ = ["websocket_urlpatterns"]
