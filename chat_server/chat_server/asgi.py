"""
ASGI config for the chat service.

It exposes the ASGI callable as a module-level variable named ``application``.
Run it as a single process, e.g. ``daphne chat_server.asgi:application``.
"""
# Load secrets (optional) before Django settings are loaded
import chat_server.env_bootstrap  # noqa: F401

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chat_server.settings")

from channels.routing import ProtocolTypeRouter, URLRouter
from django.conf import settings
from django.core.asgi import get_asgi_application

# Initialize Django before importing anything that touches models or settings.
django_asgi_app = get_asgi_application()

from chat_server.routing import websocket_urlpatterns  # noqa: E402
from chat_server.ws_origin import AllowedHostsOrForwardedHostOriginValidator  # noqa: E402

# Channels router for WebSockets.
#
# AllowedHostsOrForwardedHostOriginValidator (when DEBUG is False):
# - Allows when Origin's host is in ALLOWED_HOSTS, or when Origin is missing but
#   Host / X-Forwarded-Host is in ALLOWED_HOSTS (proxies may drop Origin).
# - Logs "WebSocket origin denied: ..." when rejecting.
websocket_app = URLRouter(websocket_urlpatterns)
if not settings.DEBUG:
    websocket_app = AllowedHostsOrForwardedHostOriginValidator(websocket_app)

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": websocket_app,
    }
)
