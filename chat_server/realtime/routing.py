from django.urls import re_path

from .consumers import ChatConsumer


websocket_urlpatterns = [
    # Single shared room; the client picks a display name with a `join` frame.
    re_path(r"^ws/chat/$", ChatConsumer.as_asgi()),
]
