"""
URL configuration for the chat service.

WebSocket routes live in `realtime.routing`; these are the plain HTTP endpoints.
"""
from django.urls import path

from realtime.views import roster
from .health import health

urlpatterns = [
    # Health check endpoint for the load balancer
    path("health/", health),
    # Read-only snapshot of who is in the room
    path("api/roster/", roster),
]
