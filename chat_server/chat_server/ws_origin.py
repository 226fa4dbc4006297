"""
WebSocket origin validator for deployments behind a reverse proxy.

Channels' AllowedHostsOriginValidator rejects when the Origin header is missing.
Non-browser clients (the CLI client, bots) usually send no Origin at all, and
some proxies drop it. This validator:
- Allows when Origin's host is in ALLOWED_HOSTS (same as Channels).
- Allows when Origin is missing BUT Host or X-Forwarded-Host is in ALLOWED_HOSTS.
- Denies a present Origin that is not allowed, whatever the Host says.
"""
from __future__ import annotations

import logging
from urllib.parse import urlparse

from channels.security.websocket import WebsocketDenier
from django.conf import settings
from django.http.request import is_same_domain

logger = logging.getLogger(__name__)

_denier_app = WebsocketDenier.as_asgi()


def _get_header(scope: dict, name: str) -> str | None:
    want = name.lower().encode("ascii")
    for key, value in scope.get("headers") or []:
        if key == want:
            return value.decode("utf-8", errors="replace").strip()
    return None


def _hostname_in_allowed(hostname: str | None, allowed_hosts: list[str]) -> bool:
    if not hostname:
        return False
    hostname = hostname.lower()
    for pattern in allowed_hosts:
        if pattern == "*":
            return True
        if is_same_domain(hostname, pattern.lower()):
            return True
    return False


def origin_allowed(scope: dict, allowed_hosts: list[str]) -> bool:
    origin_value = _get_header(scope, "origin")
    if origin_value:
        return _hostname_in_allowed(urlparse(origin_value).hostname, allowed_hosts)

    host_value = _get_header(scope, "host") or ""
    if _hostname_in_allowed(host_value.split(":", 1)[0].strip(), allowed_hosts):
        return True
    forwarded_host = (_get_header(scope, "x-forwarded-host") or "").split(",")[0].strip()
    return _hostname_in_allowed(forwarded_host.split(":", 1)[0], allowed_hosts)


class AllowedHostsOrForwardedHostOriginValidator:
    """ASGI middleware that validates the WebSocket origin and logs denials."""

    def __init__(self, application):
        self.application = application

    async def __call__(self, scope, receive, send):
        if scope.get("type") != "websocket":
            raise ValueError("AllowedHostsOrForwardedHostOriginValidator only supports WebSocket")

        allowed_hosts = list(getattr(settings, "ALLOWED_HOSTS", None) or [])
        if settings.DEBUG and not allowed_hosts:
            allowed_hosts = ["localhost", "127.0.0.1", "[::1]"]

        if origin_allowed(scope, allowed_hosts):
            return await self.application(scope, receive, send)

        logger.warning(
            "WebSocket origin denied: origin=%s host=%s x_forwarded_host=%s path=%s",
            _get_header(scope, "origin") or "(none)",
            _get_header(scope, "host") or "(none)",
            _get_header(scope, "x-forwarded-host") or "(none)",
            scope.get("path") or "",
        )
        return await _denier_app(scope, receive, send)
