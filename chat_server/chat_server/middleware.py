"""
HTTP middleware for the chat service.

- ApiKeyAuthMiddleware: requires X-API-KEY header to match CHAT_AUTH_API_KEY for
  all endpoints except /health/ (when the key is set). The gated HTTP surface is
  the read-only roster at /api/roster/. The key comes from realtime.config, the
  same value the websocket handshake checks.
- HealthCheckAllowHttpMiddleware: keeps /health/ reachable over plain HTTP
  (no SSL redirect) and from any origin, so load balancer checks are not blocked.
"""

from __future__ import annotations

from django.http import JsonResponse

from realtime.config import config


def _is_health_path(request) -> bool:
    path = (request.path or "").rstrip("/") or "/"
    return path == "/health"


class ApiKeyAuthMiddleware:
    """
    When CHAT_AUTH_API_KEY is set, require X-API-KEY header to match for all
    requests except /health/. Returns 401 with JSON body if the key is missing or invalid.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if _is_health_path(request):
            return self.get_response(request)
        # Let OPTIONS (CORS preflight) through without API key so browser gets CORS headers.
        if request.method == "OPTIONS":
            return self.get_response(request)

        auth_key = config.CHAT_AUTH_API_KEY
        if not auth_key:
            return self.get_response(request)

        provided = (request.META.get("HTTP_X_API_KEY") or "").strip()
        if not provided or provided != auth_key:
            return JsonResponse(
                {"detail": "Missing or invalid API key. Use X-API-KEY header."},
                status=401,
            )
        return self.get_response(request)


class HealthCheckAllowHttpMiddleware:
    """
    Run before SecurityMiddleware. For requests to /health/:
    - Set proxy SSL header so Django does not redirect HTTP -> HTTPS (avoids 301).
    - In response, allow any origin.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if _is_health_path(request):
            request.META["HTTP_X_FORWARDED_PROTO"] = "https"
        response = self.get_response(request)
        if _is_health_path(request):
            response["Access-Control-Allow-Origin"] = "*"
        return response
