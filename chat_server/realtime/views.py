"""
Read-only HTTP views over the chat room.
"""

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .coordinator import get_coordinator


@require_http_methods(["GET"])
def roster(request):
    """Current display names in join order."""
    users = get_coordinator().roster()
    return JsonResponse({"users": users, "count": len(users)})
