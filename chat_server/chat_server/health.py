from __future__ import annotations

import os
import time

from django.http import JsonResponse


def health(request):
    """
    Load balancer health check endpoint.

    Keep it cheap: no channel layer call, no room lock.
    """

    return JsonResponse(
        {
            "status": "ok",
            "ts": int(time.time()),
            "instance_id": os.environ.get("INSTANCE_ID", "unknown-instance"),
        }
    )
