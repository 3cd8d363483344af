"""HTTP network layer instrumentation.

Emits ``net.request`` log records for every HTTP exchange made by the probe
client, capturing method, redacted URL, status, and elapsed time.
"""

import logging
import time
from typing import Any

from ..urls import redact_url

logger = logging.getLogger(__name__)


def create_http_event_hooks() -> dict:
    """Create HTTPX async event hooks for request telemetry.

    Returns:
        Dict with 'request' and 'response' hooks for ``httpx.AsyncClient``

    Usage:
        >>> import httpx
        >>> hooks = create_http_event_hooks()
        >>> client = httpx.AsyncClient(event_hooks=hooks)
    """
    request_start_time: dict[int, float] = {}

    async def on_request(request: Any) -> None:
        request_start_time[id(request)] = time.perf_counter()

    async def on_response(response: Any) -> None:
        start_time = request_start_time.pop(id(response.request), None)
        if start_time is None:
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "net.request",
            extra={
                "method": response.request.method,
                "url_redacted": redact_url(str(response.request.url)),
                "host": response.request.url.host or "unknown",
                "status": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )

    return {
        "request": [on_request],
        "response": [on_response],
    }


__all__ = [
    "create_http_event_hooks",
]
