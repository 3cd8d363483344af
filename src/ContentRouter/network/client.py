"""HTTPX async client factory for router probes.

Key design:
- **Redirects disabled**: the redirect-following probe walks hops itself so the
  ``pathid`` tracker sees every hop; HEAD and manifest probes opt in per call.
- **One timeout**: every phase uses the same probe timeout.
- **No caching, no cookies carried between launches**: each client is
  ephemeral and owned by whoever created it.
- **Instrumented**: request/response hooks log ``net.request`` records.

Example:
    >>> from ContentRouter.network.client import create_http_client
    >>> async with create_http_client(timeout_s=10.0) as client:
    ...     response = await client.head("https://example.com/")
"""

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from .instrumentation import create_http_event_hooks
from .policy import DEFAULT_MAX_REDIRECTS, DEFAULT_USER_AGENT, NETWORK_TIMEOUT_SECONDS

if TYPE_CHECKING:
    from ..config.models import HttpSettings

logger = logging.getLogger(__name__)


def create_http_client(
    settings: Optional["HttpSettings"] = None,
    *,
    timeout_s: Optional[float] = None,
    user_agent: Optional[str] = None,
    max_redirects: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` configured for router probes.

    Args:
        settings: Optional :class:`~ContentRouter.config.models.HttpSettings`;
            explicit keyword arguments win over it.
        timeout_s: Probe timeout in seconds.
        user_agent: User-Agent header value.
        max_redirects: Redirect budget for requests that opt into following.
        transport: Custom transport (``httpx.MockTransport`` in tests).

    Returns:
        Configured client; the caller is responsible for closing it.
    """
    if timeout_s is None:
        timeout_s = settings.timeout_s if settings is not None else NETWORK_TIMEOUT_SECONDS
    if user_agent is None:
        user_agent = settings.user_agent if settings is not None else DEFAULT_USER_AGENT
    if max_redirects is None:
        max_redirects = (
            settings.max_redirects if settings is not None else DEFAULT_MAX_REDIRECTS
        )

    client = httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(timeout_s),
        headers={"User-Agent": user_agent},
        follow_redirects=False,
        max_redirects=max_redirects,
        event_hooks=create_http_event_hooks(),
    )

    logger.debug(
        "HTTPX async client created",
        extra={"timeout_s": timeout_s, "mock_transport": transport is not None},
    )
    return client


__all__ = [
    "create_http_client",
]
