"""Network subsystem: async HTTP client, probes, and redirect tracking.

This package provides the HTTP side of content source resolution, based on
HTTPX's ``AsyncClient`` with auto-redirect disabled.

Modules:
- client: HTTPX async client factory
- policy: timeout, redirect budget, and request identity constants
- instrumentation: request/response hooks for ``net.request`` log records
- redirect: hop-by-hop redirect following with ``pathid`` tracking
- probe: HEAD, redirect-resolving GET, and manifest probes that never raise

Example:
    >>> from ContentRouter.network import ProbeClient, PathIdTracker, create_http_client
    >>> async with create_http_client(timeout_s=25.0) as http:
    ...     probes = ProbeClient(http)
    ...     outcome = await probes.resolve("https://ex.com/go", tracker=PathIdTracker())
"""

from .client import create_http_client
from .instrumentation import create_http_event_hooks
from .policy import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_USER_AGENT,
    NETWORK_TIMEOUT_SECONDS,
    REDIRECT_STATUS_CODES,
)
from .probe import ManifestDocument, ProbeClient
from .redirect import PathIdTracker, RedirectOutcome, follow_redirect_chain, format_audit_trail

__all__ = [
    # Client lifecycle
    "create_http_client",
    # Policy
    "NETWORK_TIMEOUT_SECONDS",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_USER_AGENT",
    "REDIRECT_STATUS_CODES",
    # Instrumentation
    "create_http_event_hooks",
    # Probes
    "ProbeClient",
    "ManifestDocument",
    # Redirect handling
    "PathIdTracker",
    "RedirectOutcome",
    "follow_redirect_chain",
    "format_audit_trail",
]
