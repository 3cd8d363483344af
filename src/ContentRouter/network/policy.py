"""HTTP policy constants and defaults.

Defines the single probe timeout, redirect budget, and request identity used by
every probe the router issues.  All probes share one timeout regardless of the
content mode; the redirect budget mirrors a typical platform default.
"""

NETWORK_TIMEOUT_SECONDS = 25.0

DEFAULT_MAX_REDIRECTS = 16

REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 18_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/18.1 Mobile/15E148 Safari/604.1"
)

MANIFEST_OK_STATUS = 200

__all__ = [
    "NETWORK_TIMEOUT_SECONDS",
    "DEFAULT_MAX_REDIRECTS",
    "REDIRECT_STATUS_CODES",
    "DEFAULT_USER_AGENT",
    "MANIFEST_OK_STATUS",
]
