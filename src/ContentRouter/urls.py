# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.urls",
#   "purpose": "Tracking-token and base-domain helpers for content URLs",
#   "sections": [
#     {"id": "append-query-param", "name": "append_query_param", "anchor": "function-append-query-param", "kind": "function"},
#     {"id": "extract-path-id", "name": "extract_path_id", "anchor": "function-extract-path-id", "kind": "function"},
#     {"id": "has-path-id", "name": "has_path_id", "anchor": "function-has-path-id", "kind": "function"},
#     {"id": "strip-path-id", "name": "strip_path_id", "anchor": "function-strip-path-id", "kind": "function"},
#     {"id": "base-domain", "name": "base_domain", "anchor": "function-base-domain", "kind": "function"},
#     {"id": "is-saving-allowed", "name": "is_saving_allowed", "anchor": "function-is-saving-allowed", "kind": "function"},
#     {"id": "redact-url", "name": "redact_url", "anchor": "function-redact-url", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""URL helpers for tracking tokens and same-site checks.

The tracking token is carried as a ``pathid`` query parameter.  Lookups and
removal both match the parameter name case-insensitively, so a saved source
never keeps a ``PathID`` spelling of the token.

Example:
    >>> append_query_param("https://ex.com/go?a=1", "pathid", "9")
    'https://ex.com/go?a=1&pathid=9'
    >>> strip_path_id("https://cdn.example/page?pathid=9&x=1")
    'https://cdn.example/page?x=1'
    >>> base_domain("cdn.example.com")
    'example.com'
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

__all__ = [
    "PATH_ID_PARAM",
    "USER_ID_PARAM",
    "append_query_param",
    "extract_path_id",
    "has_path_id",
    "strip_path_id",
    "base_domain",
    "url_host",
    "is_saving_allowed",
    "redact_url",
]

PATH_ID_PARAM = "pathid"
USER_ID_PARAM = "push_id"

_SENSITIVE_PARAMS = {PATH_ID_PARAM, USER_ID_PARAM}


def _query_items(url: str) -> list[tuple[str, str]]:
    try:
        query = urlsplit(url).query
    except ValueError:
        return []
    return parse_qsl(query, keep_blank_values=True)


def append_query_param(url: str, name: str, value: str) -> str:
    """Append ``name=value`` to the query of ``url``, keeping existing items."""

    parts = urlsplit(url)
    items = parse_qsl(parts.query, keep_blank_values=True)
    items.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(items)))


def extract_path_id(url: Optional[str]) -> Optional[str]:
    """Return the first ``pathid`` value (case-insensitive name) in ``url``."""

    if not url:
        return None
    for key, value in _query_items(url):
        if key.lower() == PATH_ID_PARAM:
            return value
    return None


def has_path_id(url: Optional[str]) -> bool:
    if not url:
        return False
    return any(key.lower() == PATH_ID_PARAM for key, _ in _query_items(url))


def strip_path_id(url: str) -> str:
    """Remove every ``pathid`` query item (any case); drop the ``?`` when nothing remains."""

    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    items = parse_qsl(parts.query, keep_blank_values=True)
    kept = [(key, value) for key, value in items if key.lower() != PATH_ID_PARAM]
    if len(kept) == len(items):
        return url
    return urlunsplit(parts._replace(query=urlencode(kept)))


def url_host(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def base_domain(host: str) -> str:
    """Return the last two dot-separated labels of ``host``."""

    parts = host.split(".")
    if len(parts) >= 2:
        return ".".join(parts[-2:])
    return host


def is_saving_allowed(resolved_url: str, source_url: str) -> bool:
    """Return ``True`` when ``resolved_url`` lives on a different base domain.

    A URL without a parseable host on either side is always allowed.
    """

    new_host = url_host(resolved_url)
    if not new_host:
        return True
    source_host = url_host(source_url)
    if not source_host:
        return True
    return base_domain(new_host) != base_domain(source_host)


def redact_url(url: str) -> str:
    """Mask tracking and identity query values for logging."""

    try:
        parts = urlsplit(url)
    except ValueError:
        return "[URL_REDACTION_FAILED]"
    items = parse_qsl(parts.query, keep_blank_values=True)
    if not items:
        return url
    masked = [
        (key, "***" if key.lower() in _SENSITIVE_PARAMS else value) for key, value in items
    ]
    return urlunsplit(parts._replace(query=urlencode(masked, safe="*")))
