# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.network.redirect",
#   "purpose": "Hop-by-hop redirect following with pathid tracking",
#   "sections": [
#     {"id": "pathidtracker", "name": "PathIdTracker", "anchor": "class-pathidtracker", "kind": "class"},
#     {"id": "redirectoutcome", "name": "RedirectOutcome", "anchor": "class-redirectoutcome", "kind": "class"},
#     {"id": "follow-redirect-chain", "name": "follow_redirect_chain", "anchor": "function-follow-redirect-chain", "kind": "function"},
#     {"id": "format-audit-trail", "name": "format_audit_trail", "anchor": "function-format-audit-trail", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Redirect following with explicit ``pathid`` tracking.

The client is built with auto-redirect disabled, so this module walks the
chain itself and hands every URL it encounters to a :class:`PathIdTracker`
passed in by the caller.  No response body is read along the way.

Design:
- **Explicit hops**: every hop is a streamed GET whose body is never consumed.
- **Tracker as a parameter**: the tracker observes the starting URL, each
  redirect target, and finally the terminal response's ``Location`` header
  (covers 3xx responses that are not followed).  Last seen wins.
- **Audit trail**: all hops are recorded for logging.
- **Max hops**: exceeding the budget raises :class:`MaxRedirectsExceeded`.

Example:
    >>> tracker = PathIdTracker()
    >>> outcome = await follow_redirect_chain(client, "https://ex.com/go", tracker=tracker)
    >>> outcome.final_url, outcome.status_code, outcome.path_id
    ('https://cdn.example/page', 200, '9')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx

from ..errors import MaxRedirectsExceeded
from ..urls import extract_path_id, has_path_id, redact_url
from .policy import DEFAULT_MAX_REDIRECTS, REDIRECT_STATUS_CODES

logger = logging.getLogger(__name__)


class PathIdTracker:
    """Remembers the most recent URL whose query carries a ``pathid`` key."""

    def __init__(self) -> None:
        self.last_url: Optional[str] = None

    def observe(self, url: str) -> None:
        if has_path_id(url):
            self.last_url = url
            logger.debug("URL with pathid observed", extra={"url": redact_url(url)})

    @property
    def path_id(self) -> Optional[str]:
        return extract_path_id(self.last_url)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(last_url={self.last_url!r})"


@dataclass(frozen=True)
class RedirectOutcome:
    """Terminal result of a redirect chain."""

    final_url: str
    status_code: int
    path_id_url: Optional[str]
    hops: Tuple[Tuple[str, int], ...] = ()

    @property
    def path_id(self) -> Optional[str]:
        return extract_path_id(self.path_id_url)


def _resolve_location(response_url: httpx.URL, location: str) -> str:
    return str(response_url.join(location))


async def follow_redirect_chain(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_hops: int = DEFAULT_MAX_REDIRECTS,
    tracker: Optional[PathIdTracker] = None,
) -> RedirectOutcome:
    """GET ``url`` and follow redirects hop by hop.

    Args:
        client: HTTPX async client (auto-redirect disabled)
        url: Starting URL
        max_hops: Maximum redirects to follow
        tracker: Observer for ``pathid`` URLs; a fresh one is used when omitted

    Returns:
        RedirectOutcome with the final URL, the terminal status, and the last
        URL seen carrying a ``pathid``

    Raises:
        MaxRedirectsExceeded: If the chain is longer than ``max_hops``
        httpx.HTTPError: If the underlying request fails
        httpx.InvalidURL: If ``url`` or a ``Location`` cannot be parsed
    """
    if tracker is None:
        tracker = PathIdTracker()

    tracker.observe(url)
    audit_trail: List[Tuple[str, int]] = []
    current_url = url

    for _ in range(max_hops + 1):
        async with client.stream("GET", current_url, follow_redirects=False) as response:
            status = response.status_code
            location = response.headers.get("location")
            response_url = response.url
        audit_trail.append((current_url, status))

        if status not in REDIRECT_STATUS_CODES or not location:
            break

        target_url = _resolve_location(response_url, location)
        tracker.observe(target_url)
        logger.debug(
            "Following redirect",
            extra={
                "from": redact_url(current_url),
                "to": redact_url(target_url),
                "status": status,
                "hop": len(audit_trail),
            },
        )
        current_url = target_url
    else:
        raise MaxRedirectsExceeded(max_hops, [hop_url for hop_url, _ in audit_trail])

    if 300 <= status < 400 and location:
        tracker.observe(_resolve_location(response_url, location))

    final_url = str(response_url)
    logger.debug(
        "Redirect following complete",
        extra={"final_status": status, "hops": len(audit_trail)},
    )
    return RedirectOutcome(
        final_url=final_url,
        status_code=status,
        path_id_url=tracker.last_url,
        hops=tuple(audit_trail),
    )


def format_audit_trail(audit_trail: Tuple[Tuple[str, int], ...]) -> str:
    """Format an audit trail like ``"http://a (301) → http://b (200)"``."""
    return " → ".join(f"{redact_url(url)} ({status})" for url, status in audit_trail)


__all__ = [
    "PathIdTracker",
    "RedirectOutcome",
    "follow_redirect_chain",
    "format_audit_trail",
]
