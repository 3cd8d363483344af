# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.network.probe",
#   "purpose": "HEAD, redirect-resolving GET, and manifest probes that never raise",
#   "sections": [
#     {"id": "manifestdocument", "name": "ManifestDocument", "anchor": "class-manifestdocument", "kind": "class"},
#     {"id": "probeclient", "name": "ProbeClient", "anchor": "class-probeclient", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""HTTP probes used by the resolution engine.

Three probes are offered, all bounded by one fixed timeout:

- :meth:`ProbeClient.head_status`: HEAD with redirects followed; returns the
  final status code.
- :meth:`ProbeClient.resolve`: hop-by-hop GET returning the final URL, the
  terminal status, and the last ``pathid`` URL in the chain.
- :meth:`ProbeClient.fetch_manifest_url`: GET of a JSON manifest
  ``{"url": "<string>"}``; the only probe that reads a body.

Transport errors, timeouts, redirect overflow, and malformed manifests are
logged and reported as ``None``; callers treat that exactly like a rejected
status.
"""

from __future__ import annotations

import asyncio
import logging
from typing import ClassVar, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import ManifestError, ProbeError
from ..urls import redact_url
from .policy import DEFAULT_MAX_REDIRECTS, MANIFEST_OK_STATUS, NETWORK_TIMEOUT_SECONDS
from .redirect import PathIdTracker, RedirectOutcome, follow_redirect_chain, format_audit_trail

logger = logging.getLogger(__name__)

_PROBE_FAILURES = (
    httpx.HTTPError,
    httpx.InvalidURL,
    ProbeError,
    asyncio.TimeoutError,
    ValueError,
)


class ManifestDocument(BaseModel):
    """Manifest body; ``url`` is the only recognised field."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore", strict=True)

    url: str


class ProbeClient:
    """Issues router probes over a shared ``httpx.AsyncClient``.

    Args:
        client: Async client with auto-redirect disabled.
        timeout_s: Wall-clock budget for one probe, redirects included.
        max_redirects: Redirect budget for :meth:`resolve`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_s: float = NETWORK_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self.client = client
        self.timeout_s = timeout_s
        self.max_redirects = max_redirects

    async def head_status(self, url: str) -> Optional[int]:
        """Return the final status of a HEAD request, or ``None`` on failure."""

        try:
            response = await asyncio.wait_for(
                self.client.head(url, follow_redirects=True), self.timeout_s
            )
        except _PROBE_FAILURES as exc:
            logger.warning(
                "HEAD probe failed",
                extra={"url": redact_url(url), "error": repr(exc)},
            )
            return None
        logger.debug(
            "HEAD probe complete",
            extra={"url": redact_url(url), "status": response.status_code},
        )
        return response.status_code

    async def resolve(
        self, url: str, *, tracker: Optional[PathIdTracker] = None
    ) -> Optional[RedirectOutcome]:
        """Follow the redirect chain from ``url``; ``None`` on any failure."""

        try:
            outcome = await asyncio.wait_for(
                follow_redirect_chain(
                    self.client, url, max_hops=self.max_redirects, tracker=tracker
                ),
                self.timeout_s,
            )
        except _PROBE_FAILURES as exc:
            logger.warning(
                "Redirect resolution failed",
                extra={"url": redact_url(url), "error": repr(exc)},
            )
            return None
        logger.info(
            "Redirect chain resolved",
            extra={
                "url": redact_url(url),
                "final_url": redact_url(outcome.final_url),
                "status": outcome.status_code,
                "hops": len(outcome.hops),
                "audit_trail": format_audit_trail(outcome.hops),
                "path_id_found": outcome.path_id is not None,
            },
        )
        return outcome

    async def _load_manifest(self, url: str) -> str:
        response = await self.client.get(url, follow_redirects=True)
        if response.status_code != MANIFEST_OK_STATUS:
            raise ManifestError(
                f"Manifest request returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        try:
            document = ManifestDocument.model_validate_json(response.content)
        except ValidationError as exc:
            raise ManifestError(f"Malformed manifest: {exc.error_count()} error(s)", url=url) from exc
        if not document.url:
            raise ManifestError("Manifest url is empty", url=url)
        return document.url

    async def fetch_manifest_url(self, url: str) -> Optional[str]:
        """Return the manifest's ``url`` field, or ``None`` on any failure."""

        try:
            manifest_url = await asyncio.wait_for(self._load_manifest(url), self.timeout_s)
        except _PROBE_FAILURES as exc:
            logger.warning(
                "Manifest fetch failed",
                extra={"url": redact_url(url), "error": repr(exc)},
            )
            return None
        logger.info("Manifest loaded", extra={"manifest_url": redact_url(manifest_url)})
        return manifest_url


__all__ = ["ManifestDocument", "ProbeClient"]
