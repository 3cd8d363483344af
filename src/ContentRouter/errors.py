"""Exception hierarchy shared across configuration, probing, and persistence.

The resolution engine folds every network and manifest failure into a display
decision, so these exceptions rarely reach callers.  They exist so the probe
layer can report *why* a probe failed (and the engine can log it) and so the
configuration loader and the CLI can react to high-level categories.
"""

from __future__ import annotations

from typing import Optional, Sequence

__all__ = [
    "ContentRouterError",
    "ConfigurationError",
    "ProbeError",
    "ManifestError",
    "RedirectError",
    "MaxRedirectsExceeded",
    "StoreError",
]


class ContentRouterError(RuntimeError):
    """Base exception for content source resolution failures."""


class ConfigurationError(ContentRouterError):
    """Raised when configuration files, environment overrides, or CLI inputs are invalid."""


class ProbeError(ContentRouterError):
    """Raised when an HTTP probe cannot produce a usable outcome."""

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class ManifestError(ProbeError):
    """Raised when a manifest response is not HTTP 200 or does not parse."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class RedirectError(ProbeError):
    """Base exception for redirect chain errors."""


class MaxRedirectsExceeded(RedirectError):
    """Redirect chain exceeds the maximum allowed hops."""

    def __init__(self, max_hops: int, actual_hops: Sequence[str]) -> None:
        self.max_hops = max_hops
        self.actual_hops = list(actual_hops)
        super().__init__(
            f"Redirect chain exceeded {max_hops} hops. Hops: {' → '.join(self.actual_hops)}",
            url=self.actual_hops[0] if self.actual_hops else None,
        )


class StoreError(ContentRouterError):
    """Raised when the file-backed store cannot be read or written."""
