# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.core",
#   "purpose": "Canonical enums, value types, and store keys shared by the resolution stack",
#   "sections": [
#     {"id": "contentmodekind", "name": "ContentModeKind", "anchor": "class-contentmodekind", "kind": "class"},
#     {"id": "contentmode", "name": "ContentMode", "anchor": "class-contentmode", "kind": "class"},
#     {"id": "displaykind", "name": "DisplayKind", "anchor": "class-displaykind", "kind": "class"},
#     {"id": "displaymode", "name": "DisplayMode", "anchor": "class-displaymode", "kind": "class"},
#     {"id": "storekeys", "name": "StoreKeys", "anchor": "class-storekeys", "kind": "class"},
#     {"id": "is-accepted-status", "name": "is_accepted_status", "anchor": "function-is-accepted-status", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Core primitives for content source resolution.

Responsibilities
----------------
- Define the :class:`ContentMode` value that is fixed when a router is built
  and selects the resolution strategy.
- Define the tri-state :class:`DisplayMode` published to the presentation layer.
- Centralise the persisted key names so the engine, the CLI, and the tests
  agree on one vocabulary.
- Own the accepted status range used to classify probe outcomes.

Design Notes
------------
- Everything here is side-effect free and immutable; stateful collaborators
  live in :mod:`ContentRouter.store` and :mod:`ContentRouter.publisher`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = (
    "ContentModeKind",
    "ContentMode",
    "DisplayKind",
    "DisplayMode",
    "StoreKeys",
    "ACCEPTED_STATUS_MIN",
    "ACCEPTED_STATUS_MAX",
    "ACCEPTED_STATUS_EXTRA",
    "is_accepted_status",
    "is_accepted_initial_status",
)


ACCEPTED_STATUS_MIN = 200
ACCEPTED_STATUS_MAX = 403
ACCEPTED_STATUS_EXTRA = 405


class ContentModeKind(str, Enum):
    """Resolution strategy selector."""

    CLASSIC = "classic"
    CLASSIC_NO_TOKEN = "classic_no_token"
    DROPBOX = "dropbox"
    PRIVACY = "privacy"


@dataclass(frozen=True)
class ContentMode:
    """Immutable content mode, optionally carrying a privacy identifier."""

    kind: ContentModeKind
    identifier: Optional[str] = None

    @classmethod
    def classic(cls) -> "ContentMode":
        return cls(ContentModeKind.CLASSIC)

    @classmethod
    def classic_no_token(cls) -> "ContentMode":
        return cls(ContentModeKind.CLASSIC_NO_TOKEN)

    @classmethod
    def dropbox(cls) -> "ContentMode":
        return cls(ContentModeKind.DROPBOX)

    @classmethod
    def privacy(cls, identifier: str) -> "ContentMode":
        return cls(ContentModeKind.PRIVACY, identifier)

    @property
    def is_dropbox(self) -> bool:
        return self.kind is ContentModeKind.DROPBOX

    @property
    def uses_token(self) -> bool:
        """Whether the source URL is augmented with the per-install ``push_id``."""

        return self.kind in (ContentModeKind.CLASSIC, ContentModeKind.PRIVACY)

    @property
    def path_id_key(self) -> str:
        """Store key holding the last extracted ``pathid`` for this mode."""

        if self.kind is ContentModeKind.PRIVACY:
            return StoreKeys.PRIVACY_PATH_ID
        return StoreKeys.CLASSIC_PATH_ID

    def __str__(self) -> str:
        if self.identifier is not None:
            return f"{self.kind.value}({self.identifier})"
        return self.kind.value


class DisplayKind(str, Enum):
    """Tri-state display decision."""

    LOADING = "loading"
    BASIC = "basic"
    ENHANCED = "enhanced"


@dataclass(frozen=True)
class DisplayMode:
    """Display decision published to observers; ``url`` is set only for enhanced."""

    kind: DisplayKind
    url: Optional[str] = None

    @classmethod
    def loading(cls) -> "DisplayMode":
        return cls(DisplayKind.LOADING)

    @classmethod
    def basic(cls) -> "DisplayMode":
        return cls(DisplayKind.BASIC)

    @classmethod
    def enhanced(cls, url: str) -> "DisplayMode":
        return cls(DisplayKind.ENHANCED, url)

    @property
    def is_terminal(self) -> bool:
        return self.kind is not DisplayKind.LOADING

    def __str__(self) -> str:
        if self.kind is DisplayKind.ENHANCED:
            return f"enhanced({self.url})"
        return self.kind.value


class StoreKeys:
    """Persisted key names."""

    SAVED_CONTENT_SOURCE = "saved_content_source"
    CLASSIC_PATH_ID = "classic_path_id"
    PRIVACY_PATH_ID = "privacy_path_id"
    PRIMARY_MODE_SHOWN = "primary_mode_shown"
    DROPBOX_FAILED_ONCE = "dropbox_failed_once"
    DROPBOX_WEBVIEW_TRIED = "dropbox_webview_tried"
    ENHANCED_ACCESS_COUNT = "enhanced_access_count"
    USER_UNIQUE_IDENTIFIER = "user_unique_identifier"


def is_accepted_status(status: Optional[int]) -> bool:
    """Return ``True`` for 200–403 inclusive or exactly 405.

    ``None`` (transport failure) is never accepted.
    """

    if status is None:
        return False
    return ACCEPTED_STATUS_MIN <= status <= ACCEPTED_STATUS_MAX or status == ACCEPTED_STATUS_EXTRA


def is_accepted_initial_status(status: Optional[int]) -> bool:
    """Acceptance rule for the first full resolution: 200–403 only, 405 excluded."""

    if status is None:
        return False
    return ACCEPTED_STATUS_MIN <= status <= ACCEPTED_STATUS_MAX
