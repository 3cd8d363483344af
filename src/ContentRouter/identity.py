"""Per-install user identifier and source URL augmentation.

The identifier is generated once (10–20 characters from ``[A-Za-z0-9]``),
persisted under ``user_unique_identifier``, and appended to the source URL as
``push_id`` for token-carrying modes before the engine is constructed.
"""

from __future__ import annotations

import logging
import random
import string
from typing import Optional

from .core import ContentMode, StoreKeys
from .store import KeyValueStore, get_str
from .urls import USER_ID_PARAM, append_query_param, redact_url

__all__ = ["UserIdentity", "generate_user_id", "augment_source_url"]

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits
_MIN_LENGTH = 10
_MAX_LENGTH = 20


def generate_user_id(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.SystemRandom()
    length = rng.randint(_MIN_LENGTH, _MAX_LENGTH)
    return "".join(rng.choice(_ALPHABET) for _ in range(length))


class UserIdentity:
    """Lazily loads or creates the per-install identifier."""

    def __init__(self, store: KeyValueStore, *, rng: Optional[random.Random] = None) -> None:
        self.store = store
        self._rng = rng
        self._user_id: Optional[str] = None

    @property
    def user_id(self) -> str:
        if self._user_id is None:
            stored = get_str(self.store, StoreKeys.USER_UNIQUE_IDENTIFIER)
            if stored:
                self._user_id = stored
            else:
                self._user_id = generate_user_id(self._rng)
                self.store.set(StoreKeys.USER_UNIQUE_IDENTIFIER, self._user_id)
                logger.info("Generated new user identifier")
        return self._user_id

    def append_user_id(self, url: str) -> str:
        try:
            augmented = append_query_param(url, USER_ID_PARAM, self.user_id)
        except ValueError:
            logger.warning("Failed to parse URL for augmentation", extra={"url": url})
            return url
        logger.debug("URL augmented", extra={"url": redact_url(augmented)})
        return augmented


def augment_source_url(
    mode: ContentMode, url: str, identity: Optional[UserIdentity] = None
) -> str:
    """Return ``url`` with ``push_id`` appended when ``mode`` carries a token.

    Blank URLs are returned untouched so the blank-source gate still applies.
    """

    if identity is None or not mode.uses_token or not url.strip():
        return url
    return identity.append_user_id(url)
