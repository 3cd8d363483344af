# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.publisher",
#   "purpose": "Single-writer, multi-observer holder of the current display decision",
#   "sections": [
#     {"id": "invalidtransition", "name": "InvalidTransition", "anchor": "class-invalidtransition", "kind": "class"},
#     {"id": "decisionpublisher", "name": "DecisionPublisher", "anchor": "class-decisionpublisher", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Decision publisher.

The engine is the only writer.  Observers either subscribe a callback, which
is invoked synchronously with every new value, or ``await``
:meth:`DecisionPublisher.wait_for_decision`.

Transitions:

- :meth:`begin` resets to Loading at the start of a resolution run.
- :meth:`publish` moves Loading → terminal; publishing onto a terminal value
  raises :class:`InvalidTransition`.
- :meth:`force` is reserved for the externally triggered switch to Basic and
  is accepted from any state.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, List

from .core import DisplayMode
from .errors import ContentRouterError

__all__ = ["InvalidTransition", "DecisionPublisher", "Observer"]

logger = logging.getLogger(__name__)

Observer = Callable[[DisplayMode], None]


class InvalidTransition(ContentRouterError):
    """Raised when a terminal decision would be overwritten within one run."""


class DecisionPublisher:
    """Holds the current :class:`~ContentRouter.core.DisplayMode`."""

    def __init__(self) -> None:
        self._value = DisplayMode.loading()
        self._lock = threading.Lock()
        self._observers: List[Observer] = []
        self._waiters: List[asyncio.Future[DisplayMode]] = []

    @property
    def value(self) -> DisplayMode:
        with self._lock:
            return self._value

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer`` and return a callable that removes it."""

        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def begin(self) -> None:
        self._set(DisplayMode.loading())

    def publish(self, mode: DisplayMode) -> None:
        if not mode.is_terminal:
            raise InvalidTransition("publish() requires a terminal display mode")
        with self._lock:
            current = self._value
        if current.is_terminal:
            raise InvalidTransition(f"Display mode already resolved to {current}; refusing {mode}")
        self._set(mode)

    def force(self, mode: DisplayMode) -> None:
        self._set(mode)

    async def wait_for_decision(self) -> DisplayMode:
        """Return the current value once it is terminal."""

        with self._lock:
            if self._value.is_terminal:
                return self._value
            future: asyncio.Future[DisplayMode] = asyncio.get_running_loop().create_future()
            self._waiters.append(future)
        return await future

    def _set(self, mode: DisplayMode) -> None:
        with self._lock:
            self._value = mode
            observers = list(self._observers)
            waiters: List[asyncio.Future[DisplayMode]] = []
            if mode.is_terminal:
                waiters, self._waiters = self._waiters, []
        logger.debug("Display mode changed", extra={"display_mode": str(mode)})
        for future in waiters:
            if not future.done():
                future.set_result(mode)
        for observer in observers:
            observer(mode)
