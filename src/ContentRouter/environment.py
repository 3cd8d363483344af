# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.environment",
#   "purpose": "Device, calendar, and reachability inputs for the entry gates",
#   "sections": [
#     {"id": "deviceinfo", "name": "DeviceInfo", "anchor": "class-deviceinfo", "kind": "class"},
#     {"id": "is-tablet-like", "name": "is_tablet_like", "anchor": "function-is-tablet-like", "kind": "function"},
#     {"id": "release-gate-passed", "name": "release_gate_passed", "anchor": "function-release-gate-passed", "kind": "function"},
#     {"id": "reachabilitymonitor", "name": "ReachabilityMonitor", "anchor": "class-reachabilitymonitor", "kind": "class"},
#     {"id": "staticreachabilitymonitor", "name": "StaticReachabilityMonitor", "anchor": "class-staticreachabilitymonitor", "kind": "class"},
#     {"id": "socketreachabilitymonitor", "name": "SocketReachabilityMonitor", "anchor": "class-socketreachabilitymonitor", "kind": "class"},
#     {"id": "check-reachability", "name": "check_reachability", "anchor": "function-check-reachability", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Environment inputs consumed by the entry gates.

The host application supplies a :class:`DeviceInfo`, a wall clock, and a
:class:`ReachabilityMonitor`.  Reachability is answered once per resolution:
:func:`check_reachability` registers a transient listener, resolves on the
first status update, and cancels the monitor before returning, so nothing
stays resident afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Protocol

__all__ = [
    "DeviceInfo",
    "is_tablet_like",
    "Clock",
    "release_gate_passed",
    "ReachabilityHandler",
    "ReachabilityMonitor",
    "StaticReachabilityMonitor",
    "SocketReachabilityMonitor",
    "check_reachability",
]

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ReachabilityHandler = Callable[[bool], None]


@dataclass(frozen=True)
class DeviceInfo:
    """Form-factor signals reported by the host."""

    idiom: str = "phone"
    model: str = ""
    name: str = ""


def is_tablet_like(
    device: DeviceInfo,
    *,
    tablet_idioms: Iterable[str] = ("pad", "tablet"),
    marker: str = "iPad",
) -> bool:
    """Any single signal is sufficient: idiom, model name, or device name."""

    idioms = {idiom.lower() for idiom in tablet_idioms}
    if device.idiom.lower() in idioms:
        return True
    if not marker:
        return False
    return marker in device.model or marker in device.name


def release_gate_passed(release_at: Optional[datetime], now: datetime) -> bool:
    """Return ``False`` while ``release_at`` lies in the future."""

    if release_at is None:
        return True
    return now >= release_at


class ReachabilityMonitor(Protocol):
    """Path monitor that reports status updates to a single handler."""

    def start(self, handler: ReachabilityHandler) -> None: ...

    def cancel(self) -> None: ...


class StaticReachabilityMonitor:
    """Reports a fixed status as soon as it is started."""

    def __init__(self, satisfied: bool = True) -> None:
        self.satisfied = satisfied
        self.started = 0
        self.cancelled = 0
        self._active = False

    def start(self, handler: ReachabilityHandler) -> None:
        self.started += 1
        self._active = True
        handler(self.satisfied)

    def cancel(self) -> None:
        self.cancelled += 1
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


class SocketReachabilityMonitor:
    """Considers the network satisfied when a TCP connection to ``host`` succeeds.

    The connection attempt runs on a daemon thread; updates arriving after
    :meth:`cancel` are dropped.
    """

    def __init__(self, host: str = "1.1.1.1", port: int = 53, timeout_s: float = 3.0) -> None:
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self, handler: ReachabilityHandler) -> None:
        self._cancelled.clear()

        def _probe() -> None:
            try:
                with socket.create_connection((self.host, self.port), timeout=self.timeout_s):
                    satisfied = True
            except OSError as exc:
                logger.debug("Reachability probe failed", extra={"error": repr(exc)})
                satisfied = False
            if not self._cancelled.is_set():
                handler(satisfied)

        self._thread = threading.Thread(target=_probe, name="reachability-probe", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()
        self._thread = None


async def check_reachability(monitor: ReachabilityMonitor) -> bool:
    """Observe ``monitor`` until its first update, then cancel it."""

    loop = asyncio.get_running_loop()
    future: asyncio.Future[bool] = loop.create_future()

    def _resolve(satisfied: bool) -> None:
        if not future.done():
            future.set_result(satisfied)

    def _on_update(satisfied: bool) -> None:
        loop.call_soon_threadsafe(_resolve, satisfied)

    monitor.start(_on_update)
    try:
        return await future
    finally:
        monitor.cancel()
