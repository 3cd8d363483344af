"""ContentRouter: decide between a bundled and a remotely hosted experience.

The public surface is the :class:`~ContentRouter.engine.ResolutionEngine`
together with the value types it publishes and the collaborators it needs.

Example:
    >>> from ContentRouter import ContentMode, InMemoryStore, ProbeClient, ResolutionEngine
    >>> from ContentRouter.network import create_http_client
    >>> async with create_http_client() as http:
    ...     engine = ResolutionEngine.create(
    ...         "https://ex.com/go", ContentMode.classic(),
    ...         store=InMemoryStore(), probes=ProbeClient(http),
    ...     )
    ...     decision = await engine.resolve()
"""

from .config import RouterConfig, load_config
from .core import ContentMode, ContentModeKind, DisplayKind, DisplayMode, StoreKeys
from .engine import ResolutionEngine
from .environment import DeviceInfo, StaticReachabilityMonitor
from .errors import ContentRouterError
from .identity import UserIdentity, augment_source_url
from .network import PathIdTracker, ProbeClient, RedirectOutcome
from .publisher import DecisionPublisher
from .store import InMemoryStore, JsonFileStore, KeyValueStore

__version__ = "0.1.0"

__all__ = [
    "ContentMode",
    "ContentModeKind",
    "ContentRouterError",
    "DecisionPublisher",
    "DeviceInfo",
    "DisplayKind",
    "DisplayMode",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "PathIdTracker",
    "ProbeClient",
    "RedirectOutcome",
    "ResolutionEngine",
    "RouterConfig",
    "StaticReachabilityMonitor",
    "StoreKeys",
    "UserIdentity",
    "augment_source_url",
    "load_config",
]
