# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.engine",
#   "purpose": "Content source resolution state machine: gates, strategies, persistence, publication",
#   "sections": [
#     {"id": "resolutionengine", "name": "ResolutionEngine", "anchor": "class-resolutionengine", "kind": "class"},
#     {"id": "entry-gates", "name": "ResolutionEngine._run", "anchor": "method-run", "kind": "method"},
#     {"id": "dropbox-strategy", "name": "ResolutionEngine._resolve_dropbox", "anchor": "method-resolve-dropbox", "kind": "method"},
#     {"id": "unified-strategy", "name": "ResolutionEngine._resolve_unified", "anchor": "method-resolve-unified", "kind": "method"},
#     {"id": "access-recording", "name": "ResolutionEngine.track_enhanced_access", "anchor": "method-track-enhanced-access", "kind": "method"},
#     {"id": "error-path", "name": "ResolutionEngine.handle_404_error", "anchor": "method-handle-404-error", "kind": "method"}
#   ]
# }
# === /NAVMAP ===

"""Content source resolution engine.

One resolution run moves the published display mode from Loading to either
Basic or Enhanced(url):

1. **Entry gates** (each short-circuits to Basic): blank source URL,
   tablet-like device, release gate in the future, no network path.
2. **Strategy** selected by :class:`~ContentRouter.core.ContentMode`:
   - *Dropbox*: sticky failure flag → Basic; saved source → Enhanced(saved);
     otherwise a JSON manifest supplies the URL, and any failure sets the
     sticky flag.
   - *Unified* (Classic, ClassicNoToken, Privacy): sticky basic flag → Basic;
     a saved source is re-validated with HEAD and, when rejected, refreshed
     through the stored ``pathid``; without a saved source the redirect chain
     is walked from the configured URL.
3. **Publication** after the fixed splash delay.

Every network or manifest failure is folded into a decision; nothing raises
to the caller.  Runs are serialized with an :class:`asyncio.Lock`, and the
store is the only state that survives the process.

Example:
    >>> engine = ResolutionEngine.create(
    ...     "https://ex.com/go", ContentMode.classic(), store=store, probes=probes
    ... )
    >>> await engine.resolve()
    DisplayMode(kind=<DisplayKind.ENHANCED: 'enhanced'>, url='https://cdn.example/page')
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from .config.models import DeviceSettings, RouterConfig, TimingSettings
from .core import (
    ContentMode,
    DisplayMode,
    StoreKeys,
    is_accepted_initial_status,
    is_accepted_status,
)
from .environment import (
    Clock,
    DeviceInfo,
    ReachabilityMonitor,
    StaticReachabilityMonitor,
    check_reachability,
    is_tablet_like,
    release_gate_passed,
)
from .errors import ContentRouterError
from .hooks import (
    ONBOARDING_LAUNCH_EVENT,
    EventReporter,
    LoggingEventReporter,
    LoggingReviewPrompter,
    ReviewPrompter,
)
from .identity import UserIdentity, augment_source_url
from .network.probe import ProbeClient
from .network.redirect import RedirectOutcome
from .publisher import DecisionPublisher
from .store import KeyValueStore, get_bool, get_int, get_str
from .urls import PATH_ID_PARAM, append_query_param, is_saving_allowed, redact_url, strip_path_id

__all__ = ["REVIEW_PROMPT_ACCESS_COUNT", "ResolutionEngine"]

logger = logging.getLogger(__name__)

REVIEW_PROMPT_ACCESS_COUNT = 2

Sleep = Callable[[float], Awaitable[Any]]


class ResolutionEngine:
    """Decides between the basic and the enhanced experience.

    Args:
        source_url: Configured (possibly token-augmented) starting URL.
        mode: Content mode; fixed for the engine's lifetime.
        store: Persistent key-value store.
        probes: HTTP probe client.
        reachability: One-shot network path monitor.
        device: Form-factor signals.
        release_at: Basic is forced until this local datetime.
        clock: Wall clock used for the release gate.
        timing: Splash and review prompt delays.
        device_settings: Tablet classification markers.
        reporter: Analytics collaborator.
        review_prompter: Store review collaborator.
        publisher: Decision publisher observed by the presentation layer.
        sleep: Awaitable delay; replaced in tests.
    """

    def __init__(
        self,
        source_url: str,
        mode: ContentMode,
        *,
        store: KeyValueStore,
        probes: ProbeClient,
        reachability: Optional[ReachabilityMonitor] = None,
        device: Optional[DeviceInfo] = None,
        release_at: Optional[datetime] = None,
        clock: Clock = datetime.now,
        timing: Optional[TimingSettings] = None,
        device_settings: Optional[DeviceSettings] = None,
        reporter: Optional[EventReporter] = None,
        review_prompter: Optional[ReviewPrompter] = None,
        publisher: Optional[DecisionPublisher] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._source_url = source_url
        self._rebound = False
        self.mode = mode
        self.store = store
        self.probes = probes
        self.reachability = reachability or StaticReachabilityMonitor(True)
        self.device = device or DeviceInfo()
        self.release_at = release_at
        self.clock = clock
        self.timing = timing or TimingSettings()
        self.device_settings = device_settings or DeviceSettings()
        self.reporter = reporter or LoggingEventReporter()
        self.review_prompter = review_prompter or LoggingReviewPrompter()
        self.publisher = publisher or DecisionPublisher()
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[DisplayMode]] = None
        self._review_handle: Optional[asyncio.TimerHandle] = None
        self._basic_switch_triggered = False
        logger.info("Resolution engine created", extra={"content_mode": str(mode)})

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, provisional_url: str, mode: ContentMode, **kwargs: Any) -> "ResolutionEngine":
        """First phase of two-phase construction; see :meth:`rebind`."""

        return cls(provisional_url, mode, **kwargs)

    @classmethod
    def from_config(
        cls,
        config: RouterConfig,
        *,
        store: KeyValueStore,
        probes: ProbeClient,
        identity: Optional[UserIdentity] = None,
        **kwargs: Any,
    ) -> "ResolutionEngine":
        """Build an engine from a :class:`~ContentRouter.config.models.RouterConfig`.

        Token-carrying modes get ``push_id`` appended when ``identity`` is given.
        """

        mode = config.content_mode()
        source_url = augment_source_url(mode, config.source_url, identity)
        release_at = config.release_date.to_datetime() if config.release_date else None
        kwargs.setdefault("timing", config.timing)
        kwargs.setdefault("device_settings", config.device)
        return cls(
            source_url,
            mode,
            store=store,
            probes=probes,
            release_at=release_at,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def current_mode(self) -> ContentMode:
        return self.mode

    @property
    def current_source_url(self) -> str:
        return self._source_url

    @property
    def display_mode(self) -> DisplayMode:
        return self.publisher.value

    # ------------------------------------------------------------------
    # Resolution runs
    # ------------------------------------------------------------------

    def start(self) -> "asyncio.Task[DisplayMode]":
        """Schedule a resolution run on the running loop and return its task."""

        self._task = asyncio.get_running_loop().create_task(self.resolve())
        return self._task

    async def resolve(self) -> DisplayMode:
        """Run one resolution to a terminal decision and return it."""

        async with self._lock:
            self.publisher.begin()
            try:
                await self._run()
            except ContentRouterError:
                logger.exception("Resolution failed; falling back to basic")
                if not self.publisher.value.is_terminal:
                    self.publisher.force(DisplayMode.basic())
            return self.publisher.value

    async def rebind(self, final_url: str) -> DisplayMode:
        """Second phase: replace the provisional URL and resolve again from Loading."""

        async with self._lock:
            if self._rebound:
                raise ContentRouterError("Source URL can only be rebound once")
            self._rebound = True
            self._source_url = final_url
            logger.info("Source URL rebound", extra={"url": redact_url(final_url)})
        return await self.resolve()

    async def _run(self) -> None:
        source_url = self._source_url
        if not source_url.strip():
            logger.warning("Empty source URL; forcing basic")
            await self._finish_basic()
            return

        if is_tablet_like(
            self.device,
            tablet_idioms=self.device_settings.tablet_idioms,
            marker=self.device_settings.tablet_marker,
        ):
            logger.info("Tablet-like device detected; activating basic")
            await self._finish_basic()
            return

        if not release_gate_passed(self.release_at, self.clock()):
            logger.info(
                "Release date in the future; activating basic",
                extra={"release_at": self.release_at.isoformat() if self.release_at else None},
            )
            await self._finish_basic()
            return

        if not await check_reachability(self.reachability):
            logger.info("No network path; activating basic")
            await self._finish_basic()
            return

        if self.mode.is_dropbox:
            await self._resolve_dropbox()
        else:
            await self._resolve_unified()

    # ------------------------------------------------------------------
    # Dropbox strategy
    # ------------------------------------------------------------------

    async def _resolve_dropbox(self) -> None:
        if get_bool(self.store, StoreKeys.DROPBOX_FAILED_ONCE):
            logger.info("Dropbox previously failed; activating basic")
            await self._finish_basic()
            return

        saved = get_str(self.store, StoreKeys.SAVED_CONTENT_SOURCE)
        if saved:
            logger.info("Using saved Dropbox source", extra={"url": redact_url(saved)})
            await self._finish_enhanced(saved, record=True)
            return

        manifest_url = await self.probes.fetch_manifest_url(self._source_url)
        if manifest_url:
            await self._finish_enhanced(manifest_url, record=True)
            return

        logger.warning("Dropbox manifest unusable; activating basic and remembering")
        self.store.set(StoreKeys.DROPBOX_FAILED_ONCE, True)
        await self._finish_basic()

    # ------------------------------------------------------------------
    # Unified strategy (Classic, ClassicNoToken, Privacy)
    # ------------------------------------------------------------------

    async def _resolve_unified(self) -> None:
        if get_bool(self.store, StoreKeys.PRIMARY_MODE_SHOWN):
            logger.info("Basic was shown before; forcing basic")
            await self._finish_basic()
            return

        saved = get_str(self.store, StoreKeys.SAVED_CONTENT_SOURCE)
        if saved:
            await self._revalidate_saved(saved)
            return

        outcome = await self.probes.resolve(self._source_url)
        if outcome is None:
            logger.info("Source unresolved; activating basic")
            await self._finish_basic()
            return

        path_id = outcome.path_id
        if path_id is not None:
            self.store.set(self.mode.path_id_key, path_id)
            logger.info("pathid saved", extra={"store_key": self.mode.path_id_key})

        if self._trips_privacy(outcome.final_url):
            logger.info("Privacy identifier found in final URL; activating basic")
            await self._finish_basic()
            return

        if not is_accepted_initial_status(outcome.status_code):
            logger.info(
                "Final status rejected; activating basic",
                extra={"status": outcome.status_code},
            )
            await self._finish_basic()
            return

        self._save_resolved(outcome.final_url)
        await self._finish_enhanced(outcome.final_url, record=True)

    async def _revalidate_saved(self, saved: str) -> None:
        status = await self.probes.head_status(saved)
        logger.info("Saved source probed", extra={"url": redact_url(saved), "status": status})
        if is_accepted_status(status):
            await self._finish_enhanced(saved, record=True)
            return

        path_id = get_str(self.store, self.mode.path_id_key)
        refreshed = await self._refresh_with_path_id(path_id)
        if refreshed is not None and is_accepted_status(refreshed.status_code):
            self._save_resolved(refreshed.final_url)
            await self._finish_enhanced(refreshed.final_url, record=True)
            return

        if path_id:
            try:
                fallback = append_query_param(self._source_url, PATH_ID_PARAM, path_id)
            except ValueError:
                fallback = saved
            logger.info("Refresh failed; showing pathid fallback", extra={"url": redact_url(fallback)})
            await self._finish_enhanced(fallback, record=False)
            return

        logger.info("Refresh unavailable; showing saved source unverified")
        await self._finish_enhanced(saved, record=False)

    async def _refresh_with_path_id(self, path_id: Optional[str]) -> Optional[RedirectOutcome]:
        if not path_id:
            return None
        try:
            refresh_url = append_query_param(self._source_url, PATH_ID_PARAM, path_id)
        except ValueError:
            logger.warning("Cannot build refresh URL", extra={"url": redact_url(self._source_url)})
            return None
        logger.info("Refreshing via pathid", extra={"url": redact_url(refresh_url)})
        return await self.probes.resolve(refresh_url)

    def _trips_privacy(self, final_url: str) -> bool:
        identifier = self.mode.identifier
        if not identifier:
            return False
        return identifier in final_url

    def _save_resolved(self, url: str) -> None:
        """Persist ``url`` without ``pathid`` unless it stays on the source's base domain."""

        stripped = strip_path_id(url)
        if is_saving_allowed(stripped, self._source_url):
            self.store.set(StoreKeys.SAVED_CONTENT_SOURCE, stripped)
            logger.info("Content source saved", extra={"url": redact_url(stripped)})
        else:
            logger.info("Skip save (same base domain)", extra={"url": redact_url(stripped)})

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    async def _finish_basic(self) -> None:
        await self._sleep(self.timing.splash_delay_s)
        self._activate_basic()

    async def _finish_enhanced(self, url: str, *, record: bool) -> None:
        await self._sleep(self.timing.splash_delay_s)
        self.publisher.publish(DisplayMode.enhanced(url))
        logger.info(
            "Enhanced display activated",
            extra={"url": redact_url(url), "recorded": record},
        )
        if record:
            self.track_enhanced_access()

    def _activate_basic(self, *, force: bool = False) -> None:
        if not self.mode.is_dropbox:
            self.store.set(StoreKeys.PRIMARY_MODE_SHOWN, True)
        if force:
            self.publisher.force(DisplayMode.basic())
        else:
            self.publisher.publish(DisplayMode.basic())
        logger.info("Basic display activated")
        self.reporter.track_event(ONBOARDING_LAUNCH_EVENT)

    def track_enhanced_access(self) -> int:
        """Increment the access counter; the count reaching 2 schedules a review prompt.

        Must be called from a running event loop.
        """

        count = get_int(self.store, StoreKeys.ENHANCED_ACCESS_COUNT) + 1
        self.store.set(StoreKeys.ENHANCED_ACCESS_COUNT, count)
        logger.info("Enhanced access recorded", extra={"access_count": count})
        if count == REVIEW_PROMPT_ACCESS_COUNT:
            loop = asyncio.get_running_loop()
            self._review_handle = loop.call_later(
                self.timing.review_prompt_delay_s, self.review_prompter.request_review
            )
            logger.info("Review prompt scheduled", extra={"access_count": count})
        return count

    # ------------------------------------------------------------------
    # Rendering-layer callbacks
    # ------------------------------------------------------------------

    def handle_404_error(self) -> None:
        """Force basic after the rendering layer saw a 404, bypassing the gates.

        In Dropbox mode the first occurrence per install also sets the sticky
        Dropbox failure flag.
        """

        logger.warning("HTTP 404 reported by renderer; switching to basic")
        if self.mode.is_dropbox and not get_bool(self.store, StoreKeys.DROPBOX_WEBVIEW_TRIED):
            self.store.set(StoreKeys.DROPBOX_WEBVIEW_TRIED, True)
            self.store.set(StoreKeys.DROPBOX_FAILED_ONCE, True)
            logger.info("Dropbox failed flag set (first renderer attempt)")
        self._activate_basic(force=True)

    def notify_http_status(self, url: str, status_code: int) -> bool:
        """Inspect a status observed by the renderer.

        Returns:
            ``True`` when the renderer should cancel the navigation.
        """

        logger.debug("Renderer status", extra={"url": redact_url(url), "status": status_code})
        if not self.mode.is_dropbox or status_code != 404:
            return False
        if get_str(self.store, StoreKeys.SAVED_CONTENT_SOURCE) is not None:
            logger.info("HTTP 404 but enhanced was shown before; continuing")
            return False
        if self._basic_switch_triggered:
            return True
        self._basic_switch_triggered = True
        self.handle_404_error()
        return True
