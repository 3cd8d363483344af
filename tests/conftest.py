"""Pytest configuration shared by the content router test suite."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

import httpx
import pytest

from ContentRouter.config.models import TimingSettings
from ContentRouter.core import ContentMode
from ContentRouter.engine import ResolutionEngine
from ContentRouter.environment import DeviceInfo, StaticReachabilityMonitor
from ContentRouter.network.probe import ProbeClient
from ContentRouter.store import InMemoryStore
from tests.fixtures.http_mocking import (  # noqa: F401
    MockRoutes,
    http_client,
    http_routes,
)

SOURCE_URL = "https://ex.com/go"


class RecordingReporter:
    def __init__(self) -> None:
        self.events: List[str] = []

    def track_event(self, name: str, **params: Any) -> None:
        self.events.append(name)


class RecordingPrompter:
    def __init__(self) -> None:
        self.requests = 0

    def request_review(self) -> None:
        self.requests += 1


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that returns immediately."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def _capture_router_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="ContentRouter")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def prompter() -> RecordingPrompter:
    return RecordingPrompter()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def reachability() -> StaticReachabilityMonitor:
    return StaticReachabilityMonitor(True)


@pytest.fixture
def probes(http_client: httpx.AsyncClient) -> ProbeClient:
    return ProbeClient(http_client, timeout_s=5.0, max_redirects=16)


@pytest.fixture
def make_engine(
    store: InMemoryStore,
    probes: ProbeClient,
    reporter: RecordingReporter,
    prompter: RecordingPrompter,
    fake_sleep: RecordingSleep,
    reachability: StaticReachabilityMonitor,
) -> Callable[..., ResolutionEngine]:
    """Build engines with hermetic collaborators; keyword arguments override them."""

    def _make(
        source_url: str = SOURCE_URL,
        mode: ContentMode = ContentMode.classic(),
        **overrides: Any,
    ) -> ResolutionEngine:
        kwargs: dict[str, Any] = {
            "store": store,
            "probes": probes,
            "reachability": reachability,
            "device": DeviceInfo(idiom="phone", model="iPhone", name="Test iPhone"),
            "timing": TimingSettings(splash_delay_s=1.5, review_prompt_delay_s=0.0),
            "reporter": reporter,
            "review_prompter": prompter,
            "sleep": fake_sleep,
        }
        kwargs.update(overrides)
        return ResolutionEngine.create(source_url, mode, **kwargs)

    return _make
