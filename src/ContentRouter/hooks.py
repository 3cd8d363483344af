"""Collaborator hooks invoked by the engine.

Analytics delivery and the store-review prompt are owned by the host
application.  The engine only calls these two protocols; the logging
implementations below are the defaults when a host wires nothing in.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

__all__ = [
    "ONBOARDING_LAUNCH_EVENT",
    "EventReporter",
    "ReviewPrompter",
    "LoggingEventReporter",
    "LoggingReviewPrompter",
]

logger = logging.getLogger(__name__)

ONBOARDING_LAUNCH_EVENT = "Onboarding_launch"


class EventReporter(Protocol):
    def track_event(self, name: str, **params: Any) -> None: ...


class ReviewPrompter(Protocol):
    def request_review(self) -> None: ...


class LoggingEventReporter:
    """Writes events to the log instead of an analytics backend."""

    def track_event(self, name: str, **params: Any) -> None:
        logger.info("Event tracked", extra={"event": name, "params": params})


class LoggingReviewPrompter:
    def request_review(self) -> None:
        logger.info("Store review prompt requested")
