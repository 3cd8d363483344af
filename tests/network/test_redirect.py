"""Tests for hop-by-hop redirect following and ``pathid`` tracking.

Tests cover:
- Last-seen-wins tracking across the start URL and every hop
- Terminal 3xx ``Location`` observation
- Relative ``Location`` resolution
- Redirect budget enforcement
- Audit trail formatting
"""

import pytest

from ContentRouter.errors import MaxRedirectsExceeded
from ContentRouter.network.redirect import (
    PathIdTracker,
    follow_redirect_chain,
    format_audit_trail,
)

pytestmark = pytest.mark.network


class TestPathIdTracker:
    def test_ignores_urls_without_pathid(self):
        tracker = PathIdTracker()
        tracker.observe("https://ex.com/go")
        assert tracker.last_url is None
        assert tracker.path_id is None

    def test_last_seen_wins(self):
        tracker = PathIdTracker()
        tracker.observe("https://a.example/?pathid=1")
        tracker.observe("https://b.example/")
        tracker.observe("https://c.example/?pathid=2")
        assert tracker.path_id == "2"


@pytest.mark.asyncio
async def test_pathid_in_middle_hop(http_routes, http_client):
    http_routes.redirect("https://a.example/", "https://b.example/?pathid=42")
    http_routes.redirect("https://b.example/?pathid=42", "https://c.example/")
    http_routes.respond("https://c.example/", 200)

    outcome = await follow_redirect_chain(http_client, "https://a.example/")

    assert outcome.final_url == "https://c.example/"
    assert outcome.status_code == 200
    assert outcome.path_id == "42"
    assert [status for _, status in outcome.hops] == [301, 301, 200]


@pytest.mark.asyncio
async def test_later_pathid_overrides_earlier(http_routes, http_client):
    http_routes.redirect("https://a.example/?pathid=1", "https://b.example/?pathid=2", 302)
    http_routes.respond("https://b.example/?pathid=2", 200)

    outcome = await follow_redirect_chain(http_client, "https://a.example/?pathid=1")

    assert outcome.path_id == "2"


@pytest.mark.asyncio
async def test_start_url_pathid_is_seen(http_routes, http_client):
    http_routes.respond("https://a.example/?pathid=5", 200)

    outcome = await follow_redirect_chain(http_client, "https://a.example/?pathid=5")

    assert outcome.path_id == "5"
    assert outcome.path_id_url == "https://a.example/?pathid=5"


@pytest.mark.asyncio
async def test_terminal_3xx_location_is_observed(http_routes, http_client):
    http_routes.redirect("https://a.example/", "https://b.example/?pathid=77", 300)

    outcome = await follow_redirect_chain(http_client, "https://a.example/")

    assert outcome.status_code == 300
    assert outcome.final_url == "https://a.example/"
    assert outcome.path_id == "77"
    assert http_routes.calls() == ["https://a.example/"]


@pytest.mark.asyncio
async def test_relative_location(http_routes, http_client):
    http_routes.redirect("https://a.example/start", "/landing?pathid=3", 307)
    http_routes.respond("https://a.example/landing?pathid=3", 200)

    outcome = await follow_redirect_chain(http_client, "https://a.example/start")

    assert outcome.final_url == "https://a.example/landing?pathid=3"
    assert outcome.path_id == "3"


@pytest.mark.asyncio
async def test_caller_supplied_tracker_is_used(http_routes, http_client):
    http_routes.redirect("https://a.example/", "https://b.example/?pathid=8")
    http_routes.respond("https://b.example/?pathid=8", 204)
    tracker = PathIdTracker()

    await follow_redirect_chain(http_client, "https://a.example/", tracker=tracker)

    assert tracker.path_id == "8"


@pytest.mark.asyncio
async def test_exceeding_budget_raises(http_routes, http_client):
    http_routes.redirect("https://a.example/", "https://b.example/")
    http_routes.redirect("https://b.example/", "https://a.example/")

    with pytest.raises(MaxRedirectsExceeded) as excinfo:
        await follow_redirect_chain(http_client, "https://a.example/", max_hops=3)

    assert excinfo.value.max_hops == 3
    assert len(excinfo.value.actual_hops) == 4


def test_format_audit_trail_redacts():
    trail = (("https://a.example/?pathid=9", 301), ("https://b.example/", 200))
    assert format_audit_trail(trail) == "https://a.example/?pathid=*** (301) → https://b.example/ (200)"
