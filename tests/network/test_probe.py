"""Tests for the HEAD, redirect-resolving, and manifest probes.

Every failure mode must come back as ``None`` rather than an exception.
"""

import asyncio

import httpx
import pytest

from ContentRouter.network.probe import ManifestDocument, ProbeClient

pytestmark = pytest.mark.network

MANIFEST = "https://dl.example/manifest.json"


@pytest.mark.asyncio
class TestHeadStatus:
    async def test_returns_status(self, http_routes, probes):
        http_routes.respond("https://cdn.example/page", 204, method="HEAD")
        assert await probes.head_status("https://cdn.example/page") == 204
        assert http_routes.calls("HEAD") == ["https://cdn.example/page"]

    async def test_follows_redirects(self, http_routes, probes):
        http_routes.redirect("https://cdn.example/old", "https://cdn.example/new", method="HEAD")
        http_routes.respond("https://cdn.example/new", 405, method="HEAD")
        assert await probes.head_status("https://cdn.example/old") == 405

    async def test_transport_failure_is_none(self, http_routes, probes):
        http_routes.fail("https://cdn.example/page")
        assert await probes.head_status("https://cdn.example/page") is None

    async def test_timeout_is_none(self, http_routes, http_client):
        async def _slow(request):
            await asyncio.sleep(1)
            return httpx.Response(200)

        http_routes.add("https://cdn.example/slow", _slow)
        probes = ProbeClient(http_client, timeout_s=0.01)
        assert await probes.head_status("https://cdn.example/slow") is None


@pytest.mark.asyncio
class TestResolve:
    async def test_resolves_chain(self, http_routes, probes):
        http_routes.redirect("https://ex.com/go", "https://ex.com/land?pathid=9")
        http_routes.redirect("https://ex.com/land?pathid=9", "https://cdn.example/page", 302)
        http_routes.respond("https://cdn.example/page", 200)

        outcome = await probes.resolve("https://ex.com/go")

        assert outcome is not None
        assert outcome.final_url == "https://cdn.example/page"
        assert outcome.status_code == 200
        assert outcome.path_id == "9"

    async def test_does_not_read_bodies(self, http_routes, probes):
        consumed = []

        def _page(request):
            return httpx.Response(200, stream=_TrackingStream(consumed))

        http_routes.add("https://cdn.example/page", _page)
        outcome = await probes.resolve("https://cdn.example/page")
        assert outcome is not None and outcome.status_code == 200
        assert consumed == []

    async def test_redirect_overflow_is_none(self, http_routes, http_client):
        http_routes.redirect("https://a.example/", "https://a.example/")
        probes = ProbeClient(http_client, max_redirects=2)
        assert await probes.resolve("https://a.example/") is None

    async def test_transport_failure_is_none(self, http_routes, probes):
        http_routes.redirect("https://ex.com/go", "https://down.example/")
        http_routes.fail("https://down.example/")
        assert await probes.resolve("https://ex.com/go") is None

    @pytest.mark.parametrize("url", ["not a url", "ex.com/go"])
    async def test_invalid_url_is_none(self, probes, url):
        assert await probes.resolve(url) is None

    async def test_logs_audit_trail(self, http_routes, probes, caplog):
        http_routes.redirect("https://ex.com/go", "https://cdn.example/page?pathid=9")
        http_routes.respond("https://cdn.example/page?pathid=9", 200)

        await probes.resolve("https://ex.com/go")

        (record,) = [r for r in caplog.records if r.getMessage() == "Redirect chain resolved"]
        assert record.audit_trail == (
            "https://ex.com/go (301) → https://cdn.example/page?pathid=*** (200)"
        )


@pytest.mark.asyncio
class TestManifest:
    async def test_returns_url(self, http_routes, probes):
        http_routes.respond(MANIFEST, 200, json_body={"url": "https://cdn.example/app", "v": 3})
        assert await probes.fetch_manifest_url(MANIFEST) == "https://cdn.example/app"

    @pytest.mark.parametrize(
        "status, body",
        [
            (500, {"url": "https://cdn.example/app"}),
            (201, {"url": "https://cdn.example/app"}),
            (200, {"url": ""}),
            (200, {"link": "https://cdn.example/app"}),
            (200, {"url": 5}),
            (200, ["https://cdn.example/app"]),
        ],
    )
    async def test_unusable_manifest_is_none(self, http_routes, probes, status, body):
        http_routes.respond(MANIFEST, status, json_body=body)
        assert await probes.fetch_manifest_url(MANIFEST) is None

    async def test_malformed_json_is_none(self, http_routes, probes):
        http_routes.respond(MANIFEST, 200, content=b"{oops")
        assert await probes.fetch_manifest_url(MANIFEST) is None

    async def test_transport_failure_is_none(self, http_routes, probes):
        http_routes.fail(MANIFEST)
        assert await probes.fetch_manifest_url(MANIFEST) is None


def test_manifest_document_ignores_extra_fields():
    document = ManifestDocument.model_validate_json(b'{"url": "https://x.example", "extra": 1}')
    assert document.url == "https://x.example"


class _TrackingStream(httpx.AsyncByteStream):
    def __init__(self, consumed):
        self._consumed = consumed

    async def __aiter__(self):
        self._consumed.append(True)
        yield b"<html></html>"
