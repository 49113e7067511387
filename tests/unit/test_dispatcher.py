"""Unit tests — dispatcher.py (WebhookDispatcher).

Uses httpx mock transport to avoid real HTTP calls.
"""

from __future__ import annotations

import json

import httpx
import pytest

from gitpoll.dispatcher import WebhookDispatcher
from gitpoll.models import BuildConfig

from conftest import make_commit


def _dispatcher(handler, **kwargs) -> WebhookDispatcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookDispatcher("http://cluster.test:8080", client=client, **kwargs)


@pytest.mark.unit
class TestNotify:
    async def test_posts_push_event(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        dispatcher = _dispatcher(handler)
        bc = BuildConfig(id="a", uri="repo-a", ref="", secret="s")
        assert await dispatcher.notify(bc, make_commit("c1", "m")) is True

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://cluster.test:8080/osapi/v1beta1/buildConfigHooks/a/s/github"
        assert request.url.path.endswith("/a/s/github")
        assert request.headers["User-Agent"] == "GitHub-Hookshot/github"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["X-GitHub-Event"] == "push"

        body = json.loads(request.content)
        assert body["ref"] == "refs/heads/master"
        assert body["after"] == "c1"
        assert body["head_commit"]["id"] == "c1"
        assert body["head_commit"]["message"] == "m"
        assert body["head_commit"]["author"] == {"name": "Ada", "email": "ada@example.com"}
        assert body["head_commit"]["committer"] == {"name": "Bob", "email": "bob@example.com"}

    async def test_branch_ref(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200)

        bc = BuildConfig(id="a", uri="repo-a", ref="release-1", secret="s")
        await _dispatcher(handler).notify(bc, make_commit("c1"))
        assert bodies[0]["ref"] == "refs/heads/release-1"

    async def test_non_2xx_is_logged_not_raised(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500, text="internal error")

        bc = BuildConfig(id="a", uri="repo-a", secret="s")
        assert await _dispatcher(handler).notify(bc, make_commit("c1")) is False
        assert calls == 1  # no retry

    async def test_transport_error_is_logged_not_raised(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        bc = BuildConfig(id="a", uri="repo-a", secret="s")
        assert await _dispatcher(handler).notify(bc, make_commit("c1")) is False

    async def test_accepts_any_2xx(self) -> None:
        bc = BuildConfig(id="a", uri="repo-a", secret="s")
        dispatcher = _dispatcher(lambda request: httpx.Response(204))
        assert await dispatcher.notify(bc, make_commit("c1")) is True


@pytest.mark.unit
class TestWebhookUrl:
    def test_custom_path_and_provider(self) -> None:
        dispatcher = WebhookDispatcher(
            "http://cluster:8080/", hook_path="/hooks/", provider="gitlab",
            client=httpx.AsyncClient(),
        )
        bc = BuildConfig(id="a", uri="repo-a", secret="s")
        assert dispatcher.webhook_url(bc) == "http://cluster:8080/hooks/a/s/gitlab"

    def test_path_segments_are_escaped(self) -> None:
        dispatcher = WebhookDispatcher("http://cluster:8080", client=httpx.AsyncClient())
        bc = BuildConfig(id="a b", uri="repo-a", secret="x/y")
        assert dispatcher.webhook_url(bc).endswith("/a%20b/x%2Fy/github")

    async def test_close_keeps_injected_client_open(self) -> None:
        client = httpx.AsyncClient()
        dispatcher = WebhookDispatcher("http://cluster:8080", client=client)
        await dispatcher.close()
        assert not client.is_closed
        await client.aclose()

    async def test_close_closes_own_client(self) -> None:
        dispatcher = WebhookDispatcher("http://cluster:8080")
        await dispatcher.close()
        assert dispatcher._client.is_closed
