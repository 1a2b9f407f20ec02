"""Tests for the HTTP prober, using httpx's mock transport."""

import asyncio

import httpx

from uptime.config import WebsiteConfig
from uptime.domain import Health
from uptime.prober import USER_AGENT, build_client, probe, probe_all


def _client(handler) -> httpx.AsyncClient:
    return build_client(5.0, transport=httpx.MockTransport(handler))


def _site(name="example", url="https://example.com/"):
    return WebsiteConfig(name=name, url=url)


def _probe(handler, website=None):
    async def go():
        async with _client(handler) as client:
            return await probe(client, website or _site())

    return asyncio.run(go())


class TestProbe:
    def test_2xx_is_ok(self):
        assert _probe(lambda request: httpx.Response(204)).state is Health.OK

    def test_5xx_is_not_ok(self):
        assert _probe(lambda request: httpx.Response(503)).state is Health.NOT_OK

    def test_4xx_is_not_ok(self):
        assert _probe(lambda request: httpx.Response(404)).state is Health.NOT_OK

    def test_redirect_is_followed(self):
        def handler(request):
            if request.url.path == "/":
                return httpx.Response(301, headers={"Location": "https://example.com/home"})
            return httpx.Response(200)

        assert _probe(handler).state is Health.OK

    def test_connection_error_is_not_ok(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert _probe(handler).state is Health.NOT_OK

    def test_timeout_is_not_ok(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _probe(handler).state is Health.NOT_OK

    def test_sends_user_agent(self):
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200)

        _probe(handler)
        assert seen["ua"] == USER_AGENT

    def test_observation_is_timestamped_in_utc(self):
        observation = _probe(lambda request: httpx.Response(200))
        assert observation.time.utcoffset().total_seconds() == 0


class TestProbeAll:
    def test_one_observation_per_website_in_order(self):
        def handler(request):
            return httpx.Response(200 if request.url.host == "up.test" else 500)

        websites = [_site("up", "https://up.test/"), _site("down", "https://down.test/")]

        async def go():
            async with _client(handler) as client:
                return await probe_all(client, websites)

        results = asyncio.run(go())
        assert list(results) == ["up", "down"]
        assert results["up"].state is Health.OK
        assert results["down"].state is Health.NOT_OK
