from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from tracklink.adapters.http_resilience import ResilienceConfig, ResilientClient
from tracklink.adapters.songlink.client import (
    SongLinkAPIError,
    SongLinkClient,
    should_cache_payload,
)
from tracklink.config.songlink import SongLinkConfig
from tracklink.domain.ports.resolution import LinkResolutionError
from tests.helpers.songlink import links_payload


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
    created: list[ResilientClient] | None = None,
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            transport=httpx.MockTransport(async_handler),
        )
        if created is not None:
            created.append(client)
        return client

    return factory


def test_fetch_links_sends_expected_query(songlink_config: SongLinkConfig) -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=links_payload("abc"))

    config = SongLinkConfig(
        resilience=songlink_config.resilience,
        api_key="secret",
        user_country="DE",
    )
    client = SongLinkClient(config=config, client_factory=_make_client_factory(handler))

    response = asyncio.run(client.fetch_links("https://open.spotify.com/track/abc"))

    assert response.entity_unique_id == "SPOTIFY_SONG::abc"
    request = captured[0]
    assert request.method == "GET"
    assert request.url.path == "/v1-alpha.1/links"
    assert request.url.params["url"] == "https://open.spotify.com/track/abc"
    assert request.url.params["key"] == "secret"
    assert request.url.params["userCountry"] == "DE"
    assert request.url.params["songIfSingle"] == "true"


def test_optional_params_are_omitted_when_unset(songlink_config: SongLinkConfig) -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=links_payload("abc"))

    client = SongLinkClient(config=songlink_config, client_factory=_make_client_factory(handler))
    asyncio.run(client.fetch_links("https://open.spotify.com/track/abc"))

    assert "key" not in captured[0].url.params
    assert "userCountry" not in captured[0].url.params


@pytest.mark.parametrize(
    ("response", "message"),
    [
        (httpx.Response(500, json={"statusCode": 500}), "HTTP 500"),
        (
            httpx.Response(404, json={"statusCode": 404, "code": "could_not_resolve_entity"}),
            "HTTP 404",
        ),
        (httpx.Response(200, content=b"<html>oops</html>"), "invalid JSON"),
        (httpx.Response(200, json=["not", "an", "object"]), "Unexpected"),
        (httpx.Response(200, json={"linksByPlatform": {}}), "Malformed"),
    ],
)
def test_fetch_links_failures_raise_resolution_error(
    songlink_config: SongLinkConfig, response: httpx.Response, message: str
) -> None:
    client = SongLinkClient(
        config=songlink_config, client_factory=_make_client_factory(lambda _: response)
    )

    with pytest.raises(SongLinkAPIError, match=message) as excinfo:
        asyncio.run(client.fetch_links("https://open.spotify.com/track/abc"))

    assert isinstance(excinfo.value, LinkResolutionError)


def test_transport_error_raises_resolution_error(songlink_config: SongLinkConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = SongLinkClient(config=songlink_config, client_factory=_make_client_factory(handler))

    with pytest.raises(SongLinkAPIError, match="request failed"):
        asyncio.run(client.fetch_links("https://open.spotify.com/track/abc"))


def test_missing_base_url_is_rejected() -> None:
    config = SongLinkConfig(resilience=ResilienceConfig(name="songlink-test"))
    client = SongLinkClient(config=config)

    with pytest.raises(SongLinkAPIError, match="base_url"):
        asyncio.run(client.fetch_links("https://open.spotify.com/track/abc"))


def test_session_is_reused_until_closed(songlink_config: SongLinkConfig) -> None:
    created: list[ResilientClient] = []

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=links_payload("abc"))

    client = SongLinkClient(
        config=songlink_config, client_factory=_make_client_factory(handler, created)
    )

    async def scenario() -> None:
        await client.fetch_links("https://open.spotify.com/track/a")
        await client.fetch_links("https://open.spotify.com/track/b")
        await client.aclose()
        await client.fetch_links("https://open.spotify.com/track/c")
        await client.aclose()

    asyncio.run(scenario())

    assert len(created) == 2


def test_should_cache_payload_requires_links() -> None:
    assert should_cache_payload(links_payload("abc"))
    assert not should_cache_payload({"linksByPlatform": {}})
    assert not should_cache_payload(json.loads('"text"'))
