"""song.link (Odesli) API client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from tracklink.adapters.http_resilience import ResilientClient
from tracklink.domain.ports.resolution import LinkResolutionError

from .schema import LinksResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from tracklink.config.http_resilience import ResilienceConfig
    from tracklink.config.songlink import SongLinkConfig

log = getLogger(__name__)

LINKS_PATH = "links"


class SongLinkAPIError(LinkResolutionError):
    """Raised when the song.link API call fails or returns an unusable payload."""


def should_cache_payload(payload: object) -> bool:
    return isinstance(payload, dict) and bool(payload.get("linksByPlatform"))


class SongLinkClient:
    """Low-level HTTP client for the song.link ``/links`` endpoint.

    One underlying HTTP session is opened lazily and reused until ``aclose``,
    so an optional rate limiter spans all calls made in between.
    """

    def __init__(
        self,
        *,
        config: SongLinkConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def fetch_links(self, url: str) -> LinksResponse:
        if self._resilience.base_url is None:
            raise SongLinkAPIError("Missing song.link base_url in resilience configuration")

        client = self._session()
        try:
            response = await client.get(LINKS_PATH, params=self._params(url))
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise SongLinkAPIError(
                f"song.link returned HTTP {exc.response.status_code} for {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SongLinkAPIError(f"song.link request failed for {url}: {exc}") from exc
        except ValueError as exc:
            raise SongLinkAPIError(f"song.link returned invalid JSON for {url}") from exc

        if not isinstance(payload, dict):
            raise SongLinkAPIError("Unexpected song.link response payload")
        try:
            return LinksResponse.model_validate(payload)
        except ValueError as exc:
            raise SongLinkAPIError(f"Malformed song.link response for {url}: {exc}") from exc

    async def aclose(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()

    def _session(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    def _params(self, url: str) -> dict[str, str]:
        params = {"url": url}
        if self._config.api_key:
            params["key"] = self._config.api_key
        if self._config.user_country:
            params["userCountry"] = self._config.user_country
        if self._config.song_if_single:
            params["songIfSingle"] = "true"
        return params
