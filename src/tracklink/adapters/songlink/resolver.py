"""song.link-backed implementation of the link resolver port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from .client import SongLinkClient
from .translator import translate_links

if TYPE_CHECKING:
    from tracklink.config.songlink import SongLinkConfig
    from tracklink.domain.model import Platform, PlatformLink

    from .schema import LinksResponse

log = getLogger(__name__)

SPOTIFY_TRACK_URL = "https://open.spotify.com/track/{reference_id}"


class LinksLookupClient(Protocol):
    async def fetch_links(self, url: str) -> LinksResponse: ...

    async def aclose(self) -> None: ...


def spotify_track_url(reference_id: str) -> str:
    return SPOTIFY_TRACK_URL.format(reference_id=reference_id)


class SongLinkResolver:
    """Resolve a Spotify track id to its ids on the target platforms."""

    def __init__(
        self,
        *,
        config: SongLinkConfig,
        client: LinksLookupClient | None = None,
    ) -> None:
        self._client = client or SongLinkClient(config=config)

    async def resolve(self, reference_id: str) -> dict[Platform, PlatformLink]:
        url = spotify_track_url(reference_id)
        response = await self._client.fetch_links(url)
        links = translate_links(response)
        log.debug(
            "song.link resolved %s on %s",
            reference_id,
            ", ".join(sorted(links)) or "no target platforms",
        )
        return links

    async def aclose(self) -> None:
        await self._client.aclose()
