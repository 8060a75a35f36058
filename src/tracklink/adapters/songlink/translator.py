"""Translate song.link payloads into per-platform links."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from tracklink.domain.model import TARGET_PLATFORMS, Platform, PlatformLink

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import LinksResponse

log = getLogger(__name__)

# song.link platform keys in order of preference; the first present key wins.
PLATFORM_KEYS: Final[dict[Platform, tuple[str, ...]]] = {
    Platform.SPOTIFY: ("spotify",),
    Platform.APPLE_MUSIC: ("appleMusic",),
    Platform.YOUTUBE: ("youtube", "youtubeMusic"),
    Platform.AMAZON_MUSIC: ("amazonMusic",),
    Platform.TIDAL: ("tidal",),
    Platform.DEEZER: ("deezer",),
}


def translate_links(
    response: LinksResponse,
    *,
    platforms: Iterable[Platform] = TARGET_PLATFORMS,
) -> dict[Platform, PlatformLink]:
    """Map a ``/links`` response onto the requested platforms.

    Platforms missing from the response are omitted, as are entries whose
    ``entityUniqueId`` yields an empty id.
    """

    links: dict[Platform, PlatformLink] = {}
    for platform in platforms:
        for key in PLATFORM_KEYS[platform]:
            payload = response.links_by_platform.get(key)
            if payload is None:
                continue
            platform_id = payload.platform_id
            if not platform_id:
                log.debug("Skipping %s link with empty id: %s", key, payload.entity_unique_id)
                continue
            links[platform] = PlatformLink(platform_id=platform_id, platform_url=payload.url)
            break
    return links
