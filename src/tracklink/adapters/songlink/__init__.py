"""song.link (Odesli) link resolution adapter."""

from __future__ import annotations

from .client import SongLinkAPIError, SongLinkClient, should_cache_payload
from .resolver import SongLinkResolver, spotify_track_url
from .schema import LinksResponse, PlatformLinkPayload
from .translator import PLATFORM_KEYS, translate_links

__all__ = [
    "PLATFORM_KEYS",
    "LinksResponse",
    "PlatformLinkPayload",
    "SongLinkAPIError",
    "SongLinkClient",
    "SongLinkResolver",
    "should_cache_payload",
    "spotify_track_url",
    "translate_links",
]
