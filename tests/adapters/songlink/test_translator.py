from __future__ import annotations

from tracklink.adapters.songlink.schema import LinksResponse
from tracklink.adapters.songlink.translator import translate_links
from tracklink.domain.model import TARGET_PLATFORMS, Platform, PlatformLink
from tests.helpers.songlink import links_payload


def test_translate_links_maps_every_target_platform(links_response: LinksResponse) -> None:
    links = translate_links(links_response)

    assert set(links) == set(TARGET_PLATFORMS)
    assert links[Platform.APPLE_MUSIC] == PlatformLink(
        platform_id="1440867977",
        platform_url="https://geo.music.apple.com/us/album/_/1440867719?i=1440867977",
    )
    assert links[Platform.YOUTUBE].platform_url == "https://www.youtube.com/watch?v=gGdGFtwCNBE"
    assert links[Platform.AMAZON_MUSIC].platform_id == "B0025ZDOKI"
    assert links[Platform.TIDAL].platform_id == "1697089"
    assert links[Platform.DEEZER].platform_id == "3130603"


def test_translate_links_never_returns_reference_platform(links_response: LinksResponse) -> None:
    assert Platform.SPOTIFY not in translate_links(links_response)


def test_missing_platforms_are_omitted() -> None:
    response = LinksResponse.model_validate(
        links_payload("abc", keys=("appleMusic", "youtube", "deezer"))
    )

    links = translate_links(response)

    assert set(links) == {Platform.APPLE_MUSIC, Platform.YOUTUBE, Platform.DEEZER}


def test_youtube_music_is_used_when_youtube_is_absent() -> None:
    response = LinksResponse.model_validate(links_payload("abc", keys=("youtubeMusic",)))

    links = translate_links(response)

    assert links == {
        Platform.YOUTUBE: PlatformLink(
            platform_id="youtubeMusic-abc",
            platform_url="https://music.youtube.com/watch?v=youtubeMusic-abc",
        )
    }


def test_empty_platform_id_is_skipped() -> None:
    payload = links_payload("abc", keys=("tidal", "deezer"))
    payload["linksByPlatform"]["tidal"]["entityUniqueId"] = "TIDAL_SONG::  "  # type: ignore[index]
    response = LinksResponse.model_validate(payload)

    assert set(translate_links(response)) == {Platform.DEEZER}


def test_requested_platform_subset() -> None:
    response = LinksResponse.model_validate(links_payload("abc"))

    links = translate_links(response, platforms=(Platform.TIDAL,))

    assert list(links) == [Platform.TIDAL]
