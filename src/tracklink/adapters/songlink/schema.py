"""song.link (Odesli) ``/links`` response schemas."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type EntityUniqueId = str  # Format: <PROVIDER>_<TYPE>::<id>, e.g. ITUNES_SONG::1443109064

ENTITY_ID_SEPARATOR = "::"


class SongLinkBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "song.link %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class PlatformLinkPayload(SongLinkBaseModel):
    entity_unique_id: EntityUniqueId = Field(alias="entityUniqueId")
    url: str
    country: str | None = None
    native_app_uri_mobile: str | None = Field(default=None, alias="nativeAppUriMobile")
    native_app_uri_desktop: str | None = Field(default=None, alias="nativeAppUriDesktop")

    @property
    def platform_id(self) -> str:
        """Platform-native id: everything after the last ``::``."""

        return self.entity_unique_id.rsplit(ENTITY_ID_SEPARATOR, 1)[-1].strip()


class EntityPayload(SongLinkBaseModel):
    id: str
    type: str
    api_provider: str = Field(alias="apiProvider")
    platforms: list[str] = Field(default_factory=list)
    title: str | None = None
    artist_name: str | None = Field(default=None, alias="artistName")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    thumbnail_width: int | None = Field(default=None, alias="thumbnailWidth")
    thumbnail_height: int | None = Field(default=None, alias="thumbnailHeight")


class LinksResponse(SongLinkBaseModel):
    entity_unique_id: EntityUniqueId = Field(alias="entityUniqueId")
    user_country: str | None = Field(default=None, alias="userCountry")
    page_url: str | None = Field(default=None, alias="pageUrl")
    links_by_platform: dict[str, PlatformLinkPayload] = Field(
        default_factory=dict, alias="linksByPlatform"
    )
    entities_by_unique_id: dict[EntityUniqueId, EntityPayload] = Field(
        default_factory=dict, alias="entitiesByUniqueId"
    )
