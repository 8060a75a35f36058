"""SQLAlchemy mapping metadata for the tracklink domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Final

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    func,
    orm,
)
from sqlalchemy.orm import configure_mappers

from tracklink.domain.model import Platform, PlatformIdentity, Track

log = logging.getLogger(__name__)

IDENTITY_UNIQUE_CONSTRAINT: Final[str] = "uq_track_platform_identity_track_platform"


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_values(enum_cls: type[Platform]) -> list[str]:
    return [member.value for member in enum_cls]


PlatformColumnType = Enum(
    Platform,
    name="platform",
    native_enum=False,
    length=32,
    values_callable=_enum_values,
)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tracks are owned by the playlist system; ids are assigned there.
track_table = Table(
    "track",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("title", String, nullable=True),
)

track_platform_identity_table = Table(
    "track_platform_identity",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "track_id",
        Integer,
        ForeignKey("track.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("platform", PlatformColumnType, nullable=False),
    Column("platform_id", String, nullable=False),
    Column("platform_url", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True, server_default=func.now()),
    UniqueConstraint("track_id", "platform", name=IDENTITY_UNIQUE_CONSTRAINT),
    Index("ix_track_platform_identity_platform", "platform"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Track, track_table)
    mapper_registry.map_imperatively(PlatformIdentity, track_platform_identity_table)

    configure_mappers()
    return mapper_registry

