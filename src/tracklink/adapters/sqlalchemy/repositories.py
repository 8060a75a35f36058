"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import distinct, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from tracklink.adapters.sqlalchemy.mappings import (
    IDENTITY_UNIQUE_CONSTRAINT,
    track_platform_identity_table,
    track_table,
)
from tracklink.domain.model import Platform, PlatformIdentity, Track, UnresolvedTrack

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Select
    from sqlalchemy.orm import Session

    from tracklink.domain.model import PlatformLink, TrackId

log = getLogger(__name__)

_CONFLICT_COLUMNS = ("track_id", "platform")


class SqlAlchemyIdentityRepository:
    """Tracks and platform identities.

    Identity rows are only ever written through ``insert_if_absent``, which relies
    on the ``(track_id, platform)`` unique constraint rather than a prior lookup.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_track(self, track: Track) -> bool:
        if self.session.get(Track, track.id) is not None:
            return False
        self.session.add(track)
        # identity inserts are Core statements and do not autoflush
        self.session.flush()
        return True

    def insert_if_absent(self, track_id: TrackId, platform: Platform, link: PlatformLink) -> bool:
        values: dict[str, Any] = {
            "track_id": track_id,
            "platform": platform,
            "platform_id": link.platform_id,
            "platform_url": link.platform_url,
        }
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            stmt = (
                sqlite_insert(track_platform_identity_table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=list(_CONFLICT_COLUMNS))
            )
        elif dialect == "postgresql":
            stmt = (
                postgresql_insert(track_platform_identity_table)
                .values(**values)
                .on_conflict_do_nothing(constraint=IDENTITY_UNIQUE_CONSTRAINT)
            )
        else:
            return self._insert_in_savepoint(values)
        result = self.session.execute(stmt)
        return bool(result.rowcount)

    def exists(self, track_id: TrackId, platform: Platform) -> bool:
        stmt = (
            select(track_platform_identity_table.c.id)
            .where(track_platform_identity_table.c.track_id == track_id)
            .where(track_platform_identity_table.c.platform == platform)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def identities_for(self, track_id: TrackId) -> Sequence[PlatformIdentity]:
        stmt = (
            select(PlatformIdentity)
            .where(track_platform_identity_table.c.track_id == track_id)
            .order_by(track_platform_identity_table.c.platform)
        )
        return self.session.scalars(stmt).all()

    def lookup_reference(
        self, track_id: TrackId, *, reference: Platform
    ) -> UnresolvedTrack | None:
        stmt = (
            select(
                track_platform_identity_table.c.track_id,
                track_platform_identity_table.c.platform_id,
                track_table.c.title,
            )
            .select_from(track_platform_identity_table)
            .outerjoin(track_table, track_table.c.id == track_platform_identity_table.c.track_id)
            .where(track_platform_identity_table.c.track_id == track_id)
            .where(track_platform_identity_table.c.platform == reference)
            .limit(1)
        )
        row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return UnresolvedTrack(track_id=row.track_id, reference_id=row.platform_id, title=row.title)

    def find_unresolved(
        self,
        *,
        reference: Platform,
        targets: Sequence[Platform],
        limit: int,
    ) -> list[UnresolvedTrack]:
        reference_rows = track_platform_identity_table.alias("reference_identity")
        stmt = (
            self._unresolved_query(
                select(reference_rows.c.track_id, reference_rows.c.platform_id, track_table.c.title)
                .select_from(reference_rows)
                .outerjoin(track_table, track_table.c.id == reference_rows.c.track_id),
                reference_rows,
                reference=reference,
                targets=targets,
            )
            .order_by(reference_rows.c.track_id)
            .limit(limit)
        )
        return [
            UnresolvedTrack(track_id=row.track_id, reference_id=row.platform_id, title=row.title)
            for row in self.session.execute(stmt)
        ]

    def count_tracks(self) -> int:
        stmt = select(func.count()).select_from(track_table)
        return int(self.session.execute(stmt).scalar_one())

    def count_tracks_by_platform(self) -> dict[Platform, int]:
        stmt = select(
            track_platform_identity_table.c.platform,
            func.count(distinct(track_platform_identity_table.c.track_id)),
        ).group_by(track_platform_identity_table.c.platform)
        counts = dict.fromkeys(Platform, 0)
        for platform, count in self.session.execute(stmt):
            counts[Platform(platform)] = int(count)
        return counts

    def count_unresolved(self, *, reference: Platform, targets: Sequence[Platform]) -> int:
        reference_rows = track_platform_identity_table.alias("reference_identity")
        stmt = self._unresolved_query(
            select(func.count(distinct(reference_rows.c.track_id))).select_from(reference_rows),
            reference_rows,
            reference=reference,
            targets=targets,
        )
        return int(self.session.execute(stmt).scalar_one())

    @staticmethod
    def _unresolved_query[TSelect: Select[Any]](
        stmt: TSelect,
        reference_rows: Any,
        *,
        reference: Platform,
        targets: Sequence[Platform],
    ) -> TSelect:
        target_rows = track_platform_identity_table.alias("target_identity")
        has_target = (
            select(target_rows.c.id)
            .where(target_rows.c.track_id == reference_rows.c.track_id)
            .where(target_rows.c.platform.in_(list(targets)))
            .exists()
        )
        return stmt.where(reference_rows.c.platform == reference).where(~has_target)

    def _insert_in_savepoint(self, values: dict[str, Any]) -> bool:
        try:
            with self.session.begin_nested():
                self.session.execute(track_platform_identity_table.insert().values(**values))
        except IntegrityError:
            log.debug(
                "Identity already present for track %s on %s",
                values["track_id"],
                values["platform"],
            )
            return False
        return True


if TYPE_CHECKING:
    from typing import cast

    from tracklink.domain.ports.persistence import IdentityRepository

    _session_stub = cast("Session", object())
    _repo_check: IdentityRepository = SqlAlchemyIdentityRepository(_session_stub)
