"""SQLAlchemy-backed units of work for identity resolution."""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from tracklink.adapters.sqlalchemy.mappings import start_mappers
from tracklink.adapters.sqlalchemy.migrations import upgrade_head
from tracklink.adapters.sqlalchemy.repositories import SqlAlchemyIdentityRepository
from tracklink.config.storage import get_database_uri
from tracklink.domain.ports.unit_of_work import IdentityRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter is used before ``startup`` or started twice."""


class _AdapterState:
    """Process-wide engine and the session factory bound to it."""

    __slots__ = ("engine", "session_factory")

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self.session_factory: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> Engine | None:
        engine, self.engine, self.session_factory = self.engine, None, None
        return engine

    def require_session_factory(self) -> sessionmaker[Session]:
        if self.session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised; call "
                "tracklink.adapters.sqlalchemy.startup() first"
            )
        return self.session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create (or adopt) the engine, migrate it to head and bind sessions to it.

    ``force`` replaces an engine set up earlier without disposing it, so a
    caller that passed its own engine keeps ownership of it.
    """

    if _STATE.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already initialised; pass force=True to rebind")

    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    start_mappers()
    upgrade_head(engine=resolved_engine)
    _STATE.bind(resolved_engine)
    log.debug("SQLAlchemy adapter bound to %s", resolved_engine.url)


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; safe to call when nothing is bound."""

    engine = _STATE.release()
    if engine is not None:
        engine.dispose()


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session per ``with`` block; anything not committed is rolled back on exit."""

    def __init__(self) -> None:
        self._session_factory = _STATE.require_session_factory()
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._session_factory()
        self._repositories = self._build_repositories(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session, self._session, self._repositories = self._session, None, None
        if session is not None:
            try:
                session.rollback()
            finally:
                session.close()
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work has no open session")
        return self._session

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work has no open session")
        return self._repositories


class SqlAlchemyIdentityUnitOfWork(BaseSqlAlchemyUnitOfWork[IdentityRepositories]):
    """Unit of work over tracks and their platform identities."""

    def _build_repositories(self, session: Session) -> IdentityRepositories:
        return IdentityRepositories(identities=SqlAlchemyIdentityRepository(session))


if TYPE_CHECKING:
    from tracklink.domain.ports.unit_of_work import IdentityUnitOfWork

    _uow_check: IdentityUnitOfWork = SqlAlchemyIdentityUnitOfWork()
