"""SQLAlchemy-backed unit of work for communication records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from roomsync.adapters.sqlalchemy.mappings import start_mappers
from roomsync.adapters.sqlalchemy.migrations import upgrade_head
from roomsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCommunicationRepository,
    SqlAlchemyCommunicationUserRepository,
)
from roomsync.config import get_database_config
from roomsync.domain.ports.unit_of_work import CommunicationRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """The persistence adapter is used before ``startup`` or misconfigured."""


@dataclass(slots=True)
class _Database:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = field(default=None, repr=False)

    def bind(self, engine: Engine | None) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = engine
        self.sessions = (
            sessionmaker(bind=engine, expire_on_commit=False) if engine is not None else None
        )

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Persistence not started; call "
                "roomsync.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        return self.sessions()


_DATABASE = _Database()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to a database and bring its schema to the latest revision.

    A second call raises unless ``force`` is set, in which case the previous
    engine is disposed.
    """

    if _DATABASE.engine is not None and not force:
        raise StartupError("Persistence already started; pass force=True to rebind.")

    target = engine or create_engine(database_uri or get_database_config().uri, future=True)
    start_mappers()
    upgrade_head(engine=target)
    if _DATABASE.engine is not target:
        _DATABASE.bind(target)


def configured_engine() -> Engine | None:
    return _DATABASE.engine


def is_started() -> bool:
    return _DATABASE.engine is not None


def shutdown() -> None:
    """Dispose the engine and forget it."""

    _DATABASE.bind(None)


class SqlAlchemyCommunicationUnitOfWork:
    """One session per ``with`` block; rolled back when the block raises."""

    def __init__(self) -> None:
        if _DATABASE.sessions is None:
            raise StartupError("Persistence not started; cannot open a unit of work.")
        self._session: Session | None = None
        self._repositories: CommunicationRepositories | None = None

    def __enter__(self) -> SqlAlchemyCommunicationUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _DATABASE.open_session()
        self._repositories = CommunicationRepositories(
            communications=SqlAlchemyCommunicationRepository(self._session),
            members=SqlAlchemyCommunicationUserRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> CommunicationRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from roomsync.domain.ports.unit_of_work import CommunicationUnitOfWork

    _uow_check: CommunicationUnitOfWork = SqlAlchemyCommunicationUnitOfWork()
