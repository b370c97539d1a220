from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from roomsync.adapters.mock import MockRoomProvider
from roomsync.adapters.sqlalchemy import start_mappers
from roomsync.adapters.sqlalchemy.migrations import upgrade_head
from roomsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCommunicationUnitOfWork,
    shutdown,
    startup,
)
from roomsync.app import CommunicationServices, build_communication_services
from roomsync.config import CommunicationConfig
from roomsync.domain.api import CommunicationApi
from roomsync.domain.model import ProviderId
from roomsync.domain.providers import RoomProviderRegistry
from tests.helpers.directory import InMemoryDirectory

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from roomsync.domain.processor import UnitOfWorkFactory


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def unit_of_work_factory(sqlite_engine: Engine) -> Iterator[UnitOfWorkFactory]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyCommunicationUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def mock_provider() -> MockRoomProvider:
    return MockRoomProvider()


@pytest.fixture
def second_provider() -> MockRoomProvider:
    """Stands in for a second backend when switching providers."""

    return MockRoomProvider(prefix="!other")


@pytest.fixture
def providers(
    mock_provider: MockRoomProvider,
    second_provider: MockRoomProvider,
) -> RoomProviderRegistry:
    return RoomProviderRegistry(
        {
            ProviderId.MOCK: lambda: mock_provider,
            ProviderId.MATRIX: lambda: second_provider,
        }
    )


@pytest.fixture
def communication_config() -> CommunicationConfig:
    return CommunicationConfig(enabled=True, default_course_provider=ProviderId.MOCK)


@pytest.fixture
def api(
    unit_of_work_factory: UnitOfWorkFactory,
    providers: RoomProviderRegistry,
    communication_config: CommunicationConfig,
) -> CommunicationApi:
    return CommunicationApi(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=communication_config,
    )


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory()


@pytest.fixture
def services(
    directory: InMemoryDirectory,
    unit_of_work_factory: UnitOfWorkFactory,
    providers: RoomProviderRegistry,
    communication_config: CommunicationConfig,
) -> CommunicationServices:
    return build_communication_services(
        directory,
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=communication_config,
    )
