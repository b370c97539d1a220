from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from roomsync.adapters.matrix import MatrixRoomProvider
from roomsync.adapters.mock import MockRoomProvider
from roomsync.app import (
    build_provider_registry,
    communication_status,
    reconcile_pending_memberships,
)
from roomsync.config import MatrixConfig, ResilienceConfig
from roomsync.domain.hooks import CourseCreated
from roomsync.domain.model import Course, ProviderId

if TYPE_CHECKING:
    from roomsync.app import CommunicationServices
    from roomsync.config import CommunicationConfig
    from roomsync.domain.processor import UnitOfWorkFactory
    from roomsync.domain.providers import RoomProviderRegistry
    from tests.helpers.directory import InMemoryDirectory


def test_registry_includes_configured_matrix_and_optional_mock() -> None:
    config = MatrixConfig(
        homeserver_url="https://matrix.test",
        access_token="secret",
        server_name="matrix.test",
        user_prefix="lms",
        resilience=ResilienceConfig(name="matrix"),
    )

    registry = build_provider_registry(matrix_config=config, include_mock=True)

    assert registry.provider_ids == {ProviderId.MATRIX, ProviderId.MOCK}
    assert isinstance(registry.resolve(ProviderId.MATRIX), MatrixRoomProvider)
    assert isinstance(registry.resolve(ProviderId.MOCK), MockRoomProvider)


def test_registry_skips_matrix_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MATRIX_HOMESERVER_URL", raising=False)
    monkeypatch.delenv("MATRIX_ACCESS_TOKEN", raising=False)

    registry = build_provider_registry()

    assert registry.provider_ids == frozenset()


def test_services_dispatch_course_creation(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    course = directory.add_course(Course(id=1, fullname="Course"), enrolled=[1])

    services.dispatcher.dispatch(CourseCreated(course))

    processor = services.api.load_by_instance("core_course", "coursecommunication", 1)
    assert processor.get_confirmed_userids() == {1}


def test_status_and_reconcile_use_supplied_dependencies(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    mock_provider: MockRoomProvider,
    unit_of_work_factory: UnitOfWorkFactory,
    providers: RoomProviderRegistry,
    communication_config: CommunicationConfig,
) -> None:
    course = directory.add_course(Course(id=1, fullname="Course"), enrolled=[1, 2])
    mock_provider.rejected_users = {2}
    services.courses.create_course_communication(course)

    rows = communication_status(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=communication_config,
    )

    assert len(rows) == 1
    assert rows[0].instance == "core_course/coursecommunication/1"
    assert rows[0].provider == ProviderId.MOCK.value
    assert rows[0].room_id == "!mock1:localhost"
    assert (rows[0].confirmed, rows[0].pending_add, rows[0].pending_delete) == (1, 1, 0)

    mock_provider.rejected_users.clear()
    result = reconcile_pending_memberships(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=communication_config,
    )

    assert result.confirmed == 1
    assert services.courses.load_for_course_id(1).get_pending_add_userids() == set()
