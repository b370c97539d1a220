from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from roomsync.config import CommunicationConfig
from roomsync.domain.api import CommunicationApi
from roomsync.domain.errors import ProviderUnavailableError
from roomsync.domain.model import (
    COURSE_COMMUNICATION_COMPONENT,
    COURSE_COMMUNICATION_INSTANCETYPE,
    ProviderId,
)
from roomsync.domain.reconciliation import ReconciliationResult, reconcile_pending

if TYPE_CHECKING:
    from roomsync.adapters.mock import MockRoomProvider
    from roomsync.domain.processor import CommunicationProcessor, UnitOfWorkFactory
    from roomsync.domain.providers import RoomProviderRegistry


def _load(api: CommunicationApi, instance_id: int) -> CommunicationProcessor:
    return api.load_by_instance(
        COURSE_COMMUNICATION_COMPONENT,
        COURSE_COMMUNICATION_INSTANCETYPE,
        instance_id,
    )


def test_reconcile_retries_pending_additions_and_removals(
    api: CommunicationApi,
    mock_provider: MockRoomProvider,
) -> None:
    processor = _load(api, 1)
    processor.update_room(ProviderId.MOCK, "Course room")
    processor.add_members_to_room([1, 2])
    mock_provider.unavailable = True
    with pytest.raises(ProviderUnavailableError):
        processor.add_members_to_room([3])
    with pytest.raises(ProviderUnavailableError):
        processor.remove_members_from_room([1])
    mock_provider.unavailable = False

    result = reconcile_pending(api)

    assert result.processed == 1
    assert result.confirmed == 1
    assert result.removed == 1
    assert result.failed == 0
    assert processor.get_confirmed_userids() == {2, 3}
    assert list(api.iter_processors_with_pending()) == []


def test_reconcile_creates_missing_room_first(
    api: CommunicationApi,
    mock_provider: MockRoomProvider,
) -> None:
    processor = _load(api, 1)
    processor.configure(ProviderId.MOCK, "Course room", "Topic")
    processor.add_members_to_room([1, 2])

    result = reconcile_pending(api)

    processor.reload()
    assert result.confirmed == 2
    assert processor.room_id == "!mock1:localhost"
    assert mock_provider.rooms["!mock1:localhost"].topic == "Topic"
    assert mock_provider.members_of("!mock1:localhost") == {1, 2}


def test_reconcile_counts_failures_and_continues(
    api: CommunicationApi,
    mock_provider: MockRoomProvider,
) -> None:
    failing = _load(api, 1)
    failing.update_room(ProviderId.MOCK, "Failing")
    mock_provider.rejected_users = {9}
    failing.add_members_to_room([9])

    waiting = _load(api, 2)
    waiting.add_members_to_room([4])

    mock_provider.rejected_users.clear()
    mock_provider.unavailable = True

    result = reconcile_pending(api)

    assert result.processed == 2
    assert result.failed == 1
    assert result.failures[0].startswith("core_course/coursecommunication/1")
    assert waiting.get_pending_add_userids() == {4}
    assert "failed=1" in result.summary()


def test_reconcile_skips_when_disabled(
    unit_of_work_factory: UnitOfWorkFactory,
    providers: RoomProviderRegistry,
    mock_provider: MockRoomProvider,
) -> None:
    api = CommunicationApi(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=CommunicationConfig(enabled=False),
    )
    _load(api, 1).add_members_to_room([1])

    result = reconcile_pending(api)

    assert result == ReconciliationResult()
    assert mock_provider.calls == []
