from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from roomsync.domain.hooks import (
    CommunicationHookListener,
    CourseCreated,
    CourseDeleted,
    CourseUpdated,
    EnrolInstanceDeleted,
    EnrolInstanceStatusUpdated,
    GroupCreated,
    GroupDeleted,
    GroupMembershipAdded,
    GroupMembershipRemoved,
    GroupUpdated,
    HookDispatcher,
    RoleAssigned,
    RoleUnassigned,
    UserDeleted,
    UserEnrolled,
    UserEnrolmentUpdated,
    UserUnenrolled,
    UserUpdated,
    build_hook_table,
    communication_hook_registrations,
)
from roomsync.domain.model import (
    Course,
    EnrolInstance,
    EnrolStatus,
    Group,
    GroupMode,
    RoomRole,
    User,
    UserEnrolment,
    UserEnrolmentStatus,
)

if TYPE_CHECKING:
    from roomsync.adapters.mock import MockRoomProvider
    from roomsync.app import CommunicationServices
    from roomsync.domain.processor import CommunicationProcessor
    from tests.helpers.directory import InMemoryDirectory

MANUAL = EnrolInstance(id=1, course_id=10, method="manual")
GUEST = EnrolInstance(id=2, course_id=10, method="guest")


def _course_room(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    *enrolled: int,
) -> CommunicationProcessor:
    course = directory.add_course(Course(id=10, fullname="Geology"), enrolled=enrolled)
    services.dispatcher.dispatch(CourseCreated(course))
    return services.courses.load_for_course_id(10)


def _enrolment(
    user_id: int,
    *,
    status: UserEnrolmentStatus = UserEnrolmentStatus.ACTIVE,
    time_end: datetime | None = None,
) -> UserEnrolment:
    return UserEnrolment(
        id=user_id,
        enrol_id=MANUAL.id,
        user_id=user_id,
        status=status,
        time_end=time_end,
    )


def test_every_event_type_is_registered(services: CommunicationServices) -> None:
    expected = {
        GroupCreated,
        GroupUpdated,
        GroupDeleted,
        GroupMembershipAdded,
        GroupMembershipRemoved,
        CourseCreated,
        CourseUpdated,
        CourseDeleted,
        UserUpdated,
        UserDeleted,
        RoleAssigned,
        RoleUnassigned,
        EnrolInstanceStatusUpdated,
        EnrolInstanceDeleted,
        UserEnrolled,
        UserEnrolmentUpdated,
        UserUnenrolled,
    }

    assert set(services.dispatcher.registered_events()) == expected
    assert len(services.dispatcher.registered_events()) == 17


def test_course_events_drive_course_room(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    mock_provider: MockRoomProvider,
) -> None:
    processor = _course_room(services, directory, 1, 2)
    assert processor.get_confirmed_userids() == {1, 2}

    course = directory.get_course(10)
    services.dispatcher.dispatch(CourseUpdated(Course(id=10, fullname="Geology II"), course))
    assert mock_provider.rooms[processor.room_id or ""].name == "Geology II"

    services.dispatcher.dispatch(CourseDeleted(course))
    assert services.courses.find_for_course_id(10) is None
    assert mock_provider.rooms == {}


def test_user_enrolled_adds_to_room(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    processor = _course_room(services, directory, 1)

    services.dispatcher.dispatch(UserEnrolled(MANUAL, _enrolment(4)))

    assert processor.get_confirmed_userids() == {1, 4}


def test_guest_enrolments_are_ignored(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    mock_provider: MockRoomProvider,
) -> None:
    _course_room(services, directory, 1)
    calls_before = len(mock_provider.calls)

    services.dispatcher.dispatch(UserEnrolled(GUEST, _enrolment(4)))
    services.dispatcher.dispatch(UserUnenrolled(GUEST, _enrolment(1)))
    services.dispatcher.dispatch(EnrolInstanceDeleted(GUEST))

    assert len(mock_provider.calls) == calls_before


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (EnrolStatus.DISABLED, {3}),
        (EnrolStatus.ENABLED, {1, 2, 3}),
    ],
)
def test_enrol_instance_status_toggles_membership(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    status: EnrolStatus,
    expected: set[int],
) -> None:
    processor = _course_room(services, directory, 1, 3)
    directory.enrol_instance_users[MANUAL.id] = {1, 2}

    services.dispatcher.dispatch(EnrolInstanceStatusUpdated(MANUAL, status))

    assert processor.get_confirmed_userids() == expected


def test_enrol_instance_deleted_removes_its_users(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    processor = _course_room(services, directory, 1, 2)
    directory.enrol_instance_users[MANUAL.id] = {2}

    services.dispatcher.dispatch(EnrolInstanceDeleted(MANUAL))

    assert processor.get_confirmed_userids() == {1}


def test_suspended_enrolment_removes_user(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    processor = _course_room(services, directory, 1, 2)

    services.dispatcher.dispatch(
        UserEnrolmentUpdated(MANUAL, _enrolment(2, status=UserEnrolmentStatus.SUSPENDED))
    )

    assert processor.get_confirmed_userids() == {1}


def test_lapsed_enrolment_removes_user(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    processor = _course_room(services, directory, 1, 2)
    now = datetime(2026, 3, 1, tzinfo=UTC)
    listener = CommunicationHookListener(
        courses=services.courses,
        groups=services.groups,
        users=services.users,
        directory=directory,
        clock=lambda: now,
    )
    dispatcher = HookDispatcher(build_hook_table(communication_hook_registrations(listener)))

    dispatcher.dispatch(
        UserEnrolmentUpdated(MANUAL, _enrolment(1, time_end=now + timedelta(days=1)))
    )
    dispatcher.dispatch(
        UserEnrolmentUpdated(MANUAL, _enrolment(2, time_end=now - timedelta(days=1)))
    )

    assert processor.get_confirmed_userids() == {1}


def test_unenrolment_keeps_user_with_another_enrolment(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    processor = _course_room(services, directory, 1, 2)

    services.dispatcher.dispatch(UserUnenrolled(MANUAL, _enrolment(1), last_enrolment=False))
    assert processor.get_confirmed_userids() == {1, 2}

    directory.enrolments[10].discard(2)
    services.dispatcher.dispatch(UserUnenrolled(MANUAL, _enrolment(2), last_enrolment=True))
    assert processor.get_confirmed_userids() == {1}


def test_role_changes_reevaluate_membership(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    mock_provider: MockRoomProvider,
) -> None:
    processor = _course_room(services, directory, 1, 2)
    calls_before = len(mock_provider.calls)

    services.dispatcher.dispatch(RoleAssigned(user_id=2, role_id=5))
    assert len(mock_provider.calls) == calls_before

    directory.enrolments[10].discard(2)
    services.dispatcher.dispatch(RoleUnassigned(user_id=2, role_id=5, course_id=10))
    assert processor.get_confirmed_userids() == {1}


def test_role_changes_update_room_roles(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    mock_provider: MockRoomProvider,
) -> None:
    processor = _course_room(services, directory, 1, 2)
    room = mock_provider.rooms[processor.room_id or ""]

    directory.assign_room_role(10, 2, RoomRole.MODERATOR)
    services.dispatcher.dispatch(RoleAssigned(user_id=2, role_id=3, course_id=10))
    assert room.roles == {2: RoomRole.MODERATOR}

    directory.assign_room_role(10, 2, RoomRole.MEMBER)
    services.dispatcher.dispatch(RoleUnassigned(user_id=2, role_id=3, course_id=10))
    assert room.roles == {}
    assert mock_provider.calls_for("set_member_roles")[-1].user_ids == ()
    assert processor.get_confirmed_userids() == {1, 2}


def test_user_events_reach_user_helper(
    services: CommunicationServices,
    directory: InMemoryDirectory,
) -> None:
    processor = _course_room(services, directory, 1, 2)

    services.dispatcher.dispatch(UserUpdated(User(id=2, suspended=True), User(id=2)))
    assert processor.get_confirmed_userids() == {1}

    services.dispatcher.dispatch(UserDeleted(User(id=1, deleted=True)))
    assert processor.get_all_userids_for_instance() == set()


def test_group_events_drive_group_rooms(
    services: CommunicationServices,
    directory: InMemoryDirectory,
    mock_provider: MockRoomProvider,
) -> None:
    course = directory.add_course(
        Course(id=70, fullname="Maths", group_mode=GroupMode.SEPARATE),
        enrolled=[1, 2],
    )
    services.dispatcher.dispatch(CourseCreated(course))
    group = directory.add_group(Group(id=701, course_id=70, name="Set 1"))

    services.dispatcher.dispatch(GroupCreated(group))
    services.dispatcher.dispatch(GroupMembershipAdded(group, frozenset({1, 2})))
    processor = services.groups.load_for_group_id(701)
    assert processor.get_confirmed_userids() == {1, 2}

    services.dispatcher.dispatch(GroupMembershipRemoved(group, frozenset({2})))
    assert processor.get_confirmed_userids() == {1}

    renamed = Group(id=701, course_id=70, name="Set A")
    services.dispatcher.dispatch(GroupUpdated(renamed, group))
    assert mock_provider.rooms[processor.room_id or ""].name == "Set A"

    services.dispatcher.dispatch(GroupDeleted(renamed))
    assert services.groups.find_for_group_id(701) is None
