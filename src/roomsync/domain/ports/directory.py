"""Read-only view of the platform's courses, groups, users and enrolments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from roomsync.domain.model import Course, Group, RoomRole, User


@runtime_checkable
class Directory(Protocol):
    """Queries the helpers need from the surrounding application."""

    def get_course(self, course_id: int) -> Course: ...

    def get_user(self, user_id: int) -> User | None: ...

    def get_course_groups(self, course_id: int) -> Sequence[Group]: ...

    def get_group_member_ids(self, group_id: int) -> set[int]: ...

    def get_enrolled_user_ids(self, course_id: int) -> set[int]: ...

    def get_user_courses(self, user_id: int) -> Sequence[Course]: ...

    def get_active_enrolment_user_ids(self, enrol_instance_id: int) -> set[int]: ...

    def has_access_to_all_groups(self, course_id: int, user_id: int) -> bool: ...

    def get_room_role(self, course_id: int, user_id: int) -> RoomRole:
        """Moderator capability or site administration of ``user_id`` in the course."""
        ...