"""In-memory directory of courses, groups and enrolments for helper tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from roomsync.domain.model import Course, Group, RoomRole, User

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass
class InMemoryDirectory:
    courses: dict[int, Course] = field(default_factory=dict)
    groups: dict[int, list[Group]] = field(default_factory=dict)
    group_members: dict[int, set[int]] = field(default_factory=dict)
    enrolments: dict[int, set[int]] = field(default_factory=dict)
    enrol_instance_users: dict[int, set[int]] = field(default_factory=dict)
    all_groups_access: set[tuple[int, int]] = field(default_factory=set)
    users: dict[int, User] = field(default_factory=dict)
    room_roles: dict[tuple[int, int], RoomRole] = field(default_factory=dict)

    # Builders -----------------------------------------------------------------------

    def add_course(self, course: Course, *, enrolled: Iterable[int] = ()) -> Course:
        self.courses[course.id] = course
        self.groups.setdefault(course.id, [])
        self.enrolments.setdefault(course.id, set()).update(enrolled)
        for user_id in enrolled:
            self.users.setdefault(user_id, User(id=user_id))
        return course

    def add_group(self, group: Group, *, members: Iterable[int] = ()) -> Group:
        self.groups.setdefault(group.course_id, []).append(group)
        self.group_members[group.id] = set(members)
        return group

    def grant_all_groups(self, course_id: int, user_id: int) -> None:
        self.all_groups_access.add((course_id, user_id))

    def assign_room_role(self, course_id: int, user_id: int, role: RoomRole) -> None:
        self.room_roles[(course_id, user_id)] = role

    # Directory ----------------------------------------------------------------------

    def get_course(self, course_id: int) -> Course:
        return self.courses[course_id]

    def get_user(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    def get_course_groups(self, course_id: int) -> Sequence[Group]:
        return list(self.groups.get(course_id, []))

    def get_group_member_ids(self, group_id: int) -> set[int]:
        return set(self.group_members.get(group_id, set()))

    def get_enrolled_user_ids(self, course_id: int) -> set[int]:
        return set(self.enrolments.get(course_id, set()))

    def get_user_courses(self, user_id: int) -> Sequence[Course]:
        return [
            self.courses[course_id]
            for course_id, enrolled in sorted(self.enrolments.items())
            if user_id in enrolled
        ]

    def get_active_enrolment_user_ids(self, enrol_instance_id: int) -> set[int]:
        return set(self.enrol_instance_users.get(enrol_instance_id, set()))

    def has_access_to_all_groups(self, course_id: int, user_id: int) -> bool:
        return (course_id, user_id) in self.all_groups_access

    def get_room_role(self, course_id: int, user_id: int) -> RoomRole:
        return self.room_roles.get((course_id, user_id), RoomRole.MEMBER)


if TYPE_CHECKING:
    from roomsync.domain.ports.directory import Directory

    _directory_check: Directory = InMemoryDirectory()
