"""Domain events emitted by the platform that affect rooms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roomsync.domain.model import (
        Course,
        EnrolInstance,
        EnrolStatus,
        Group,
        User,
        UserEnrolment,
    )


@dataclass(frozen=True, slots=True)
class GroupCreated:
    group: Group


@dataclass(frozen=True, slots=True)
class GroupUpdated:
    group: Group
    previous: Group


@dataclass(frozen=True, slots=True)
class GroupDeleted:
    group: Group


@dataclass(frozen=True, slots=True)
class GroupMembershipAdded:
    group: Group
    user_ids: frozenset[int]


@dataclass(frozen=True, slots=True)
class GroupMembershipRemoved:
    group: Group
    user_ids: frozenset[int]


@dataclass(frozen=True, slots=True)
class CourseCreated:
    course: Course


@dataclass(frozen=True, slots=True)
class CourseUpdated:
    course: Course
    previous: Course
    category_changed: bool = False


@dataclass(frozen=True, slots=True)
class CourseDeleted:
    """Emitted before the course and its groups are removed."""

    course: Course


@dataclass(frozen=True, slots=True)
class UserUpdated:
    """Emitted before the new user record is stored."""

    user: User
    previous: User | None = None


@dataclass(frozen=True, slots=True)
class UserDeleted:
    user: User


@dataclass(frozen=True, slots=True)
class RoleAssigned:
    user_id: int
    role_id: int
    # Course the role's context belongs to; None for site or category roles.
    course_id: int | None = None


@dataclass(frozen=True, slots=True)
class RoleUnassigned:
    user_id: int
    role_id: int
    course_id: int | None = None


@dataclass(frozen=True, slots=True)
class EnrolInstanceStatusUpdated:
    instance: EnrolInstance
    new_status: EnrolStatus


@dataclass(frozen=True, slots=True)
class EnrolInstanceDeleted:
    """Emitted before the enrolment instance is removed."""

    instance: EnrolInstance


@dataclass(frozen=True, slots=True)
class UserEnrolled:
    instance: EnrolInstance
    enrolment: UserEnrolment


@dataclass(frozen=True, slots=True)
class UserEnrolmentUpdated:
    instance: EnrolInstance
    enrolment: UserEnrolment
    previous: UserEnrolment | None = None


@dataclass(frozen=True, slots=True)
class UserUnenrolled:
    """Emitted before the enrolment is removed.

    ``last_enrolment`` is set when no other enrolment keeps the user in the course.
    """

    instance: EnrolInstance
    enrolment: UserEnrolment
    last_enrolment: bool = True


type HookEvent = (
    GroupCreated
    | GroupUpdated
    | GroupDeleted
    | GroupMembershipAdded
    | GroupMembershipRemoved
    | CourseCreated
    | CourseUpdated
    | CourseDeleted
    | UserUpdated
    | UserDeleted
    | RoleAssigned
    | RoleUnassigned
    | EnrolInstanceStatusUpdated
    | EnrolInstanceDeleted
    | UserEnrolled
    | UserEnrolmentUpdated
    | UserUnenrolled
)
