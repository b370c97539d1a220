"""Translates platform events into communication helper calls."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.model import EnrolStatus, MemberAction, UserEnrolmentStatus

from .dispatcher import HookRegistration
from .events import (
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
    RoleAssigned,
    RoleUnassigned,
    UserDeleted,
    UserEnrolled,
    UserEnrolmentUpdated,
    UserUnenrolled,
    UserUpdated,
)

if TYPE_CHECKING:
    from roomsync.domain.helpers import (
        CourseCommunicationHelper,
        GroupCommunicationHelper,
        UserCommunicationHelper,
    )
    from roomsync.domain.model import EnrolInstance
    from roomsync.domain.ports.directory import Directory

Clock = Callable[[], datetime]

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CommunicationHookListener:
    """One handler per event; each resolves the affected course and calls a helper."""

    def __init__(
        self,
        *,
        courses: CourseCommunicationHelper,
        groups: GroupCommunicationHelper,
        users: UserCommunicationHelper,
        directory: Directory,
        clock: Clock = _utcnow,
    ) -> None:
        self.courses = courses
        self.groups = groups
        self.users = users
        self.directory = directory
        self._clock = clock

    # Groups -----------------------------------------------------------------------

    def on_group_created(self, event: GroupCreated) -> None:
        course = self.directory.get_course(event.group.course_id)
        self.groups.create_group_communication(course, event.group)

    def on_group_updated(self, event: GroupUpdated) -> None:
        course = self.directory.get_course(event.group.course_id)
        self.groups.update_group_communication(course, event.group, event.previous)

    def on_group_deleted(self, event: GroupDeleted) -> None:
        course = self.directory.get_course(event.group.course_id)
        self.groups.delete_group_communication(course, event.group)

    def on_group_membership_added(self, event: GroupMembershipAdded) -> None:
        course = self.directory.get_course(event.group.course_id)
        self.groups.add_members_to_group_room(course, event.group, event.user_ids)

    def on_group_membership_removed(self, event: GroupMembershipRemoved) -> None:
        course = self.directory.get_course(event.group.course_id)
        self.groups.remove_members_from_group_room(course, event.group, event.user_ids)

    # Courses ----------------------------------------------------------------------

    def on_course_created(self, event: CourseCreated) -> None:
        self.courses.create_course_communication(event.course)

    def on_course_updated(self, event: CourseUpdated) -> None:
        self.courses.update_course_communication(
            event.course,
            event.previous,
            event.category_changed,
        )

    def on_course_deleted(self, event: CourseDeleted) -> None:
        self.courses.delete_course_communication(event.course)

    # Users and roles --------------------------------------------------------------

    def on_user_updated(self, event: UserUpdated) -> None:
        self.users.update_user_room_memberships(event.user, event.previous)

    def on_user_deleted(self, event: UserDeleted) -> None:
        self.users.delete_user_room_membership(event.user)

    def on_role_changed(self, event: RoleAssigned | RoleUnassigned) -> None:
        if event.course_id is None:
            return
        course = self.directory.get_course(event.course_id)
        self.courses.update_course_communication_room_membership(
            course,
            [event.user_id],
            MemberAction.UPDATE,
        )
        self.courses.update_course_member_roles(course, [event.user_id])

    # Enrolments -------------------------------------------------------------------

    def on_enrol_instance_status_updated(self, event: EnrolInstanceStatusUpdated) -> None:
        if event.instance.is_guest:
            return
        enabled = event.new_status is EnrolStatus.ENABLED
        action = MemberAction.ADD if enabled else MemberAction.REMOVE
        self._apply(
            event.instance,
            self.directory.get_active_enrolment_user_ids(event.instance.id),
            action,
        )

    def on_enrol_instance_deleted(self, event: EnrolInstanceDeleted) -> None:
        if event.instance.is_guest:
            return
        self._apply(
            event.instance,
            self.directory.get_active_enrolment_user_ids(event.instance.id),
            MemberAction.REMOVE,
        )

    def on_user_enrolled(self, event: UserEnrolled) -> None:
        if event.instance.is_guest:
            return
        self._apply(event.instance, {event.enrolment.user_id}, MemberAction.ADD)

    def on_user_enrolment_updated(self, event: UserEnrolmentUpdated) -> None:
        if event.instance.is_guest:
            return
        enrolment = event.enrolment
        if enrolment.status is UserEnrolmentStatus.SUSPENDED or enrolment.has_lapsed(
            self._clock()
        ):
            action = MemberAction.REMOVE
        else:
            action = MemberAction.ADD
        self._apply(event.instance, {enrolment.user_id}, action)

    def on_user_unenrolled(self, event: UserUnenrolled) -> None:
        if event.instance.is_guest:
            return
        # Another enrolment may still grant access, so re-evaluate instead.
        action = MemberAction.REMOVE if event.last_enrolment else MemberAction.UPDATE
        self._apply(event.instance, {event.enrolment.user_id}, action)

    def _apply(self, instance: EnrolInstance, user_ids: set[int], action: MemberAction) -> None:
        if not user_ids:
            return
        course = self.directory.get_course(instance.course_id)
        log.debug(
            "Enrolment change on %s (%s): %s users %s",
            instance.id,
            instance.method,
            action,
            sorted(user_ids),
        )
        self.courses.update_course_communication_room_membership(course, user_ids, action)


def communication_hook_registrations(
    listener: CommunicationHookListener,
) -> tuple[HookRegistration, ...]:
    """Every event the communication subsystem reacts to, with its handler."""

    return (
        HookRegistration(GroupCreated, listener.on_group_created),
        HookRegistration(GroupUpdated, listener.on_group_updated),
        HookRegistration(GroupDeleted, listener.on_group_deleted),
        HookRegistration(GroupMembershipAdded, listener.on_group_membership_added),
        HookRegistration(GroupMembershipRemoved, listener.on_group_membership_removed),
        HookRegistration(CourseCreated, listener.on_course_created),
        HookRegistration(CourseUpdated, listener.on_course_updated),
        HookRegistration(CourseDeleted, listener.on_course_deleted),
        HookRegistration(UserUpdated, listener.on_user_updated),
        HookRegistration(UserDeleted, listener.on_user_deleted),
        HookRegistration(RoleAssigned, listener.on_role_changed),
        HookRegistration(RoleUnassigned, listener.on_role_changed),
        HookRegistration(EnrolInstanceStatusUpdated, listener.on_enrol_instance_status_updated),
        HookRegistration(EnrolInstanceDeleted, listener.on_enrol_instance_deleted),
        HookRegistration(UserEnrolled, listener.on_user_enrolled),
        HookRegistration(UserEnrolmentUpdated, listener.on_user_enrolment_updated),
        HookRegistration(UserUnenrolled, listener.on_user_unenrolled),
    )
