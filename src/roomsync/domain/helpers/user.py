"""Room memberships that follow a user's account state."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.model import MemberAction

from .base import tolerate_transient
from .course import CourseCommunicationHelper

if TYPE_CHECKING:
    from roomsync.domain.model import User
    from roomsync.domain.processor import CommunicationProcessor

log = getLogger(__name__)


class UserCommunicationHelper(CourseCommunicationHelper):
    """Applies suspension and deletion of a user to every course they are enrolled in."""

    def update_user_room_memberships(self, user: User, previous: User | None = None) -> None:
        """Remove a newly suspended user from their rooms, or re-add an unsuspended one.

        ``previous`` defaults to the record the directory currently holds.
        """

        if not self.is_available():
            return
        prior = previous if previous is not None else self.directory.get_user(user.id)
        if prior is None or prior.suspended == user.suspended:
            return

        action = MemberAction.REMOVE if user.suspended else MemberAction.ADD
        log.debug("User %s suspended=%s; applying %s", user.id, user.suspended, action)
        for course in self.directory.get_user_courses(user.id):
            self.update_course_communication_room_membership(course, [user.id], action)

    def delete_user_room_membership(self, user: User) -> None:
        """Take a deleted user out of every room, then drop their membership rows.

        Rows are only purged once the provider has confirmed the removal, so a
        failed call keeps its ``pending_delete`` marker.
        """

        if not self.is_available():
            return
        for course in self.directory.get_user_courses(user.id):
            if self.is_group_mode_enabled(course):
                processors = [
                    self.find_for_group_id(group.id)
                    for group in self.directory.get_course_groups(course.id)
                ]
            else:
                processors = [self.find_for_course_id(course.id)]
            for processor in processors:
                if processor is not None:
                    self._remove_and_purge(processor, user.id)

    def _remove_and_purge(self, processor: CommunicationProcessor, user_id: int) -> None:
        with tolerate_transient(processor, "removing deleted user"):
            change = processor.remove_members_from_room([user_id])
            if user_id in change.succeeded:
                processor.delete_instance_user_mapping([user_id])
