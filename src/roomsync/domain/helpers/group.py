"""Group rooms for courses in group mode."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.model import ProviderId

from .base import CommunicationHelper, tolerate_transient

if TYPE_CHECKING:
    from collections.abc import Iterable

    from roomsync.domain.model import Course, Group

log = getLogger(__name__)


class GroupCommunicationHelper(CommunicationHelper):
    def create_group_communication(self, course: Course, group: Group) -> None:
        """Create a room for a new group using the course's provider.

        Only users who can see all groups are added here; regular members
        arrive through group membership events.
        """

        if not self.is_available() or not self.is_group_mode_enabled(course):
            return
        course_processor = self.find_for_course_id(course.id)
        if course_processor is None:
            return
        provider = course_processor.get_provider()
        if provider is ProviderId.NONE:
            return

        processor = self.load_for_group_id(group.id)
        enrolled = self.get_enrolled_users_for_course(course)
        self.update_communication_instance_by_provider(
            processor,
            provider,
            group.name,
            group.description,
            self.get_users_with_access_to_all_groups(enrolled, course.id),
            self.room_context(processor, course),
        )

    def update_group_communication(self, course: Course, group: Group, previous: Group) -> None:
        """Rename the group room after the group was renamed."""

        if not self.is_available() or not self.is_group_mode_enabled(course):
            return
        if group.name == previous.name and group.description == previous.description:
            return
        processor = self.find_for_group_id(group.id)
        if processor is None:
            return
        with tolerate_transient(processor, "renaming room"):
            processor.update_room(
                processor.get_provider(),
                group.name,
                group.description,
                self.room_context(processor, course),
            )

    def delete_group_communication(self, course: Course, group: Group) -> None:
        if not self.is_available():
            return
        processor = self.find_for_group_id(group.id)
        if processor is None:
            return
        self.delete_processor(processor)
        log.info("Removed communication for group %s of course %s", group.id, course.id)

    def add_members_to_group_room(
        self,
        course: Course,
        group: Group,
        user_ids: Iterable[int],
    ) -> None:
        if not self.is_available() or not self.is_group_mode_enabled(course):
            return
        processor = self.find_for_group_id(group.id)
        if processor is None:
            return
        self.add_members(processor, user_ids, course.id)

    def remove_members_from_group_room(
        self,
        course: Course,
        group: Group,
        user_ids: Iterable[int],
    ) -> None:
        """Remove users who left the group, keeping those who can see all groups."""

        if not self.is_available() or not self.is_group_mode_enabled(course):
            return
        processor = self.find_for_group_id(group.id)
        if processor is None:
            return
        users = set(user_ids)
        leaving = users - self.get_users_with_access_to_all_groups(users, course.id)
        with tolerate_transient(processor, "removing members"):
            processor.remove_members_from_room(leaving)
