"""Course rooms, and the group rooms of courses in group mode."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.model import MemberAction, ProviderId
from roomsync.domain.providers import parse_provider_id

from .base import CommunicationHelper, tolerate_transient

if TYPE_CHECKING:
    from collections.abc import Iterable

    from roomsync.domain.model import Course, Group
    from roomsync.domain.processor import CommunicationProcessor

log = getLogger(__name__)


class CourseCommunicationHelper(CommunicationHelper):
    """Translates course life-cycle changes into room operations."""

    @staticmethod
    def course_room_name(course: Course) -> str:
        return course.room_name or course.fullname

    def resolve_course_provider(self, course: Course) -> ProviderId:
        """Provider picked for the course, else the configured default."""

        if course.selected_provider is None:
            return self.api.config.default_course_provider
        return parse_provider_id(course.selected_provider)

    def is_update_required(
        self,
        course: Course,
        previous: Course,
        category_changed: bool,
    ) -> bool:
        if category_changed or course.group_mode is not previous.group_mode:
            return True
        if (
            course.selected_provider is not None
            and course.selected_provider != previous.selected_provider
        ):
            return True
        return self.course_room_name(course) != self.course_room_name(previous)

    def group_room_members(self, course: Course, group: Group, enrolled: set[int]) -> set[int]:
        """Members of ``group`` plus every enrolled user who can see all groups."""

        all_groups = self.get_users_with_access_to_all_groups(enrolled, course.id)
        return self.directory.get_group_member_ids(group.id) | all_groups

    def create_course_communication(self, course: Course) -> None:
        """Set up rooms for a new course.

        Without group mode the course room is created and filled with the
        enrolled users. In group mode the course record only keeps the
        provider and one room is created per group.
        """

        if not self.is_available():
            return
        provider = self.resolve_course_provider(course)
        if provider is ProviderId.NONE:
            return

        processor = self.load_for_course_id(course.id)
        name = self.course_room_name(course)
        enrolled = self.get_enrolled_users_for_course(course)

        if not self.is_group_mode_enabled(course):
            self.update_communication_instance_by_provider(
                processor,
                provider,
                name,
                course.summary,
                enrolled,
                self.room_context(processor, course),
            )
            return

        with tolerate_transient(processor, "configuring course room"):
            processor.configure(provider, name, course.summary)
        for group in self.directory.get_course_groups(course.id):
            group_processor = self.load_for_group_id(group.id)
            self.update_communication_instance_by_provider(
                group_processor,
                provider,
                group.name,
                group.description,
                self.group_room_members(course, group, enrolled),
                self.room_context(group_processor, course),
            )

    def update_course_communication(
        self,
        course: Course,
        previous: Course,
        category_changed: bool = False,
    ) -> None:
        """Re-shape rooms after a course change.

        Moving the course into a hidden category switches its rooms off.
        """

        if not self.is_available():
            return
        if not self.is_update_required(course, previous, category_changed):
            return

        processor = self.load_for_course_id(course.id)
        if course.selected_provider is not None:
            provider = parse_provider_id(course.selected_provider)
        else:
            provider = processor.get_provider()
        if category_changed and not course.visible:
            provider = ProviderId.NONE

        name = self.course_room_name(course)
        enrolled = self.get_enrolled_users_for_course(course)
        groups = self.directory.get_course_groups(course.id)

        if not self.is_group_mode_enabled(course):
            for group in groups:
                group_processor = self.find_for_group_id(group.id)
                if group_processor is None:
                    continue
                with tolerate_transient(group_processor, "emptying group room"):
                    group_processor.remove_all_members_from_room()
            self.update_communication_instance_by_provider(
                processor,
                provider,
                name,
                course.summary,
                enrolled,
                self.room_context(processor, course),
            )
            return

        with tolerate_transient(processor, "emptying course room"):
            processor.remove_all_members_from_room()
        with tolerate_transient(processor, "configuring course room"):
            processor.configure(provider, name, course.summary)
        for group in groups:
            if provider is ProviderId.NONE:
                group_processor = self.find_for_group_id(group.id)
                if group_processor is None:
                    continue
            else:
                group_processor = self.load_for_group_id(group.id)
            self.update_communication_instance_by_provider(
                group_processor,
                provider,
                group.name,
                group.description,
                self.group_room_members(course, group, enrolled),
                self.room_context(group_processor, course),
            )

    def update_course_communication_room_membership(
        self,
        course: Course,
        user_ids: Iterable[int],
        action: MemberAction | str,
    ) -> None:
        """Apply a membership action to the course room, or to the group rooms.

        In group mode each group room handles the given users that belong to
        it plus those who can see all groups. Users handled by no group are
        removed from every group room.
        """

        if not self.is_available():
            return
        member_action = MemberAction(action)
        users = set(user_ids)
        if not users:
            return

        if not self.is_group_mode_enabled(course):
            processor = self.find_for_course_id(course.id)
            if processor is not None:
                self.apply_member_action(processor, users, member_action, course.id)
            return

        groups = self.directory.get_course_groups(course.id)
        all_groups = self.get_users_with_access_to_all_groups(users, course.id)
        handled: set[int] = set()
        group_processors: list[CommunicationProcessor] = []
        for group in groups:
            to_handle = (self.directory.get_group_member_ids(group.id) & users) | all_groups
            handled |= to_handle
            group_processor = self.find_for_group_id(group.id)
            if group_processor is None:
                continue
            group_processors.append(group_processor)
            self.apply_member_action(group_processor, to_handle, member_action, course.id)

        not_handled = users - handled
        if not not_handled:
            return
        for group_processor in group_processors:
            with tolerate_transient(group_processor, "removing members"):
                group_processor.remove_members_from_room(not_handled)

    def update_course_member_roles(self, course: Course, user_ids: Iterable[int]) -> None:
        """Resend room roles wherever one of ``user_ids`` is a confirmed member."""

        if not self.is_available():
            return
        users = set(user_ids)
        if not self.is_group_mode_enabled(course):
            processors = [self.find_for_course_id(course.id)]
        else:
            processors = [
                self.find_for_group_id(group.id)
                for group in self.directory.get_course_groups(course.id)
            ]
        for processor in processors:
            if processor is None or not users & processor.get_confirmed_userids():
                continue
            self.sync_member_roles(processor, course.id)

    def delete_course_communication(self, course: Course) -> None:
        """Delete the course room and every group room, then their records."""

        if not self.is_available():
            return
        for group in self.directory.get_course_groups(course.id):
            group_processor = self.find_for_group_id(group.id)
            if group_processor is not None:
                self.delete_processor(group_processor)
        processor = self.find_for_course_id(course.id)
        if processor is not None:
            self.delete_processor(processor)
        log.info("Removed communication for course %s", course.id)
