"""Shared plumbing for the entity communication helpers."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.errors import (
    NotConfiguredError,
    ProviderChangeUnsupportedError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from roomsync.domain.model import (
    COURSE_COMMUNICATION_COMPONENT,
    COURSE_COMMUNICATION_INSTANCETYPE,
    GROUP_COMMUNICATION_COMPONENT,
    GROUP_COMMUNICATION_INSTANCETYPE,
    Course,
    MemberAction,
    ProviderId,
    RoomContext,
    RoomRole,
)
from roomsync.domain.providers import parse_provider_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from roomsync.domain.api import CommunicationApi
    from roomsync.domain.ports.directory import Directory
    from roomsync.domain.processor import CommunicationProcessor

log = getLogger(__name__)


@contextmanager
def tolerate_transient(target: object, operation: str) -> Iterator[None]:
    """Log and skip transient failures of a single processor operation.

    ``NotConfiguredError`` and ``ProviderUnavailableError`` are left for a later
    event or reconciliation sweep to pick up. Rejections propagate.
    """

    try:
        yield
    except (NotConfiguredError, ProviderUnavailableError) as exc:
        log.warning("Skipped %s for %s: %s", operation, target, exc)
    except (ProviderRejectedError, ProviderChangeUnsupportedError) as exc:
        log.error("%s failed for %s: %s", operation, target, exc)
        raise


class CommunicationHelper:
    """Base for the stateless per-entity helpers."""

    def __init__(self, api: CommunicationApi, directory: Directory) -> None:
        self.api = api
        self.directory = directory

    def is_available(self) -> bool:
        return self.api.is_available()

    def load_for_course_id(
        self,
        course_id: int,
        *,
        create: bool = True,
    ) -> CommunicationProcessor:
        return self.api.load_by_instance(
            COURSE_COMMUNICATION_COMPONENT,
            COURSE_COMMUNICATION_INSTANCETYPE,
            course_id,
            create=create,
        )

    def load_for_group_id(
        self,
        group_id: int,
        *,
        create: bool = True,
    ) -> CommunicationProcessor:
        return self.api.load_by_instance(
            GROUP_COMMUNICATION_COMPONENT,
            GROUP_COMMUNICATION_INSTANCETYPE,
            group_id,
            create=create,
        )

    @staticmethod
    def is_group_mode_enabled(course: Course) -> bool:
        return course.group_mode_enabled

    def get_enrolled_users_for_course(self, course: Course) -> set[int]:
        return self.directory.get_enrolled_user_ids(course.id)

    def get_users_with_access_to_all_groups(
        self,
        user_ids: Iterable[int],
        course_id: int,
    ) -> set[int]:
        return {
            user_id
            for user_id in user_ids
            if self.directory.has_access_to_all_groups(course_id, user_id)
        }

    def find_for_course_id(self, course_id: int) -> CommunicationProcessor | None:
        """Return the course processor, or ``None`` when the course has no record."""

        try:
            return self.load_for_course_id(course_id, create=False)
        except NotConfiguredError:
            log.debug("No communication record for course %s", course_id)
            return None

    def find_for_group_id(self, group_id: int) -> CommunicationProcessor | None:
        try:
            return self.load_for_group_id(group_id, create=False)
        except NotConfiguredError:
            log.debug("No communication record for group %s", group_id)
            return None

    def room_roles(self, course_id: int, user_ids: Iterable[int]) -> dict[int, RoomRole]:
        return {user_id: self.directory.get_room_role(course_id, user_id) for user_id in user_ids}

    def sync_member_roles(
        self,
        processor: CommunicationProcessor,
        course_id: int,
        *,
        added: Iterable[int] | None = None,
    ) -> None:
        """Send the room roles of every confirmed member to the provider.

        With ``added`` the call is skipped unless one of those users holds a
        role above plain member.
        """

        if added is not None:
            roles = self.room_roles(course_id, added)
            if all(role is RoomRole.MEMBER for role in roles.values()):
                return
        members = processor.get_confirmed_userids()
        with tolerate_transient(processor, "updating member roles"):
            processor.update_member_roles(self.room_roles(course_id, members))

    def add_members(
        self,
        processor: CommunicationProcessor,
        user_ids: Iterable[int],
        course_id: int | None,
    ) -> None:
        """Add users to one room, then pass on their roles when needed."""

        with tolerate_transient(processor, "adding members"):
            change = processor.add_members_to_room(user_ids)
            if course_id is not None:
                self.sync_member_roles(processor, course_id, added=change.succeeded)

    @staticmethod
    def room_context(processor: CommunicationProcessor, course: Course) -> RoomContext:
        return RoomContext.for_communication(processor.communication, course_id=course.id)

    def update_communication_instance_by_provider(
        self,
        processor: CommunicationProcessor,
        provider: str | ProviderId | None,
        name: str,
        topic: str | None,
        user_ids: Iterable[int],
        context: RoomContext | None = None,
    ) -> None:
        """Bring one room in line with ``provider`` and make sure ``user_ids`` are members.

        Provider ``none`` empties the room and disables it.
        """

        target = parse_provider_id(provider)
        if target is ProviderId.NONE:
            with tolerate_transient(processor, "emptying room"):
                processor.remove_all_members_from_room()
            with tolerate_transient(processor, "disabling room"):
                processor.update_room(target, name, topic, context)
            return

        with tolerate_transient(processor, "updating room"):
            processor.update_room(target, name, topic, context)
        self.add_members(processor, user_ids, context.course_id if context else None)

    def apply_member_action(
        self,
        processor: CommunicationProcessor,
        user_ids: set[int],
        action: MemberAction,
        course_id: int,
    ) -> None:
        """Run one membership action against one room.

        ``UPDATE`` keeps enrolled users and removes everyone else among ``user_ids``.
        """

        if not user_ids:
            return
        if action is MemberAction.ADD:
            self.add_members(processor, user_ids, course_id)
        elif action is MemberAction.REMOVE:
            with tolerate_transient(processor, "removing members"):
                processor.remove_members_from_room(user_ids)
        else:
            enrolled = self.directory.get_enrolled_user_ids(course_id)
            self.add_members(processor, user_ids & enrolled, course_id)
            with tolerate_transient(processor, "removing members"):
                processor.remove_members_from_room(user_ids - enrolled)

    def delete_processor(self, processor: CommunicationProcessor) -> None:
        """Delete the room, then the record. The record stays if the room survives."""

        with tolerate_transient(processor, "deleting room"):
            processor.delete_room()
            processor.delete_instance()
