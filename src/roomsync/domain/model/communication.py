"""Persistent communication records and the context handed to room providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .enums import MembershipType, ProviderId

COURSE_COMMUNICATION_COMPONENT: Final[str] = "core_course"
COURSE_COMMUNICATION_INSTANCETYPE: Final[str] = "coursecommunication"
GROUP_COMMUNICATION_COMPONENT: Final[str] = "core_group"
GROUP_COMMUNICATION_INSTANCETYPE: Final[str] = "groupcommunication"


@dataclass(eq=False, kw_only=True)
class Communication:
    """Binds one domain entity instance to a room backend.

    ``room_id`` stays ``None`` until a provider has created the room and
    ``room_provider`` names the backend holding it. Switching ``provider`` to
    none only deactivates the room; it is deleted when the backend changes or
    the entity goes away.
    """

    component: str
    instance_type: str
    instance_id: int
    provider: str = ProviderId.NONE.value
    room_name: str | None = None
    room_topic: str | None = None
    room_id: str | None = None
    room_provider: str | None = None
    active: bool = False
    id: int | None = None

    @property
    def room_owner(self) -> str | None:
        """Backend holding ``room_id``, or ``None`` without a room."""

        if self.room_id is None:
            return None
        return self.room_provider or self.provider

    @property
    def identity(self) -> tuple[str, str, int]:
        return (self.component, self.instance_type, self.instance_id)

    def __str__(self) -> str:
        return f"{self.component}/{self.instance_type}/{self.instance_id}"


@dataclass(eq=False, kw_only=True)
class CommunicationUser:
    """Membership of one user in a communication room."""

    communication_id: int
    user_id: int
    membership: MembershipType = MembershipType.PENDING_ADD
    id: int | None = None


@dataclass(frozen=True, slots=True)
class RoomContext:
    """Identity of the entity a room belongs to, passed through to providers."""

    component: str
    instance_type: str
    instance_id: int
    course_id: int | None = None

    @classmethod
    def for_communication(
        cls,
        communication: Communication,
        *,
        course_id: int | None = None,
    ) -> RoomContext:
        return cls(
            component=communication.component,
            instance_type=communication.instance_type,
            instance_id=communication.instance_id,
            course_id=course_id,
        )


@dataclass(frozen=True, slots=True)
class MembershipChange:
    """Outcome of a membership operation on a single room."""

    succeeded: frozenset[int] = frozenset()
    pending: frozenset[int] = frozenset()

    def __or__(self, other: MembershipChange) -> MembershipChange:
        return MembershipChange(
            succeeded=self.succeeded | other.succeeded,
            pending=(self.pending | other.pending) - (self.succeeded | other.succeeded),
        )
