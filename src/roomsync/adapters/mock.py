"""In-memory room provider for tests and dry runs."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.errors import ProviderRejectedError, ProviderUnavailableError

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from roomsync.domain.model import RoomContext, RoomRole

log = getLogger(__name__)


@dataclass(slots=True)
class MockRoom:
    room_id: str
    name: str
    topic: str | None
    context: RoomContext
    members: set[int] = field(default_factory=set)
    roles: dict[int, RoomRole] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderCall:
    operation: str
    room_id: str | None
    user_ids: tuple[int, ...] = ()


class MockRoomProvider:
    """Keeps rooms in a dict and records every call it receives.

    ``rejected_users`` are refused individually and left out of the returned
    sets. ``unavailable`` makes every call fail as a transient outage, and
    ``fail_after`` cuts a membership batch short after that many users.
    """

    def __init__(self, *, prefix: str = "!mock") -> None:
        self.rooms: dict[str, MockRoom] = {}
        self.calls: list[ProviderCall] = []
        self.rejected_users: set[int] = set()
        self.unavailable = False
        self.reject_room_operations = False
        self.fail_after: int | None = None
        self._prefix = prefix
        self._ids = itertools.count(1)

    def calls_for(self, operation: str) -> list[ProviderCall]:
        return [call for call in self.calls if call.operation == operation]

    def members_of(self, room_id: str) -> set[int]:
        return set(self.rooms[room_id].members)

    # RoomProvider -----------------------------------------------------------------

    def create_room(self, name: str, topic: str | None, context: RoomContext) -> str:
        self._record("create_room", None)
        room_id = f"{self._prefix}{next(self._ids)}:localhost"
        self.rooms[room_id] = MockRoom(room_id=room_id, name=name, topic=topic, context=context)
        log.debug("Mock room %s created for %s", room_id, context)
        return room_id

    def update_room(
        self,
        room_id: str,
        name: str,
        topic: str | None,
        context: RoomContext,
    ) -> None:
        self._record("update_room", room_id)
        room = self._room(room_id)
        room.name = name
        room.topic = topic
        room.context = context

    def delete_room(self, room_id: str) -> None:
        self._record("delete_room", room_id)
        self.rooms.pop(room_id, None)

    def add_members(self, room_id: str, user_ids: Collection[int]) -> set[int]:
        self._record("add_members", room_id, user_ids)
        room = self._room(room_id)
        added: set[int] = set()
        for position, user_id in enumerate(user_ids):
            self._maybe_cut_short(position, added)
            if user_id in self.rejected_users:
                continue
            room.members.add(user_id)
            added.add(user_id)
        return added

    def remove_members(self, room_id: str, user_ids: Collection[int]) -> set[int]:
        self._record("remove_members", room_id, user_ids)
        room = self._room(room_id)
        removed: set[int] = set()
        for position, user_id in enumerate(user_ids):
            self._maybe_cut_short(position, removed)
            if user_id in self.rejected_users:
                continue
            room.members.discard(user_id)
            removed.add(user_id)
        return removed

    def set_member_roles(self, room_id: str, roles: Mapping[int, RoomRole]) -> None:
        self._record("set_member_roles", room_id, sorted(roles))
        self._room(room_id).roles = dict(roles)

    def room_url(self, room_id: str) -> str | None:
        if room_id not in self.rooms:
            return None
        return f"https://mock.invalid/rooms/{room_id}"

    # Internals --------------------------------------------------------------------

    def _record(
        self,
        operation: str,
        room_id: str | None,
        user_ids: Collection[int] = (),
    ) -> None:
        self.calls.append(ProviderCall(operation, room_id, tuple(user_ids)))
        if self.unavailable:
            raise ProviderUnavailableError(f"Mock provider unavailable during {operation}")
        if self.reject_room_operations and operation in {"create_room", "update_room"}:
            raise ProviderRejectedError(f"Mock provider rejected {operation}")

    def _room(self, room_id: str) -> MockRoom:
        room = self.rooms.get(room_id)
        if room is None:
            raise ProviderRejectedError(f"Unknown mock room {room_id}")
        return room

    def _maybe_cut_short(self, position: int, done: set[int]) -> None:
        if self.fail_after is not None and position >= self.fail_after:
            raise ProviderUnavailableError(
                f"Mock provider went away after {position} users",
                succeeded=done,
            )


if TYPE_CHECKING:
    from roomsync.domain.ports.rooms import RoomProvider

    _provider_check: RoomProvider = MockRoomProvider()
