"""Port implemented by external chat backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from roomsync.domain.model import RoomContext, RoomRole


@runtime_checkable
class RoomProvider(Protocol):
    """Room and membership operations of a chat backend.

    Implementations raise ``ProviderUnavailableError`` for transient failures
    (including timeouts) and ``ProviderRejectedError`` when the backend refuses
    a request. Membership calls return the user ids that were handled.
    """

    def create_room(self, name: str, topic: str | None, context: RoomContext) -> str: ...

    def update_room(
        self,
        room_id: str,
        name: str,
        topic: str | None,
        context: RoomContext,
    ) -> None: ...

    def delete_room(self, room_id: str) -> None: ...

    def add_members(self, room_id: str, user_ids: Collection[int]) -> set[int]: ...

    def remove_members(self, room_id: str, user_ids: Collection[int]) -> set[int]: ...

    def set_member_roles(self, room_id: str, roles: Mapping[int, RoomRole]) -> None:
        """Grant ``roles`` in the room; members left out become plain members."""
        ...

    def room_url(self, room_id: str) -> str | None: ...
