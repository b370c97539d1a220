"""Membership processor: one communication record, its room and its members.

Every membership transition goes through a pending state that is committed
before the provider is called, and is only finalised after the provider
reports success. A crash or transient failure between the two steps leaves
the pending marker in place, and the next operation touching the same users
(or a reconciliation sweep) retries just the provider call.
"""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.errors import (
    NotConfiguredError,
    ProviderChangeUnsupportedError,
    ProviderError,
)
from roomsync.domain.model import (
    Communication,
    CommunicationUser,
    MembershipChange,
    MembershipType,
    ProviderId,
    RoomContext,
    RoomRole,
)
from roomsync.domain.providers import parse_provider_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from roomsync.domain.ports.rooms import RoomProvider
    from roomsync.domain.ports.unit_of_work import (
        CommunicationRepositories,
        CommunicationUnitOfWork,
    )
    from roomsync.domain.providers import RoomProviderRegistry

UnitOfWorkFactory = Callable[[], "CommunicationUnitOfWork"]

log = getLogger(__name__)


class CommunicationProcessor:
    """Tracks provider, room and membership state for one entity instance."""

    def __init__(
        self,
        communication: Communication,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        providers: RoomProviderRegistry,
    ) -> None:
        if communication.id is None:
            raise ValueError("Communication record must be persisted before use")
        self._record = communication
        self._unit_of_work_factory = unit_of_work_factory
        self._providers = providers

    def __repr__(self) -> str:
        return f"CommunicationProcessor({self._record}, provider={self._record.provider})"

    # Record accessors -----------------------------------------------------------

    @property
    def id(self) -> int:
        assert self._record.id is not None
        return self._record.id

    @property
    def communication(self) -> Communication:
        return self._record

    @property
    def room_id(self) -> str | None:
        return self._record.room_id

    @property
    def room_name(self) -> str | None:
        return self._record.room_name

    @property
    def room_topic(self) -> str | None:
        return self._record.room_topic

    @property
    def active(self) -> bool:
        return self._record.active

    def get_provider(self) -> ProviderId:
        return parse_provider_id(self._record.provider)

    def reload(self) -> None:
        """Re-read the record from storage, discarding the cached copy."""

        with self._unit_of_work_factory() as uow:
            self._refresh(uow.repositories)

    # Provider and room lifecycle ------------------------------------------------

    def set_provider(self, provider: str | ProviderId | None) -> None:
        """Switch backends.

        Switching to none empties the room but keeps it, so turning the same
        backend back on reuses it. Moving to another backend empties and
        deletes the old room, then queues the members ``pending_add`` for the
        new one. Members leave through ``pending_delete`` either way; if the
        old backend fails part way the provider stays as it was and the
        remaining rows are left for a retry.
        """

        target = parse_provider_id(provider)
        self.reload()
        if self._record.provider == target.value:
            return
        if target is not ProviderId.NONE:
            self._providers.resolve(target)

        previous = self._record.provider
        owner = self._record.room_owner
        room_id = self._record.room_id
        keeps_room = owner is not None and target.value in {owner, ProviderId.NONE.value}
        carried = self._user_ids_with(MembershipType.CONFIRMED, MembershipType.PENDING_ADD)
        if owner is not None and owner != target.value:
            if not self._providers.supports(owner):
                raise ProviderChangeUnsupportedError(
                    f"Cannot migrate room {room_id} of {self._record}: "
                    f"provider {owner!r} is not available"
                )
            self._vacate_room()
            if not keeps_room:
                assert room_id is not None
                self._providers.resolve(owner).delete_room(room_id)
                log.info("Deleted room %s of %s", room_id, self._record)

        with self._unit_of_work_factory() as uow:
            record = self._refresh(uow.repositories)
            record.provider = target.value
            record.active = target is not ProviderId.NONE
            if not keeps_room:
                record.room_id = None
                record.room_provider = None
            members = uow.repositories.members
            if target is ProviderId.NONE:
                # Only removals the old room has not confirmed yet survive.
                for row in members.list_for(self.id):
                    if row.membership is not MembershipType.PENDING_DELETE or not keeps_room:
                        members.remove(row)
            elif not keeps_room:
                queued: set[int] = set()
                for row in members.list_for(self.id):
                    if row.user_id in carried:
                        row.membership = MembershipType.PENDING_ADD
                        queued.add(row.user_id)
                    else:
                        members.remove(row)
                for user_id in sorted(carried - queued):
                    members.add(CommunicationUser(communication_id=self.id, user_id=user_id))
            uow.commit()
        log.info("Changed provider of %s from %s to %s", self._record, previous, target)

    def configure(
        self,
        provider: str | ProviderId | None,
        name: str,
        topic: str | None = None,
    ) -> None:
        """Store provider and room metadata without creating or updating a room."""

        self.set_provider(provider)
        self._store_room_metadata(name, topic)

    def update_room(
        self,
        provider: str | ProviderId | None,
        name: str,
        topic: str | None = None,
        context: RoomContext | None = None,
    ) -> None:
        """Create the room if it does not exist yet, otherwise update it in place.

        Provider failures are raised without touching the stored room reference
        or metadata; the call is not retried here.
        """

        target = parse_provider_id(provider)
        self.set_provider(target)
        if target is ProviderId.NONE:
            self._store_room_metadata(name, topic)
            return

        adapter = self._providers.resolve(target)
        room_context = context or RoomContext.for_communication(self._record)
        room_id = self._record.room_id
        if room_id is None:
            created = adapter.create_room(name, topic, room_context)
            log.info("Created room %s for %s", created, self._record)
            self._adopt_room(adapter, created, name, topic)
            return

        if name == self._record.room_name and topic == self._record.room_topic:
            return
        adapter.update_room(room_id, name, topic, room_context)
        self._store_room_metadata(name, topic)
        log.info("Updated room %s for %s", room_id, self._record)

    def delete_room(self) -> None:
        """Delete the external room and forget its members."""

        self.reload()
        owner = self._record.room_owner
        room_id = self._record.room_id
        if owner is not None and room_id is not None:
            self._providers.resolve(owner).delete_room(room_id)
            log.info("Deleted room %s for %s", room_id, self._record)

        with self._unit_of_work_factory() as uow:
            record = self._refresh(uow.repositories)
            record.room_id = None
            record.room_provider = None
            uow.repositories.members.remove_for(self.id)
            uow.commit()

    def delete_instance(self) -> None:
        """Remove the record and all of its membership rows."""

        with self._unit_of_work_factory() as uow:
            record = uow.repositories.communications.get(self.id)
            uow.repositories.members.remove_for(self.id)
            if record is not None:
                uow.repositories.communications.remove(record)
            uow.commit()
        log.info("Deleted communication record %s", self._record)

    def get_room_url(self) -> str | None:
        adapter, room_id = self._room_target()
        if adapter is None or room_id is None:
            return None
        return adapter.room_url(room_id)

    def update_member_roles(self, roles: Mapping[int, RoomRole]) -> None:
        """Send the elevated roles of confirmed members to the room.

        The provider treats everyone left out as a plain member, which is how
        users lose a role. Without an active room nothing is sent.
        """

        adapter, room_id = self._room_target()
        if adapter is None or room_id is None:
            return
        confirmed = self.get_confirmed_userids()
        elevated = {
            user_id: role
            for user_id, role in roles.items()
            if user_id in confirmed and role is not RoomRole.MEMBER
        }
        adapter.set_member_roles(room_id, elevated)
        log.debug("Set member roles %s in room %s", elevated, room_id)

    # Membership ------------------------------------------------------------------

    def add_members_to_room(self, user_ids: Iterable[int]) -> MembershipChange:
        """Flag users ``pending_add`` and push them to the room.

        Confirmed users are skipped. Users the provider does not accept stay
        pending for a later retry.
        """

        requested = set(user_ids)
        if not requested:
            return MembershipChange()

        flagged: set[int] = set()
        with self._unit_of_work_factory() as uow:
            self._refresh(uow.repositories)
            members = uow.repositories.members
            for user_id in sorted(requested):
                row = members.get(self.id, user_id)
                if row is None:
                    members.add(
                        CommunicationUser(
                            communication_id=self.id,
                            user_id=user_id,
                            membership=MembershipType.PENDING_ADD,
                        )
                    )
                elif row.membership is MembershipType.CONFIRMED:
                    continue
                else:
                    row.membership = MembershipType.PENDING_ADD
                flagged.add(user_id)
            uow.commit()

        return self._push_additions(flagged)

    def remove_members_from_room(self, user_ids: Iterable[int]) -> MembershipChange:
        """Flag mapped users ``pending_delete`` and remove them from the room.

        Users without a membership row are ignored.
        """

        requested = set(user_ids)
        if not requested:
            return MembershipChange()

        flagged: set[int] = set()
        with self._unit_of_work_factory() as uow:
            self._refresh(uow.repositories)
            members = uow.repositories.members
            for user_id in sorted(requested):
                row = members.get(self.id, user_id)
                if row is None:
                    continue
                row.membership = MembershipType.PENDING_DELETE
                flagged.add(user_id)
            uow.commit()

        return self._push_removals(flagged)

    def remove_all_members_from_room(self) -> MembershipChange:
        return self.remove_members_from_room(
            self.get_all_userids_for_instance() | self.get_all_delete_flagged_userids()
        )

    def delete_instance_user_mapping(self, user_ids: Iterable[int]) -> None:
        """Drop membership rows locally without calling the provider."""

        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.members.remove_for(self.id, set(user_ids))
            uow.commit()
        log.debug("Removed %s membership rows from %s", removed, self._record)

    def sync_pending(self) -> MembershipChange:
        """Retry the provider call for every pending membership row."""

        self.reload()
        pending_delete = self.get_all_delete_flagged_userids()
        pending_add = self.get_pending_add_userids()
        change = MembershipChange()
        if pending_delete:
            change |= self._push_removals(pending_delete)
        if pending_add:
            change |= self._push_additions(pending_add)
        return change

    def get_all_userids_for_instance(self) -> set[int]:
        """Users that are, or are about to be, members of the room."""

        return self._user_ids_with(MembershipType.CONFIRMED, MembershipType.PENDING_ADD)

    def get_all_delete_flagged_userids(self) -> set[int]:
        return self._user_ids_with(MembershipType.PENDING_DELETE)

    def get_pending_add_userids(self) -> set[int]:
        return self._user_ids_with(MembershipType.PENDING_ADD)

    def get_confirmed_userids(self) -> set[int]:
        return self._user_ids_with(MembershipType.CONFIRMED)

    # Internals -------------------------------------------------------------------

    def _refresh(self, repositories: CommunicationRepositories) -> Communication:
        record = repositories.communications.get(self.id)
        if record is None:
            raise NotConfiguredError(f"Communication record {self._record} no longer exists")
        self._record = record
        return record

    def _room_target(
        self,
        *,
        for_removal: bool = False,
    ) -> tuple[RoomProvider | None, str | None]:
        """Adapter and room to send membership calls to.

        Additions need the room of the selected provider. Removals also reach a
        room that was switched off or is about to be replaced.
        """

        owner = self._record.room_owner
        if owner is None:
            return None, None
        if not for_removal and owner != self._record.provider:
            return None, None
        return self._providers.resolve(owner), self._record.room_id

    def _user_ids_with(self, *memberships: MembershipType) -> set[int]:
        with self._unit_of_work_factory() as uow:
            rows = uow.repositories.members.list_for(self.id)
            return {row.user_id for row in rows if row.membership in memberships}

    def _store_room_metadata(self, name: str, topic: str | None) -> None:
        with self._unit_of_work_factory() as uow:
            record = self._refresh(uow.repositories)
            record.room_name = name
            record.room_topic = topic
            uow.commit()

    def _adopt_room(
        self,
        adapter: RoomProvider,
        room_id: str,
        name: str,
        topic: str | None,
    ) -> None:
        with self._unit_of_work_factory() as uow:
            record = self._refresh(uow.repositories)
            existing = record.room_id
            if existing is None:
                record.room_id = room_id
                record.room_provider = record.provider
                record.room_name = name
                record.room_topic = topic
                record.active = True
                uow.commit()
                return

        # Another request stored a room first; keep that one.
        log.warning(
            "Room %s was created concurrently for %s; discarding duplicate %s",
            existing,
            self._record,
            room_id,
        )
        adapter.delete_room(room_id)

    def _vacate_room(self) -> None:
        """Flag every member ``pending_delete`` and remove them from the current room."""

        with self._unit_of_work_factory() as uow:
            self._refresh(uow.repositories)
            rows = uow.repositories.members.list_for(self.id)
            for row in rows:
                row.membership = MembershipType.PENDING_DELETE
            flagged = {row.user_id for row in rows}
            uow.commit()

        change = self._push_removals(flagged)
        if change.pending:
            log.warning(
                "Provider kept users %s in room %s of %s",
                sorted(change.pending),
                self._record.room_id,
                self._record,
            )

    def _push_additions(self, user_ids: set[int]) -> MembershipChange:
        if not user_ids:
            return MembershipChange()
        adapter, room_id = self._room_target()
        if adapter is None or room_id is None:
            log.debug("No room yet for %s; users %s stay pending", self._record, sorted(user_ids))
            return MembershipChange(pending=frozenset(user_ids))

        try:
            added = adapter.add_members(room_id, sorted(user_ids)) & user_ids
        except ProviderError as exc:
            self._transition(exc.succeeded & user_ids, MembershipType.PENDING_ADD)
            raise

        self._transition(added, MembershipType.PENDING_ADD)
        pending = user_ids - added
        if pending:
            log.warning("Provider did not add users %s to %s", sorted(pending), self._record)
        return MembershipChange(succeeded=frozenset(added), pending=frozenset(pending))

    def _push_removals(self, user_ids: set[int]) -> MembershipChange:
        if not user_ids:
            return MembershipChange()
        adapter, room_id = self._room_target(for_removal=True)
        if adapter is None or room_id is None:
            # No external room, so there is nothing to remove the users from.
            self._transition(user_ids, MembershipType.PENDING_DELETE)
            return MembershipChange(succeeded=frozenset(user_ids))

        try:
            removed = adapter.remove_members(room_id, sorted(user_ids)) & user_ids
        except ProviderError as exc:
            self._transition(exc.succeeded & user_ids, MembershipType.PENDING_DELETE)
            raise

        self._transition(removed, MembershipType.PENDING_DELETE)
        pending = user_ids - removed
        if pending:
            log.warning("Provider did not remove users %s from %s", sorted(pending), self._record)
        return MembershipChange(succeeded=frozenset(removed), pending=frozenset(pending))

    def _transition(self, user_ids: Iterable[int], source: MembershipType) -> None:
        """Finalise pending rows: ``pending_add`` becomes confirmed, ``pending_delete`` goes.

        Rows that moved to another state in the meantime are left alone.
        """

        targets = set(user_ids)
        if not targets:
            return
        with self._unit_of_work_factory() as uow:
            members = uow.repositories.members
            for user_id in sorted(targets):
                row = members.get(self.id, user_id)
                if row is None or row.membership is not source:
                    continue
                if source is MembershipType.PENDING_ADD:
                    row.membership = MembershipType.CONFIRMED
                else:
                    members.remove(row)
            uow.commit()
