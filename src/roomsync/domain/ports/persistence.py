"""Ports for persisting communication records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from roomsync.domain.model import Communication, CommunicationUser

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def remove(self, entity: TEntity) -> None: ...


@runtime_checkable
class CommunicationRepository(Repository[Communication], Protocol):
    """Persistence contract for communication (processor) records."""

    def get(self, communication_id: int) -> Communication | None: ...

    def get_by_instance(
        self,
        component: str,
        instance_type: str,
        instance_id: int,
    ) -> Communication | None: ...

    def list_all(self) -> Sequence[Communication]: ...

    def list_with_pending(self) -> Sequence[Communication]: ...


@runtime_checkable
class CommunicationUserRepository(Repository[CommunicationUser], Protocol):
    """Persistence contract for room membership rows."""

    def get(self, communication_id: int, user_id: int) -> CommunicationUser | None: ...

    def list_for(self, communication_id: int) -> Sequence[CommunicationUser]: ...

    def remove_for(
        self,
        communication_id: int,
        user_ids: Iterable[int] | None = None,
    ) -> int: ...
