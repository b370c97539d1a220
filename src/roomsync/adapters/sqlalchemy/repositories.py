"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import delete, exists, select

from roomsync.adapters.sqlalchemy.mappings import (
    communication_table,
    communication_user_table,
)
from roomsync.domain.model import Communication, CommunicationUser, MembershipType

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session


class SqlAlchemyCommunicationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Communication) -> None:
        self.session.add(entity)
        self.session.flush([entity])

    def remove(self, entity: Communication) -> None:
        self.session.delete(entity)

    def get(self, communication_id: int) -> Communication | None:
        return self.session.get(Communication, communication_id)

    def get_by_instance(
        self,
        component: str,
        instance_type: str,
        instance_id: int,
    ) -> Communication | None:
        stmt = (
            select(Communication)
            .where(communication_table.c.component == component)
            .where(communication_table.c.instance_type == instance_type)
            .where(communication_table.c.instance_id == instance_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[Communication]:
        stmt = select(Communication).order_by(communication_table.c.id)
        return self.session.execute(stmt).scalars().all()

    def list_with_pending(self) -> Sequence[Communication]:
        has_pending = exists().where(
            communication_user_table.c.communication_id == communication_table.c.id,
            communication_user_table.c.membership.in_(
                [MembershipType.PENDING_ADD, MembershipType.PENDING_DELETE]
            ),
        )
        stmt = select(Communication).where(has_pending).order_by(communication_table.c.id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyCommunicationUserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CommunicationUser) -> None:
        self.session.add(entity)

    def remove(self, entity: CommunicationUser) -> None:
        self.session.delete(entity)

    def get(self, communication_id: int, user_id: int) -> CommunicationUser | None:
        stmt = (
            select(CommunicationUser)
            .where(communication_user_table.c.communication_id == communication_id)
            .where(communication_user_table.c.user_id == user_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for(self, communication_id: int) -> Sequence[CommunicationUser]:
        stmt = (
            select(CommunicationUser)
            .where(communication_user_table.c.communication_id == communication_id)
            .order_by(communication_user_table.c.user_id)
        )
        return self.session.execute(stmt).scalars().all()

    def remove_for(
        self,
        communication_id: int,
        user_ids: Iterable[int] | None = None,
    ) -> int:
        stmt = delete(communication_user_table).where(
            communication_user_table.c.communication_id == communication_id
        )
        if user_ids is not None:
            targets = sorted(set(user_ids))
            if not targets:
                return 0
            stmt = stmt.where(communication_user_table.c.user_id.in_(targets))
        result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
        return result.rowcount


if TYPE_CHECKING:
    from roomsync.domain.ports.persistence import (
        CommunicationRepository,
        CommunicationUserRepository,
    )

    _session_stub = cast("Session", object())
    _communication_repo: CommunicationRepository = SqlAlchemyCommunicationRepository(
        _session_stub
    )
    _member_repo: CommunicationUserRepository = SqlAlchemyCommunicationUserRepository(
        _session_stub
    )
