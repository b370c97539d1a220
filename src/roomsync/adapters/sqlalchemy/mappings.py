"""SQLAlchemy mapping metadata for communication records."""

from __future__ import annotations

import logging
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
    orm,
)

from roomsync.domain.model import Communication, CommunicationUser, MembershipType

if TYPE_CHECKING:
    from enum import StrEnum

log = logging.getLogger(__name__)


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

communication_table = Table(
    "communication",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("component", String(100), nullable=False),
    Column("instance_type", String(100), nullable=False),
    Column("instance_id", Integer, nullable=False),
    Column("provider", String(100), nullable=False, default="none"),
    Column("room_name", String(255), nullable=True),
    Column("room_topic", String, nullable=True),
    Column("room_id", String(255), nullable=True),
    Column("room_provider", String(100), nullable=True),
    Column("active", Boolean, nullable=False, default=False),
    UniqueConstraint(
        "component",
        "instance_type",
        "instance_id",
        name="uq_communication_instance",
    ),
)

communication_user_table = Table(
    "communication_user",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "communication_id",
        Integer,
        ForeignKey("communication.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("user_id", Integer, nullable=False, index=True),
    Column(
        "membership",
        Enum(
            MembershipType,
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
    ),
    UniqueConstraint("communication_id", "user_id", name="uq_communication_user_member"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the communication records."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(Communication, communication_table)
    mapper_registry.map_imperatively(CommunicationUser, communication_user_table)
    return mapper_registry

