"""SQLAlchemy adapter package for roomsync."""

from __future__ import annotations

from .mappings import (
    communication_table,
    communication_user_table,
    mapper_registry,
    start_mappers,
)
from .repositories import (
    SqlAlchemyCommunicationRepository,
    SqlAlchemyCommunicationUserRepository,
)
from .unit_of_work import (
    SqlAlchemyCommunicationUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCommunicationRepository",
    "SqlAlchemyCommunicationUnitOfWork",
    "SqlAlchemyCommunicationUserRepository",
    "StartupError",
    "communication_table",
    "communication_user_table",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
