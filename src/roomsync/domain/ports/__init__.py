"""Domain port definitions for adapters."""

from __future__ import annotations

from .directory import Directory
from .persistence import CommunicationRepository, CommunicationUserRepository, Repository
from .rooms import RoomProvider
from .unit_of_work import (
    CommunicationRepositories,
    CommunicationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CommunicationRepositories",
    "CommunicationRepository",
    "CommunicationUnitOfWork",
    "CommunicationUserRepository",
    "Directory",
    "Repository",
    "RepositoryCollection",
    "RoomProvider",
    "UnitOfWork",
]
