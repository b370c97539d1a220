"""Stateless helpers turning entity changes into processor operations."""

from __future__ import annotations

from .base import CommunicationHelper, tolerate_transient
from .course import CourseCommunicationHelper
from .group import GroupCommunicationHelper
from .user import UserCommunicationHelper

__all__ = [
    "CommunicationHelper",
    "CourseCommunicationHelper",
    "GroupCommunicationHelper",
    "UserCommunicationHelper",
    "tolerate_transient",
]
