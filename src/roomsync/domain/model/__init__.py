"""Domain model for room membership synchronisation."""

from __future__ import annotations

from .communication import (
    COURSE_COMMUNICATION_COMPONENT,
    COURSE_COMMUNICATION_INSTANCETYPE,
    GROUP_COMMUNICATION_COMPONENT,
    GROUP_COMMUNICATION_INSTANCETYPE,
    Communication,
    CommunicationUser,
    MembershipChange,
    RoomContext,
)
from .entities import Course, EnrolInstance, Group, User, UserEnrolment
from .enums import (
    EnrolStatus,
    GroupMode,
    MemberAction,
    MembershipType,
    ProviderId,
    RoomRole,
    UserEnrolmentStatus,
)

__all__ = [
    "COURSE_COMMUNICATION_COMPONENT",
    "COURSE_COMMUNICATION_INSTANCETYPE",
    "GROUP_COMMUNICATION_COMPONENT",
    "GROUP_COMMUNICATION_INSTANCETYPE",
    "Communication",
    "CommunicationUser",
    "Course",
    "EnrolInstance",
    "EnrolStatus",
    "Group",
    "GroupMode",
    "MemberAction",
    "MembershipChange",
    "MembershipType",
    "ProviderId",
    "RoomContext",
    "RoomRole",
    "User",
    "UserEnrolment",
    "UserEnrolmentStatus",
]
