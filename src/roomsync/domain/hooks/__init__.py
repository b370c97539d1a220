"""Event types, the static hook table and the communication listener."""

from __future__ import annotations

from .dispatcher import (
    HookCallback,
    HookDispatcher,
    HookRegistration,
    HookTable,
    build_hook_table,
)
from .events import (
    CourseCreated,
    CourseDeleted,
    CourseUpdated,
    EnrolInstanceDeleted,
    EnrolInstanceStatusUpdated,
    GroupCreated,
    GroupDeleted,
    GroupMembershipAdded,
    GroupMembershipRemoved,
    GroupUpdated,
    HookEvent,
    RoleAssigned,
    RoleUnassigned,
    UserDeleted,
    UserEnrolled,
    UserEnrolmentUpdated,
    UserUnenrolled,
    UserUpdated,
)
from .listeners import CommunicationHookListener, communication_hook_registrations

__all__ = [
    "CommunicationHookListener",
    "CourseCreated",
    "CourseDeleted",
    "CourseUpdated",
    "EnrolInstanceDeleted",
    "EnrolInstanceStatusUpdated",
    "GroupCreated",
    "GroupDeleted",
    "GroupMembershipAdded",
    "GroupMembershipRemoved",
    "GroupUpdated",
    "HookCallback",
    "HookDispatcher",
    "HookEvent",
    "HookRegistration",
    "HookTable",
    "RoleAssigned",
    "RoleUnassigned",
    "UserDeleted",
    "UserEnrolled",
    "UserEnrolmentUpdated",
    "UserUnenrolled",
    "UserUpdated",
    "build_hook_table",
    "communication_hook_registrations",
]
