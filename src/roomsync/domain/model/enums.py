"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ProviderId(StrEnum):
    """Known room backends. ``NONE`` disables synchronisation for an instance."""

    NONE = "none"
    MATRIX = "communication_matrix"
    MOCK = "communication_mock"


class MembershipType(StrEnum):
    CONFIRMED = "confirmed"
    PENDING_ADD = "pending_add"
    PENDING_DELETE = "pending_delete"


class MemberAction(StrEnum):
    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"


class GroupMode(StrEnum):
    NONE = "none"
    SEPARATE = "separate"
    VISIBLE = "visible"


class EnrolStatus(StrEnum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class UserEnrolmentStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class RoomRole(StrEnum):
    """Standing of a member inside a room; providers map it to their own permissions."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMINISTRATOR = "administrator"
