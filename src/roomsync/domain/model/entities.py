"""Snapshots of platform entities, produced by the surrounding application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import EnrolStatus, GroupMode, UserEnrolmentStatus

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, kw_only=True)
class Course:
    id: int
    fullname: str
    group_mode: GroupMode = GroupMode.NONE
    visible: bool = True
    summary: str | None = None
    # Provider picked on the course settings form, if any.
    selected_provider: str | None = None
    room_name: str | None = None

    @property
    def group_mode_enabled(self) -> bool:
        return self.group_mode is not GroupMode.NONE


@dataclass(frozen=True, kw_only=True)
class Group:
    id: int
    course_id: int
    name: str
    description: str | None = None


@dataclass(frozen=True, kw_only=True)
class User:
    id: int
    suspended: bool = False
    deleted: bool = False


@dataclass(frozen=True, kw_only=True)
class EnrolInstance:
    id: int
    course_id: int
    method: str
    status: EnrolStatus = EnrolStatus.ENABLED

    @property
    def is_guest(self) -> bool:
        return self.method == "guest"


@dataclass(frozen=True, kw_only=True)
class UserEnrolment:
    id: int
    enrol_id: int
    user_id: int
    status: UserEnrolmentStatus = UserEnrolmentStatus.ACTIVE
    time_end: datetime | None = None

    def has_lapsed(self, now: datetime) -> bool:
        return self.time_end is not None and now > self.time_end
