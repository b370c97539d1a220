"""Pydantic models for the Matrix client-server and Synapse admin payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MatrixBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MatrixError(MatrixBaseModel):
    errcode: str = "M_UNKNOWN"
    error: str | None = None
    retry_after_ms: int | None = None


class CreateRoomRequest(MatrixBaseModel):
    name: str
    topic: str | None = None
    visibility: str = "private"
    preset: str = "private_chat"
    initial_state: list[dict[str, object]] = Field(default_factory=list)


class CreateRoomResponse(MatrixBaseModel):
    room_id: str


class RoomNameContent(MatrixBaseModel):
    name: str


class RoomTopicContent(MatrixBaseModel):
    topic: str


class JoinedMember(MatrixBaseModel):
    display_name: str | None = None
    avatar_url: str | None = None


class JoinedMembersResponse(MatrixBaseModel):
    joined: dict[str, JoinedMember] = Field(default_factory=dict)


class AdminUser(MatrixBaseModel):
    name: str
    displayname: str | None = None
    deactivated: bool = False


class AdminUserUpsert(MatrixBaseModel):
    displayname: str
    deactivated: bool = False


class JoinRequest(MatrixBaseModel):
    user_id: str


class KickRequest(MatrixBaseModel):
    user_id: str
    reason: str | None = None


class DeleteRoomRequest(MatrixBaseModel):
    purge: bool = True
    block: bool = False


class WhoAmIResponse(MatrixBaseModel):
    user_id: str


class PowerLevelNotifications(MatrixBaseModel):
    room: int


class PowerLevelsContent(MatrixBaseModel):
    """``m.room.power_levels`` state; users not listed fall back to level 0."""

    ban: int
    invite: int
    kick: int
    redact: int
    notifications: PowerLevelNotifications
    users: dict[str, int] = Field(default_factory=dict)
