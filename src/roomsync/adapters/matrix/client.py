"""Matrix room provider backed by the client-server and Synapse admin APIs."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Final, cast
from urllib.parse import quote

import httpx

from roomsync.adapters.http_resilience import ResilientClient
from roomsync.domain.errors import ProviderRejectedError, ProviderUnavailableError
from roomsync.domain.model import RoomRole

from .schema import (
    AdminUser,
    AdminUserUpsert,
    CreateRoomRequest,
    CreateRoomResponse,
    DeleteRoomRequest,
    JoinedMembersResponse,
    JoinRequest,
    KickRequest,
    MatrixError,
    PowerLevelNotifications,
    PowerLevelsContent,
    RoomNameContent,
    RoomTopicContent,
    WhoAmIResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping

    from roomsync.config.http_resilience import ResilienceConfig
    from roomsync.config.matrix import MatrixConfig
    from roomsync.domain.model import RoomContext

log = getLogger(__name__)

CLIENT_API: Final[str] = "/_matrix/client/v3"
ADMIN_API_V1: Final[str] = "/_synapse/admin/v1"
ADMIN_API_V2: Final[str] = "/_synapse/admin/v2"
MATRIX_TO_URL: Final[str] = "https://matrix.to/#/"

POWER_LEVEL_DEFAULT: Final[int] = 0
POWER_LEVEL_MODERATOR: Final[int] = 50
POWER_LEVEL_SITE_ADMIN: Final[int] = 90
POWER_LEVEL_MAXIMUM: Final[int] = 100
POWER_LEVELS: Final[dict[RoomRole, int]] = {
    RoomRole.MEMBER: POWER_LEVEL_DEFAULT,
    RoomRole.MODERATOR: POWER_LEVEL_MODERATOR,
    RoomRole.ADMINISTRATOR: POWER_LEVEL_SITE_ADMIN,
}

# Auth failures and throttling say nothing about the request itself.
UNAVAILABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({401, 403, 408, 429})


def _path_segment(value: str) -> str:
    return quote(value, safe="")


class MatrixRoomProvider:
    """Creates private rooms and manages membership on a Synapse homeserver.

    Platform users map to ``@<prefix><user id>:<server name>`` and are
    provisioned through the admin API before their first join.
    """

    def __init__(
        self,
        *,
        config: MatrixConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        display_name: Callable[[int], str] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._display_name = display_name or self._default_display_name

    def matrix_user_id(self, user_id: int) -> str:
        return f"@{self._config.user_prefix}{user_id}:{self._config.server_name}"

    def _default_display_name(self, user_id: int) -> str:
        return f"{self._config.user_prefix}{user_id}"

    # RoomProvider -----------------------------------------------------------------

    def create_room(self, name: str, topic: str | None, context: RoomContext) -> str:
        return asyncio.run(self._create_room_async(name, topic, context))

    def update_room(
        self,
        room_id: str,
        name: str,
        topic: str | None,
        context: RoomContext,
    ) -> None:
        asyncio.run(self._update_room_async(room_id, name, topic))

    def delete_room(self, room_id: str) -> None:
        asyncio.run(self._delete_room_async(room_id))

    def add_members(self, room_id: str, user_ids: Collection[int]) -> set[int]:
        return asyncio.run(self._add_members_async(room_id, user_ids))

    def remove_members(self, room_id: str, user_ids: Collection[int]) -> set[int]:
        return asyncio.run(self._remove_members_async(room_id, user_ids))

    def set_member_roles(self, room_id: str, roles: Mapping[int, RoomRole]) -> None:
        asyncio.run(self._set_member_roles_async(room_id, roles))

    def room_url(self, room_id: str) -> str | None:
        return f"{MATRIX_TO_URL}{room_id}"

    # Async implementations --------------------------------------------------------

    async def _create_room_async(
        self,
        name: str,
        topic: str | None,
        context: RoomContext,
    ) -> str:
        payload = CreateRoomRequest(name=name, topic=topic)
        async with self._client_factory(self._resilience) as client:
            response = await self._call(
                client,
                "POST",
                f"{CLIENT_API}/createRoom",
                json=payload.model_dump(exclude_none=True),
            )
        room = CreateRoomResponse.model_validate(response.json())
        log.debug(
            "Created Matrix room %s for %s/%s/%s",
            room.room_id,
            context.component,
            context.instance_type,
            context.instance_id,
        )
        return room.room_id

    async def _update_room_async(self, room_id: str, name: str, topic: str | None) -> None:
        room = _path_segment(room_id)
        async with self._client_factory(self._resilience) as client:
            await self._call(
                client,
                "PUT",
                f"{CLIENT_API}/rooms/{room}/state/m.room.name",
                json=RoomNameContent(name=name).model_dump(),
            )
            await self._call(
                client,
                "PUT",
                f"{CLIENT_API}/rooms/{room}/state/m.room.topic",
                json=RoomTopicContent(topic=topic or "").model_dump(),
            )

    async def _delete_room_async(self, room_id: str) -> None:
        async with self._client_factory(self._resilience) as client:
            response = await self._call_allowing_not_found(
                client,
                "DELETE",
                f"{ADMIN_API_V2}/rooms/{_path_segment(room_id)}",
                json=DeleteRoomRequest().model_dump(),
            )
        if response is None:
            log.info("Matrix room %s was already gone", room_id)

    async def _add_members_async(self, room_id: str, user_ids: Collection[int]) -> set[int]:
        added: set[int] = set()
        async with self._client_factory(self._resilience) as client:
            joined = await self._joined_members(client, room_id)
            for user_id in user_ids:
                matrix_id = self.matrix_user_id(user_id)
                if matrix_id in joined:
                    added.add(user_id)
                    continue
                try:
                    await self._ensure_user(client, user_id)
                    await self._call(
                        client,
                        "POST",
                        f"{ADMIN_API_V1}/join/{_path_segment(room_id)}",
                        json=JoinRequest(user_id=matrix_id).model_dump(),
                    )
                except ProviderRejectedError as exc:
                    log.warning("Matrix refused to add %s to %s: %s", matrix_id, room_id, exc)
                    continue
                except ProviderUnavailableError as exc:
                    raise ProviderUnavailableError(str(exc), succeeded=added) from exc
                added.add(user_id)
        return added

    async def _remove_members_async(self, room_id: str, user_ids: Collection[int]) -> set[int]:
        removed: set[int] = set()
        async with self._client_factory(self._resilience) as client:
            joined = await self._joined_members(client, room_id)
            for user_id in user_ids:
                matrix_id = self.matrix_user_id(user_id)
                if matrix_id not in joined:
                    removed.add(user_id)
                    continue
                try:
                    await self._call(
                        client,
                        "POST",
                        f"{CLIENT_API}/rooms/{_path_segment(room_id)}/kick",
                        json=KickRequest(user_id=matrix_id).model_dump(exclude_none=True),
                    )
                except ProviderRejectedError as exc:
                    log.warning("Matrix refused to remove %s from %s: %s", matrix_id, room_id, exc)
                    continue
                except ProviderUnavailableError as exc:
                    raise ProviderUnavailableError(str(exc), succeeded=removed) from exc
                removed.add(user_id)
        return removed

    async def _set_member_roles_async(self, room_id: str, roles: Mapping[int, RoomRole]) -> None:
        async with self._client_factory(self._resilience) as client:
            response = await self._call(client, "GET", f"{CLIENT_API}/account/whoami")
            token_user = WhoAmIResponse.model_validate(response.json()).user_id
            users = {
                self.matrix_user_id(user_id): POWER_LEVELS[role]
                for user_id, role in roles.items()
                if POWER_LEVELS[role] > POWER_LEVEL_DEFAULT
            }
            # The service account must keep full control of the room.
            users[token_user] = POWER_LEVEL_MAXIMUM
            content = PowerLevelsContent(
                ban=POWER_LEVEL_MAXIMUM,
                invite=POWER_LEVEL_MODERATOR,
                kick=POWER_LEVEL_MODERATOR,
                redact=POWER_LEVEL_MODERATOR,
                notifications=PowerLevelNotifications(room=POWER_LEVEL_MODERATOR),
                users=users,
            )
            await self._call(
                client,
                "PUT",
                f"{CLIENT_API}/rooms/{_path_segment(room_id)}/state/m.room.power_levels",
                json=content.model_dump(),
            )

    async def _joined_members(self, client: ResilientClient, room_id: str) -> set[str]:
        response = await self._call(
            client,
            "GET",
            f"{CLIENT_API}/rooms/{_path_segment(room_id)}/joined_members",
        )
        return set(JoinedMembersResponse.model_validate(response.json()).joined)

    async def _ensure_user(self, client: ResilientClient, user_id: int) -> None:
        matrix_id = self.matrix_user_id(user_id)
        path = f"{ADMIN_API_V2}/users/{_path_segment(matrix_id)}"
        response = await self._call_allowing_not_found(client, "GET", path)
        if response is not None:
            existing = AdminUser.model_validate(response.json())
            if not existing.deactivated:
                return
        await self._call(
            client,
            "PUT",
            path,
            json=AdminUserUpsert(displayname=self._display_name(user_id)).model_dump(),
        )
        log.debug("Provisioned Matrix user %s", matrix_id)

    # Transport --------------------------------------------------------------------

    async def _call(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        json: object = None,
    ) -> httpx.Response:
        response = await self._send(client, method, path, json=json)
        _raise_for_status(method, path, response)
        return response

    async def _call_allowing_not_found(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        json: object = None,
    ) -> httpx.Response | None:
        response = await self._send(client, method, path, json=json)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        _raise_for_status(method, path, response)
        return response

    async def _send(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        json: object,
    ) -> httpx.Response:
        try:
            return await client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            raise ProviderUnavailableError(f"Matrix {method} {path} timed out") from exc
        except httpx.TransportError as exc:
            raise ProviderUnavailableError(f"Matrix {method} {path} failed: {exc}") from exc


def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
    if response.is_success:
        return
    error = _parse_error(response)
    message = (
        f"Matrix {method} {path} returned {response.status_code}: "
        f"{error.errcode} {error.error or ''}".rstrip()
    )
    if response.status_code in UNAVAILABLE_STATUS_CODES or response.is_server_error:
        raise ProviderUnavailableError(message)
    raise ProviderRejectedError(message)


def _parse_error(response: httpx.Response) -> MatrixError:
    try:
        return MatrixError.model_validate(response.json())
    except ValueError:
        return MatrixError(error=response.text or None)


if TYPE_CHECKING:
    from roomsync.domain.ports.rooms import RoomProvider

    _provider_check: RoomProvider = MatrixRoomProvider(config=cast("MatrixConfig", object()))
