"""Explicit mapping from stored provider identifiers to room backends."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from roomsync.domain.errors import NotConfiguredError
from roomsync.domain.model import ProviderId

if TYPE_CHECKING:
    from roomsync.domain.ports.rooms import RoomProvider

RoomProviderFactory = Callable[[], "RoomProvider"]


def parse_provider_id(value: str | ProviderId | None) -> ProviderId:
    """Coerce a stored or user-supplied identifier into a ``ProviderId``.

    ``None`` and the empty string mean no provider. Unknown identifiers raise
    ``NotConfiguredError``.
    """

    if value is None or value == "":
        return ProviderId.NONE
    try:
        return ProviderId(value)
    except ValueError as exc:
        raise NotConfiguredError(f"Unknown communication provider: {value!r}") from exc


class RoomProviderRegistry:
    """Resolves a ``ProviderId`` to a room provider instance.

    Built once at start-up; providers are created lazily and cached.
    """

    def __init__(self, factories: Mapping[ProviderId, RoomProviderFactory]) -> None:
        if ProviderId.NONE in factories:
            raise ValueError("The 'none' provider cannot have a backend")
        self._factories = MappingProxyType(dict(factories))
        self._instances: dict[ProviderId, RoomProvider] = {}

    @property
    def provider_ids(self) -> frozenset[ProviderId]:
        return frozenset(self._factories)

    def supports(self, provider: str | ProviderId | None) -> bool:
        try:
            provider_id = parse_provider_id(provider)
        except NotConfiguredError:
            return False
        return provider_id in self._factories

    def resolve(self, provider: str | ProviderId | None) -> RoomProvider:
        provider_id = parse_provider_id(provider)
        if provider_id is ProviderId.NONE:
            raise NotConfiguredError("Communication is disabled for this instance")
        instance = self._instances.get(provider_id)
        if instance is not None:
            return instance
        factory = self._factories.get(provider_id)
        if factory is None:
            raise NotConfiguredError(f"Communication provider {provider_id} is not enabled")
        instance = factory()
        self._instances[provider_id] = instance
        return instance
