"""Static hook table and synchronous dispatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .events import HookEvent

HookCallback = Callable[[Any], None]
HookTable = MappingProxyType[type, tuple[HookCallback, ...]]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HookRegistration:
    """Binds a callback to one concrete event type."""

    event_type: type
    callback: HookCallback


def build_hook_table(registrations: Iterable[HookRegistration]) -> HookTable:
    """Freeze registrations into an event-type keyed table, keeping declaration order."""

    table: dict[type, list[HookCallback]] = {}
    for registration in registrations:
        table.setdefault(registration.event_type, []).append(registration.callback)
    return MappingProxyType({event_type: tuple(cbs) for event_type, cbs in table.items()})


class HookDispatcher:
    """Runs the callbacks bound to an event's exact type, in order.

    The first exception aborts the remaining callbacks and propagates to the
    emitter.
    """

    def __init__(self, table: Mapping[type, tuple[HookCallback, ...]]) -> None:
        self._table = MappingProxyType(dict(table))

    def registered_events(self) -> tuple[type, ...]:
        return tuple(self._table)

    def callbacks_for(self, event_type: type) -> tuple[HookCallback, ...]:
        return self._table.get(event_type, ())

    def dispatch(self, event: HookEvent) -> None:
        callbacks = self.callbacks_for(type(event))
        if not callbacks:
            log.debug("No hooks registered for %s", type(event).__name__)
            return
        for callback in callbacks:
            log.debug("Dispatching %s to %s", type(event).__name__, _describe(callback))
            callback(event)


def _describe(callback: HookCallback) -> str:
    return getattr(callback, "__qualname__", repr(callback))
