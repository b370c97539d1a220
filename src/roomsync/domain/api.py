"""Entry point for loading communication processors by entity instance."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.errors import NotConfiguredError
from roomsync.domain.model import Communication
from roomsync.domain.processor import CommunicationProcessor

if TYPE_CHECKING:
    from collections.abc import Iterator

    from roomsync.config import CommunicationConfig
    from roomsync.domain.processor import UnitOfWorkFactory
    from roomsync.domain.providers import RoomProviderRegistry

log = getLogger(__name__)


class CommunicationApi:
    """Loads, creates and enumerates processors.

    Holds no per-instance state; every call goes back to storage.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        providers: RoomProviderRegistry,
        config: CommunicationConfig,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._providers = providers
        self._config = config

    @property
    def providers(self) -> RoomProviderRegistry:
        return self._providers

    @property
    def config(self) -> CommunicationConfig:
        return self._config

    def is_available(self) -> bool:
        return self._config.enabled

    def load_by_instance(
        self,
        component: str,
        instance_type: str,
        instance_id: int,
        *,
        create: bool = True,
    ) -> CommunicationProcessor:
        """Return the processor for an instance, creating a ``none`` record if missing.

        With ``create=False`` a missing record raises ``NotConfiguredError``.
        """

        with self._unit_of_work_factory() as uow:
            communications = uow.repositories.communications
            record = communications.get_by_instance(component, instance_type, instance_id)
            if record is None:
                if not create:
                    raise NotConfiguredError(
                        f"No communication configured for {component}/{instance_type}/{instance_id}"
                    )
                record = Communication(
                    component=component,
                    instance_type=instance_type,
                    instance_id=instance_id,
                )
                communications.add(record)
                uow.commit()
                log.debug("Created communication record %s", record)
        return self._processor(record)

    def iter_processors(self) -> Iterator[CommunicationProcessor]:
        with self._unit_of_work_factory() as uow:
            records = list(uow.repositories.communications.list_all())
        for record in records:
            yield self._processor(record)

    def iter_processors_with_pending(self) -> Iterator[CommunicationProcessor]:
        """Yield processors that still have ``pending_add`` or ``pending_delete`` rows."""

        with self._unit_of_work_factory() as uow:
            records = list(uow.repositories.communications.list_with_pending())
        for record in records:
            yield self._processor(record)

    def _processor(self, record: Communication) -> CommunicationProcessor:
        return CommunicationProcessor(
            record,
            unit_of_work_factory=self._unit_of_work_factory,
            providers=self._providers,
        )
