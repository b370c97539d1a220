"""Application wiring: adapters, domain services and the hook table."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.adapters.matrix import MatrixRoomProvider
from roomsync.adapters.mock import MockRoomProvider
from roomsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCommunicationUnitOfWork,
    is_started,
    startup,
)
from roomsync.config import (
    MissingConfigurationError,
    get_communication_config,
    get_matrix_config,
)
from roomsync.domain.api import CommunicationApi
from roomsync.domain.helpers import (
    CourseCommunicationHelper,
    GroupCommunicationHelper,
    UserCommunicationHelper,
)
from roomsync.domain.hooks import (
    CommunicationHookListener,
    HookDispatcher,
    build_hook_table,
    communication_hook_registrations,
)
from roomsync.domain.model import ProviderId
from roomsync.domain.providers import RoomProviderFactory, RoomProviderRegistry
from roomsync.domain.reconciliation import ReconciliationResult, reconcile_pending

if TYPE_CHECKING:
    from roomsync.config import CommunicationConfig, MatrixConfig
    from roomsync.domain.ports.directory import Directory
    from roomsync.domain.processor import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommunicationServices:
    api: CommunicationApi
    courses: CourseCommunicationHelper
    groups: GroupCommunicationHelper
    users: UserCommunicationHelper
    listener: CommunicationHookListener
    dispatcher: HookDispatcher


@dataclass(frozen=True, slots=True)
class ProcessorStatus:
    instance: str
    provider: str
    room_id: str | None
    confirmed: int
    pending_add: int
    pending_delete: int


def build_provider_registry(
    *,
    matrix_config: MatrixConfig | None = None,
    include_mock: bool = False,
) -> RoomProviderRegistry:
    """Register the Matrix backend when it is configured, plus the mock on request."""

    factories: dict[ProviderId, RoomProviderFactory] = {}
    resolved_matrix = matrix_config
    if resolved_matrix is None:
        try:
            resolved_matrix = get_matrix_config()
        except MissingConfigurationError as exc:
            log.info("Matrix provider not configured: %s", exc)
    if resolved_matrix is not None:
        matrix = resolved_matrix
        factories[ProviderId.MATRIX] = lambda: MatrixRoomProvider(config=matrix)
    if include_mock:
        factories[ProviderId.MOCK] = MockRoomProvider
    return RoomProviderRegistry(factories)


def _ensure_storage(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyCommunicationUnitOfWork


def build_communication_api(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    providers: RoomProviderRegistry | None = None,
    config: CommunicationConfig | None = None,
) -> CommunicationApi:
    return CommunicationApi(
        unit_of_work_factory=_ensure_storage(unit_of_work_factory),
        providers=providers or build_provider_registry(),
        config=config or get_communication_config(),
    )


def build_communication_services(
    directory: Directory,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    providers: RoomProviderRegistry | None = None,
    config: CommunicationConfig | None = None,
) -> CommunicationServices:
    """Assemble the helpers, the listener and a dispatcher bound to the static hook table."""

    api = build_communication_api(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=config,
    )
    courses = CourseCommunicationHelper(api, directory)
    groups = GroupCommunicationHelper(api, directory)
    users = UserCommunicationHelper(api, directory)
    listener = CommunicationHookListener(
        courses=courses,
        groups=groups,
        users=users,
        directory=directory,
    )
    dispatcher = HookDispatcher(build_hook_table(communication_hook_registrations(listener)))
    return CommunicationServices(
        api=api,
        courses=courses,
        groups=groups,
        users=users,
        listener=listener,
        dispatcher=dispatcher,
    )


def reconcile_pending_memberships(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    providers: RoomProviderRegistry | None = None,
    config: CommunicationConfig | None = None,
) -> ReconciliationResult:
    """Retry every pending membership change against its room provider."""

    api = build_communication_api(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=config,
    )
    log.info("Starting reconciliation sweep")
    return reconcile_pending(api)


def communication_status(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    providers: RoomProviderRegistry | None = None,
    config: CommunicationConfig | None = None,
) -> list[ProcessorStatus]:
    api = build_communication_api(
        unit_of_work_factory=unit_of_work_factory,
        providers=providers,
        config=config,
    )
    return [
        ProcessorStatus(
            instance=str(processor.communication),
            provider=processor.communication.provider,
            room_id=processor.room_id,
            confirmed=len(processor.get_confirmed_userids()),
            pending_add=len(processor.get_pending_add_userids()),
            pending_delete=len(processor.get_all_delete_flagged_userids()),
        )
        for processor in api.iter_processors()
    ]
