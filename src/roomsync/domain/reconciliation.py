"""Periodic sweep that retries pending membership changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from roomsync.domain.errors import NotConfiguredError, ProviderError
from roomsync.domain.model import ProviderId

if TYPE_CHECKING:
    from roomsync.domain.api import CommunicationApi
    from roomsync.domain.processor import CommunicationProcessor

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationResult:
    processed: int = 0
    confirmed: int = 0
    removed: int = 0
    failed: int = 0
    failures: list[str] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"processed={self.processed} confirmed={self.confirmed} "
            f"removed={self.removed} failed={self.failed}"
        )


def reconcile_pending(api: CommunicationApi) -> ReconciliationResult:
    """Retry provider calls for every processor that still has pending rows.

    Rooms that were never created (the create call failed earlier) are created
    first from the stored name and topic. A failing processor is counted and
    logged; the sweep moves on to the next one.
    """

    result = ReconciliationResult()
    if not api.is_available():
        log.info("Communication is disabled; skipping reconciliation")
        return result

    for processor in api.iter_processors_with_pending():
        result.processed += 1
        try:
            _reconcile_processor(processor, result)
        except (NotConfiguredError, ProviderError) as exc:
            result.failed += 1
            result.failures.append(f"{processor.communication}: {exc}")
            log.warning("Reconciliation of %s failed: %s", processor.communication, exc)

    log.info("Reconciliation finished: %s", result.summary())
    return result


def _reconcile_processor(processor: CommunicationProcessor, result: ReconciliationResult) -> None:
    provider = processor.get_provider()
    if provider is not ProviderId.NONE and processor.room_id is None and processor.room_name:
        processor.update_room(provider, processor.room_name, processor.room_topic)

    pending_add = processor.get_pending_add_userids()
    change = processor.sync_pending()
    result.confirmed += len(change.succeeded & pending_add)
    result.removed += len(change.succeeded - pending_add)
