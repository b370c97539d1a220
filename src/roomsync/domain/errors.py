"""Error taxonomy for the communication core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class CommunicationError(RuntimeError):
    """Base class for room synchronisation failures."""


class NotConfiguredError(CommunicationError):
    """No communication record or usable provider exists for an instance."""


class ProviderChangeUnsupportedError(CommunicationError):
    """The previous provider cannot represent the existing room, so it cannot be migrated."""


class ProviderError(CommunicationError):
    """Raised by room providers.

    ``succeeded`` lists the users a batch operation completed before failing, so
    callers can still persist that progress.
    """

    def __init__(self, message: str, *, succeeded: Iterable[int] = ()) -> None:
        super().__init__(message)
        self.succeeded = frozenset(succeeded)


class ProviderUnavailableError(ProviderError):
    """Transient backend failure (network, timeout, auth). Safe to retry later."""


class ProviderRejectedError(ProviderError):
    """The backend refused the request. Retrying the same input will not help."""
