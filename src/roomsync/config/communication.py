"""Communication subsystem switches."""

from __future__ import annotations

import os
from dataclasses import dataclass

from roomsync.domain.model.enums import ProviderId

from .env import read_env_flag
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CommunicationConfig:
    enabled: bool = False
    default_course_provider: ProviderId = ProviderId.NONE


def get_communication_config() -> CommunicationConfig:
    raw_provider = os.getenv("ROOMSYNC_DEFAULT_PROVIDER", "").strip()
    try:
        provider = ProviderId(raw_provider) if raw_provider else ProviderId.NONE
    except ValueError as exc:
        raise ConfigurationError(f"Unknown communication provider: {raw_provider!r}") from exc
    return CommunicationConfig(
        enabled=read_env_flag("ROOMSYNC_ENABLED", default=False),
        default_course_provider=provider,
    )
