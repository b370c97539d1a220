"""Matrix homeserver configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .env import require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

MATRIX_TIMEOUT_SECONDS = 15.0
DEFAULT_MATRIX_USER_PREFIX = "lms"


@dataclass(frozen=True, slots=True)
class MatrixConfig:
    """Holds Matrix homeserver connection values."""

    homeserver_url: str
    access_token: str
    server_name: str
    user_prefix: str
    resilience: ResilienceConfig


def get_matrix_config(*, resilience: ResilienceConfig | None = None) -> MatrixConfig:
    values = require_env_vars(("MATRIX_HOMESERVER_URL", "MATRIX_ACCESS_TOKEN"))
    homeserver_url = values["MATRIX_HOMESERVER_URL"].rstrip("/")
    server_name = os.getenv("MATRIX_SERVER_NAME") or urlparse(homeserver_url).hostname
    if not server_name:
        raise ConfigurationError(f"Cannot derive Matrix server name from {homeserver_url!r}")
    return MatrixConfig(
        homeserver_url=homeserver_url,
        access_token=values["MATRIX_ACCESS_TOKEN"],
        server_name=server_name,
        user_prefix=os.getenv("MATRIX_USER_PREFIX") or DEFAULT_MATRIX_USER_PREFIX,
        resilience=resilience
        or ResilienceConfig(
            name="matrix",
            base_url=homeserver_url,
            timeout_seconds=MATRIX_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=3),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={"Authorization": f"Bearer {values['MATRIX_ACCESS_TOKEN']}"},
        ),
    )
