"""Application configuration helpers."""

from __future__ import annotations

from .communication import CommunicationConfig, get_communication_config
from .env import read_env_flag, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .matrix import MatrixConfig, get_matrix_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CommunicationConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MatrixConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_communication_config",
    "get_database_config",
    "get_matrix_config",
    "get_storage_config",
    "read_env_flag",
    "require_env_var",
    "require_env_vars",
]
