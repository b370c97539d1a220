from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from roomsync.config import (
    CommunicationConfig,
    ConfigurationError,
    MissingConfigurationError,
    get_communication_config,
    get_database_config,
    get_matrix_config,
    get_storage_config,
    read_env_flag,
    require_env_var,
    require_env_vars,
)
from roomsync.domain.model import ProviderId

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("Yes", True), (" on ", True), ("0", False), ("off", False), ("", False)],
)
def test_read_env_flag(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("ROOMSYNC_TEST_FLAG", raw)

    assert read_env_flag("ROOMSYNC_TEST_FLAG") is expected


def test_read_env_flag_default_and_invalid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ROOMSYNC_TEST_FLAG", raising=False)
    assert read_env_flag("ROOMSYNC_TEST_FLAG", default=True) is True

    monkeypatch.setenv("ROOMSYNC_TEST_FLAG", "maybe")
    with pytest.raises(ConfigurationError, match="maybe"):
        read_env_flag("ROOMSYNC_TEST_FLAG")


def test_communication_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ROOMSYNC_ENABLED", raising=False)
    monkeypatch.delenv("ROOMSYNC_DEFAULT_PROVIDER", raising=False)

    assert get_communication_config() == CommunicationConfig()


def test_communication_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROOMSYNC_ENABLED", "true")
    monkeypatch.setenv("ROOMSYNC_DEFAULT_PROVIDER", "communication_matrix")

    config = get_communication_config()

    assert config.enabled is True
    assert config.default_course_provider is ProviderId.MATRIX


def test_communication_config_rejects_unknown_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROOMSYNC_DEFAULT_PROVIDER", "communication_irc")

    with pytest.raises(ConfigurationError, match="communication_irc"):
        get_communication_config()


def test_matrix_config_derives_server_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATRIX_HOMESERVER_URL", "https://synapse.example.org/")
    monkeypatch.setenv("MATRIX_ACCESS_TOKEN", "secret")
    monkeypatch.delenv("MATRIX_SERVER_NAME", raising=False)
    monkeypatch.delenv("MATRIX_USER_PREFIX", raising=False)

    config = get_matrix_config()

    assert config.homeserver_url == "https://synapse.example.org"
    assert config.server_name == "synapse.example.org"
    assert config.user_prefix == "lms"
    assert config.resilience.base_url == "https://synapse.example.org"
    assert config.resilience.default_headers == {"Authorization": "Bearer secret"}
    assert config.resilience.ratelimit is not None
    assert config.resilience.request_headers() == {
        "User-Agent": "roomsync (matrix)",
        "Authorization": "Bearer secret",
    }


def test_matrix_config_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATRIX_HOMESERVER_URL", "https://synapse.example.org")
    monkeypatch.setenv("MATRIX_ACCESS_TOKEN", "secret")
    monkeypatch.setenv("MATRIX_SERVER_NAME", "example.org")
    monkeypatch.setenv("MATRIX_USER_PREFIX", "school")

    config = get_matrix_config()

    assert config.server_name == "example.org"
    assert config.user_prefix == "school"


def test_matrix_config_requires_url_and_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MATRIX_HOMESERVER_URL", raising=False)
    monkeypatch.delenv("MATRIX_ACCESS_TOKEN", raising=False)

    with pytest.raises(MissingConfigurationError, match="MATRIX_ACCESS_TOKEN"):
        get_matrix_config()


def test_matrix_config_needs_a_host(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATRIX_HOMESERVER_URL", "not a url")
    monkeypatch.setenv("MATRIX_ACCESS_TOKEN", "secret")
    monkeypatch.delenv("MATRIX_SERVER_NAME", raising=False)

    with pytest.raises(ConfigurationError, match="server name"):
        get_matrix_config()


def test_storage_paths_follow_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ROOMSYNC_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("ROOMSYNC_DATABASE_URI", raising=False)
    monkeypatch.delenv("DATABASE_URI", raising=False)

    storage = get_storage_config()
    database = get_database_config()

    assert storage.resolve_data_dir() == (tmp_path / "data").resolve()
    assert database.uri == f"sqlite+pysqlite:///{(tmp_path / 'data' / 'roomsync.db').resolve()}"
    assert (tmp_path / "data").is_dir()


def test_database_uri_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ROOMSYNC_DATABASE_URI", raising=False)
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_roomsync_database_uri_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("ROOMSYNC_DATABASE_URI", "postgresql+psycopg://sync@db/rooms")

    assert get_database_config().uri == "postgresql+psycopg://sync@db/rooms"
