"""
Tests for persisting the backup repository identifier.
"""

import pytest

from devenv.config.store import (
    ConfigurationError,
    read_hub_repo,
    save_hub_repo,
    validate_hub_repo,
)


class TestValidateHubRepo:
    @pytest.mark.parametrize(
        "value", ["alice/devbox", "my-org/dev_env", "a.b/c-d", " alice/devbox "]
    )
    def test_valid(self, value):
        assert validate_hub_repo(value) == value.strip()

    @pytest.mark.parametrize(
        "value", ["", "devbox", "alice/devbox/extra", "Alice/devbox", "alice/dev box"]
    )
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError):
            validate_hub_repo(value)


class TestHubRepoStore:
    def test_read_missing_file(self, tmp_path):
        assert read_hub_repo(tmp_path / ".env") is None

    def test_save_creates_file(self, tmp_path):
        env_file = tmp_path / ".env"

        save_hub_repo(env_file, "alice/devbox")

        assert env_file.read_text() == "DEVENV_HUB_REPO=alice/devbox\n"
        assert read_hub_repo(env_file) == "alice/devbox"

    def test_save_replaces_existing_value_only(self, tmp_path):
        """Test re-saving keeps exactly one repository line and other settings."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            "LOG_LEVEL=DEBUG\n"
            "DEVENV_HUB_REPO=old/repo\n"
            "DEVENV_CONTAINER_NAME=box\n"
            "export DEVENV_HUB_REPO=older/repo\n"
        )

        save_hub_repo(env_file, "alice/devbox")
        save_hub_repo(env_file, "alice/devbox2")

        lines = env_file.read_text().splitlines()
        assert lines == [
            "LOG_LEVEL=DEBUG",
            "DEVENV_HUB_REPO=alice/devbox2",
            "DEVENV_CONTAINER_NAME=box",
        ]

    def test_read_quoted_value(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text('DEVENV_HUB_REPO="alice/devbox"\n')

        assert read_hub_repo(env_file) == "alice/devbox"

    def test_save_rejects_invalid(self, tmp_path):
        env_file = tmp_path / ".env"

        with pytest.raises(ConfigurationError):
            save_hub_repo(env_file, "nope")

        assert not env_file.exists()
