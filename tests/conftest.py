"""
Pytest configuration and shared fixtures.
"""

import os
from pathlib import Path

import pytest

from devenv.config import settings as settings_module
from devenv.config.settings import AppSettings, BackupSettings, EnvironmentSettings


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real .env, home directory and log directory."""
    for key in list(os.environ):
        if key.startswith("DEVENV_"):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setattr(settings_module, "_settings", None)
    yield


@pytest.fixture
def home_dir(tmp_path) -> Path:
    """A fake home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """A project directory with an empty workspace."""
    project = tmp_path / "project"
    (project / "workspace").mkdir(parents=True)
    return project


@pytest.fixture
def app_settings(tmp_path, project_dir) -> AppSettings:
    """Settings pointing at the temporary project with a configured repository."""
    return AppSettings(
        environment=EnvironmentSettings(project_dir=project_dir),
        backup=BackupSettings(
            hub_repo="alice/devbox",
            local_backup_dir=tmp_path / "backups",
        ),
    )
