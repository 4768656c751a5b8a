"""
Integration test specific fixtures and configurations.
"""

import logging

import pytest


@pytest.fixture
def integration_home(tmp_path, monkeypatch):
    """Point the user's home directory at a temporary directory."""
    home = tmp_path / "integration-home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI replaces the root handlers; put the originals back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
