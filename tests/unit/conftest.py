"""
Unit test specific fixtures and configurations.
"""

from unittest.mock import Mock

import pytest

from devenv.logging_utils.log_manager import LogManager
from devenv.logging_utils.progress_tracker import ProgressTracker


@pytest.fixture
def log_manager(tmp_path) -> LogManager:
    """Event log writing below the test's temporary directory."""
    return LogManager(str(tmp_path / "logs"))


@pytest.fixture
def mock_progress_tracker():
    """Create a mock progress tracker for testing."""
    return Mock(spec=ProgressTracker)
