"""
Tool-specific fixtures for unit testing.
"""

import pytest

from devenv.tools.base import ToolConfig


@pytest.fixture
def docker_config() -> ToolConfig:
    """Create Docker tool configuration for testing."""
    return ToolConfig(name="docker", version="1.0.0")


@pytest.fixture
def git_config() -> ToolConfig:
    """Create Git tool configuration for testing."""
    return ToolConfig(name="git", version="1.0.0")


@pytest.fixture
def filesystem_config() -> ToolConfig:
    """Create filesystem tool configuration for testing."""
    return ToolConfig(name="filesystem", version="1.0.0")


@pytest.fixture
def registry_config() -> ToolConfig:
    """Create registry tool configuration for testing."""
    return ToolConfig(
        name="registry",
        version="1.0.0",
        environment={
            "api_url": "https://registry.example.com/v2/repositories",
            "http_timeout": 5.0,
        },
    )
