"""
Tests for the Git configuration tool.
"""

from unittest.mock import patch

import pytest

from devenv.tools.base import ToolError
from devenv.tools.git import GitTool


class TestGitTool:
    """Test Git tool functionality."""

    @pytest.fixture
    def git_tool(self, git_config):
        """Create Git tool instance."""
        return GitTool(git_config)

    @pytest.fixture
    def ready_tool(self, git_tool):
        git_tool._git_available = True
        return git_tool

    @pytest.mark.asyncio
    async def test_initialization(self, git_tool):
        with patch.object(git_tool, "_run_command") as mock_run:
            mock_run.return_value = {
                "returncode": 0,
                "stdout": "git version 2.43.0\n",
                "stderr": "",
            }

            await git_tool.initialize()

            assert git_tool.git_version == "git version 2.43.0"
            mock_run.assert_called_once_with(["git", "--version"])

    @pytest.mark.asyncio
    async def test_initialization_git_not_available(self, git_tool):
        with patch.object(git_tool, "_run_command") as mock_run:
            mock_run.return_value = {"returncode": -1, "stdout": "", "stderr": "nope"}

            with pytest.raises(ToolError, match="Git is not available"):
                await git_tool.initialize()

    @pytest.mark.asyncio
    async def test_get_config_set_value(self, ready_tool):
        with patch.object(ready_tool, "_run_command") as mock_run:
            mock_run.return_value = {
                "returncode": 0,
                "stdout": "Ada Lovelace\n",
                "stderr": "",
            }

            result = await ready_tool.execute("get_config", {"key": "user.name"})

            assert result.success is True
            assert result.output["value"] == "Ada Lovelace"
            assert result.output["is_set"] is True
            mock_run.assert_called_once_with(
                ["git", "config", "--global", "user.name"]
            )

    @pytest.mark.asyncio
    async def test_get_config_unset_key(self, ready_tool):
        """Test an unset key is reported rather than failed."""
        with patch.object(ready_tool, "_run_command") as mock_run:
            mock_run.return_value = {"returncode": 1, "stdout": "", "stderr": ""}

            result = await ready_tool.execute("get_config", {"key": "user.email"})

            assert result.success is True
            assert result.output["value"] is None
            assert result.output["is_set"] is False

    @pytest.mark.asyncio
    async def test_set_config(self, ready_tool):
        with patch.object(ready_tool, "_run_command") as mock_run:
            mock_run.return_value = {"returncode": 0, "stdout": "", "stderr": ""}

            result = await ready_tool.execute(
                "set_config", {"key": "user.name", "value": "Developer"}
            )

            assert result.success is True
            mock_run.assert_called_once_with(
                ["git", "config", "--global", "user.name", "Developer"]
            )

    @pytest.mark.asyncio
    async def test_set_config_failure(self, ready_tool):
        with patch.object(ready_tool, "_run_command") as mock_run:
            mock_run.return_value = {
                "returncode": 4,
                "stdout": "",
                "stderr": "error: could not lock config file",
            }

            result = await ready_tool.execute(
                "set_config", {"key": "user.email", "value": "dev@example.com"}
            )

            assert result.success is False
            assert "could not lock" in result.error

    @pytest.mark.asyncio
    async def test_invalid_key_rejected(self, ready_tool):
        with patch.object(ready_tool, "_run_command") as mock_run:
            result = await ready_tool.execute("get_config", {"key": "user name; rm"})

            assert result.success is False
            assert "Invalid git config key" in result.error
            mock_run.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_config_requires_value(self, ready_tool):
        result = await ready_tool.execute("set_config", {"key": "user.name"})

        assert result.success is False
        assert "value is required for set_config" in result.error

    @pytest.mark.asyncio
    async def test_execute_without_git(self, git_tool):
        result = await git_tool.execute("get_config", {"key": "user.name"})

        assert result.success is False
        assert "Git is not available" in result.error
