"""
Tests for the configuration validator.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from devenv.checks.validator import (
    CONFIGURATION_FILES,
    HOST_DIRECTORIES,
    NETWORK,
    RECOMMENDATIONS,
    SYSTEM_REQUIREMENTS,
    ConfigValidator,
)
from devenv.templates import generate_project_files
from devenv.tools.base import ToolConfig, ToolResult
from devenv.tools.docker import DockerTool
from devenv.tools.filesystem import HostFilesystemTool
from devenv.tools.git import GitTool
from devenv.tools.registry import RegistryTool


def tool_result(action, success=True, error=None, **output) -> ToolResult:
    return ToolResult(
        success=success, tool_name="mock", action=action, output=output, error=error
    )


def make_docker(available=True, username="alice"):
    docker = Mock(spec=DockerTool)
    docker.docker_version = "Docker version 24.0.7" if available else None
    docker.compose_command = ["docker", "compose"] if available else None

    async def execute(action, params):
        if not available:
            return tool_result(action, success=False, error="Docker is not available")
        if action == "info":
            return tool_result(action, username=username)
        return tool_result(action, output="")

    docker.execute = AsyncMock(side_effect=execute)
    return docker


def make_git(name="Ada Lovelace", email="ada@example.com"):
    git = Mock(spec=GitTool)
    values = {"user.name": name, "user.email": email}

    async def execute(action, params):
        value = values.get(params["key"])
        return tool_result(action, key=params["key"], value=value, is_set=bool(value))

    git.execute = AsyncMock(side_effect=execute)
    return git


def make_registry(reachable=True):
    registry = Mock(spec=RegistryTool)

    async def execute(action, params):
        return tool_result(
            action,
            url=params["url"],
            reachable=reachable,
            status_code=200 if reachable else None,
        )

    registry.execute = AsyncMock(side_effect=execute)
    return registry


class TestConfigValidator:
    @pytest.fixture
    def filesystem(self):
        return HostFilesystemTool(ToolConfig(name="filesystem"))

    @pytest.fixture
    def configured_home(self, home_dir):
        (home_dir / ".gitconfig").write_text("[user]\n\tname = Ada\n")
        (home_dir / ".ssh").mkdir()
        return home_dir

    @pytest.fixture
    def generated_project(self, app_settings, project_dir):
        for generated in generate_project_files(app_settings):
            generated.path(project_dir).write_text(generated.content)
        return project_dir

    @pytest.mark.asyncio
    async def test_everything_configured(
        self, app_settings, filesystem, configured_home, generated_project
    ):
        validator = ConfigValidator(
            app_settings,
            docker=make_docker(),
            git=make_git(),
            filesystem=filesystem,
            registry=make_registry(),
            home=configured_home,
        )

        report = await validator.run()

        assert report.passed is True
        assert report.failures == []
        assert report.recommendations == RECOMMENDATIONS
        names = {r.name for r in report.results if r.passed}
        assert {"Docker", "Docker Compose", "Docker Hub Login"} <= names
        assert "Docker Hub repository" in names

    @pytest.mark.asyncio
    async def test_startup_script_permissions_are_fixed(
        self, app_settings, filesystem, configured_home, generated_project
    ):
        startup = generated_project / "startup.py"
        startup.chmod(0o644)
        validator = ConfigValidator(
            app_settings,
            docker=make_docker(),
            git=make_git(),
            filesystem=filesystem,
            registry=make_registry(),
            home=configured_home,
        )

        report = await validator.run()

        startup_check = [
            r for r in report.by_section()[CONFIGURATION_FILES]
            if r.name == "Container startup script"
        ][0]
        assert startup_check.passed is True
        assert "executable permissions fixed" in startup_check.message

    @pytest.mark.asyncio
    async def test_missing_docker_and_files_fail(
        self, app_settings, filesystem, configured_home
    ):
        validator = ConfigValidator(
            app_settings,
            docker=make_docker(available=False),
            git=make_git(),
            filesystem=filesystem,
            registry=make_registry(),
            home=configured_home,
        )

        report = await validator.run()

        assert report.passed is False
        failed = {r.name for r in report.failures}
        assert {
            "Docker",
            "Docker Compose",
            "Docker permissions",
            "Docker orchestration configuration",
            "Container image definition",
            "Container startup script",
        } <= failed
        assert "Docker Hub Login" not in failed
        missing = [r for r in report.failures if r.section == CONFIGURATION_FILES]
        assert all(r.suggestion == "Run: devenv init" for r in missing)

    @pytest.mark.asyncio
    async def test_advisory_checks_do_not_fail(
        self, app_settings, filesystem, home_dir, generated_project
    ):
        """Test unconfigured optional items only produce warnings."""
        app_settings.backup.hub_repo = None
        validator = ConfigValidator(
            app_settings,
            docker=make_docker(username=None),
            git=make_git(name=None, email=None),
            filesystem=filesystem,
            registry=make_registry(reachable=False),
            home=home_dir,
        )

        report = await validator.run()

        assert report.passed is True
        warned = {r.name for r in report.warnings}
        assert {
            "Docker Hub Login",
            "Git configuration file",
            "Git user information",
            "Docker Hub repository",
            "SSH configuration directory",
            "Network connectivity (Docker Hub)",
        } <= warned
        assert all(r.suggestion for r in report.warnings if r.section == NETWORK)

    @pytest.mark.asyncio
    async def test_sections_in_order(
        self, app_settings, filesystem, configured_home, generated_project
    ):
        validator = ConfigValidator(
            app_settings,
            docker=make_docker(),
            git=make_git(),
            filesystem=filesystem,
            registry=make_registry(),
            home=configured_home,
        )

        report = await validator.run()

        sections = list(report.by_section())
        assert sections[0] == SYSTEM_REQUIREMENTS
        assert sections[1] == HOST_DIRECTORIES
        assert sections[-1] == NETWORK
        created = [
            r for r in report.by_section()[HOST_DIRECTORIES]
            if r.message.startswith("Created")
        ]
        assert created
