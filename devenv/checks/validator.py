"""
Configuration validation.

Runs the pre-flight checks for the development environment and collects
them into a report grouped by section. Checks marked ``required`` decide
whether the environment can be started; the rest are advisory.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..config.settings import AppSettings
from ..tools.docker import DockerTool
from ..tools.filesystem import HostFilesystemTool
from ..tools.git import GitTool
from ..tools.registry import RegistryTool
from .host import HostCheckStatus, check_host_deps

logger = logging.getLogger(__name__)

SYSTEM_REQUIREMENTS = "System Requirements"
HOST_DIRECTORIES = "Host Dependency Directories"
GIT_CONFIGURATION = "Git Configuration"
VERSION_VALIDATION = "Version Validation"
HUB_CONFIGURATION = "Docker Hub Configuration"
CONFIGURATION_FILES = "Configuration Files"
DISK_SPACE = "Disk Space"
PERMISSIONS = "Permissions"
NETWORK = "Network Connectivity"

SECTIONS = [
    SYSTEM_REQUIREMENTS,
    HOST_DIRECTORIES,
    GIT_CONFIGURATION,
    VERSION_VALIDATION,
    HUB_CONFIGURATION,
    CONFIGURATION_FILES,
    DISK_SPACE,
    PERMISSIONS,
    NETWORK,
]

RECOMMENDATIONS = [
    "Allocate at least 4GB memory in Docker Desktop settings",
    "Enable file sharing optimization in Docker Desktop",
    "Configure Docker Hub backup for data security",
    "Set up scheduled backup tasks",
    "Use SSD storage for better performance",
]


class CheckResult(BaseModel):
    """Outcome of a single validation check."""

    section: str
    name: str
    passed: bool
    message: str = ""
    suggestion: Optional[str] = None
    required: bool = True


class ValidationReport(BaseModel):
    """All check results of one validation run."""

    results: List[CheckResult] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=lambda: list(RECOMMENDATIONS))

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results if r.required)

    @property
    def failures(self) -> List[CheckResult]:
        return [r for r in self.results if r.required and not r.passed]

    @property
    def warnings(self) -> List[CheckResult]:
        return [r for r in self.results if not r.required and not r.passed]

    def by_section(self) -> Dict[str, List[CheckResult]]:
        grouped: Dict[str, List[CheckResult]] = {}
        for section in SECTIONS:
            entries = [r for r in self.results if r.section == section]
            if entries:
                grouped[section] = entries
        return grouped


class ConfigValidator:
    """Runs every configuration check against the given tools."""

    def __init__(
        self,
        settings: AppSettings,
        docker: DockerTool,
        git: GitTool,
        filesystem: HostFilesystemTool,
        registry: RegistryTool,
        home: Optional[Path] = None,
    ):
        self.settings = settings
        self.docker = docker
        self.git = git
        self.filesystem = filesystem
        self.registry = registry
        self.home = home or Path.home()
        self._results: List[CheckResult] = []

    def _record(
        self,
        section: str,
        name: str,
        passed: bool,
        message: str = "",
        suggestion: Optional[str] = None,
        required: bool = True,
    ) -> CheckResult:
        result = CheckResult(
            section=section,
            name=name,
            passed=passed,
            message=message,
            suggestion=None if passed else suggestion,
            required=required,
        )
        self._results.append(result)
        if not passed:
            logger.debug(
                "Validation check failed",
                extra={"section": section, "check": name, "required": required},
            )
        return result

    async def run(self) -> ValidationReport:
        """Run all sections in order."""
        self._results = []

        await self._check_system_requirements()
        await self._check_host_directories()
        await self._check_git_configuration()
        await self._check_versions()
        self._check_hub_configuration()
        await self._check_configuration_files()
        await self._check_disk_space()
        await self._check_permissions()
        await self._check_network()

        report = ValidationReport(results=list(self._results))
        logger.info(
            "Configuration validation finished",
            extra={
                "passed": report.passed,
                "failures": len(report.failures),
                "warnings": len(report.warnings),
            },
        )
        return report

    async def _check_system_requirements(self) -> None:
        version = self.docker.docker_version
        self._record(
            SYSTEM_REQUIREMENTS,
            "Docker",
            version is not None,
            version or "Docker is not installed",
            "Please install Docker Desktop",
        )

        compose = self.docker.compose_command
        self._record(
            SYSTEM_REQUIREMENTS,
            "Docker Compose",
            compose is not None,
            " ".join(compose) if compose else "Docker Compose is not installed",
            "Docker Desktop usually includes this tool",
        )

        info = await self.docker.execute("info", {})
        username = info.output.get("username") if info.success else None
        self._record(
            SYSTEM_REQUIREMENTS,
            "Docker Hub Login",
            bool(username),
            f"Logged in as {username}" if username else "Not logged in to Docker Hub",
            "Please run: docker login",
            required=False,
        )

    async def _check_host_directories(self) -> None:
        report = await check_host_deps(self.filesystem, home=self.home)

        for entry in report.entries:
            if entry.status is HostCheckStatus.CREATED:
                self._record(
                    HOST_DIRECTORIES, entry.description, True, f"Created: {entry.path}"
                )
            elif entry.status is HostCheckStatus.EXISTS:
                self._record(HOST_DIRECTORIES, entry.description, True, entry.path)
            elif entry.status is HostCheckStatus.MISSING:
                self._record(
                    HOST_DIRECTORIES,
                    entry.description,
                    False,
                    f"{entry.description} does not exist: {entry.path}",
                    "Configure it on the host before starting the environment",
                    required=False,
                )
            else:
                self._record(
                    HOST_DIRECTORIES,
                    entry.description,
                    False,
                    entry.message,
                    f"Create the directory manually: mkdir -p {entry.path}",
                )

    async def _check_git_configuration(self) -> None:
        gitconfig = self.home / ".gitconfig"
        self._record(
            GIT_CONFIGURATION,
            "Git configuration file",
            gitconfig.is_file(),
            (
                str(gitconfig)
                if gitconfig.is_file()
                else "Git configuration file does not exist"
            ),
            "Please configure Git first",
            required=False,
        )

        name = await self.git.execute("get_config", {"key": "user.name"})
        email = await self.git.execute("get_config", {"key": "user.email"})
        user_name = name.output.get("value") if name.success else None
        user_email = email.output.get("value") if email.success else None

        configured = bool(user_name and user_email)
        self._record(
            GIT_CONFIGURATION,
            "Git user information",
            configured,
            f"Username: {user_name}, Email: {user_email}"
            if configured
            else "Git user information not fully configured",
            'git config --global user.name "Your Name" && '
            'git config --global user.email "your.email@example.com"',
            required=False,
        )

    async def _check_versions(self) -> None:
        toolchain = self.settings.toolchain

        go = await self.registry.execute(
            "probe_url", {"url": toolchain.go_download_url, "method": "HEAD"}
        )
        self._record(
            VERSION_VALIDATION,
            f"Go {toolchain.go_version} download link",
            go.success and bool(go.output.get("reachable")),
            toolchain.go_download_url,
            "Check the latest version at https://go.dev/dl/",
            required=False,
        )

        assistant = await self.registry.execute(
            "probe_url", {"url": toolchain.assistant_install_url, "method": "HEAD"}
        )
        self._record(
            VERSION_VALIDATION,
            "Claude Code installation script",
            assistant.success and bool(assistant.output.get("reachable")),
            toolchain.assistant_install_url,
            "Alternative: npm install -g @anthropic-ai/claude-code",
            required=False,
        )

    def _check_hub_configuration(self) -> None:
        repo = self.settings.backup.hub_repo
        self._record(
            HUB_CONFIGURATION,
            "Docker Hub repository",
            self.settings.backup.is_configured,
            (
                f"Repository configured: {repo}"
                if repo
                else "Docker Hub repository not configured"
            ),
            "Run: devenv setup-hub",
            required=False,
        )

    async def _check_configuration_files(self) -> None:
        env = self.settings.environment
        files = [
            (env.compose_file, "Docker orchestration configuration", False),
            (env.dockerfile, "Container image definition", False),
            (env.startup_script, "Container startup script", True),
        ]

        for name, description, executable in files:
            path = env.project_dir / name
            info = await self.filesystem.execute("get_info", {"path": str(path)})

            if not (info.success and info.output.get("is_file")):
                self._record(
                    CONFIGURATION_FILES,
                    description,
                    False,
                    f"{description} missing: {name}",
                    "Run: devenv init",
                )
                continue

            message = name
            if executable and not info.output.get("executable"):
                fixed = await self.filesystem.execute(
                    "make_executable", {"path": str(path)}
                )
                if not fixed.success:
                    self._record(
                        CONFIGURATION_FILES,
                        description,
                        False,
                        f"{name} is not executable",
                        f"chmod +x {name}",
                    )
                    continue
                message = f"{name} (executable permissions fixed)"

            self._record(CONFIGURATION_FILES, description, True, message)

    async def _check_disk_space(self) -> None:
        required_gb = self.settings.validation.required_disk_gb
        usage = await self.filesystem.execute(
            "disk_usage", {"path": str(self.settings.environment.project_dir)}
        )

        if not usage.success:
            self._record(
                DISK_SPACE,
                "Available disk space",
                False,
                usage.error or "Unable to read disk usage",
                required=False,
            )
            return

        free_gb = usage.output["free_gb"]
        self._record(
            DISK_SPACE,
            "Available disk space",
            free_gb >= required_gb,
            f"{free_gb}GB available",
            f"Free up space, at least {required_gb}GB is recommended",
            required=False,
        )

    async def _check_permissions(self) -> None:
        result = await self.docker.execute("ps", {})
        self._record(
            PERMISSIONS,
            "Docker permissions",
            result.success,
            (
                "Docker permissions normal"
                if result.success
                else (result.error or "").strip()
            ),
            "Please ensure Docker Desktop is running",
        )

    async def _check_network(self) -> None:
        for label, url in self.settings.validation.connectivity_urls.items():
            result = await self.registry.execute(
                "probe_url", {"url": url, "method": "GET"}
            )
            reachable = result.success and bool(result.output.get("reachable"))
            self._record(
                NETWORK,
                f"Network connectivity ({label})",
                reachable,
                url,
                "Check network connection",
                required=False,
            )
