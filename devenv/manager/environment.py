"""
Development environment manager.

Each public coroutine is one CLI operation: a flat sequence of tool
invocations (docker, compose, git, filesystem, registry). Operations never
raise; they return a mapping with a ``success`` flag and either the
operation details or an ``error`` message.
"""

import logging
import re
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..checks.host import HostCheckReport, check_host_deps
from ..checks.validator import ConfigValidator
from ..config.settings import AppSettings, get_settings
from ..config.store import ConfigurationError, save_hub_repo, validate_hub_repo
from ..logging_utils import (
    LogManager,
    OperationCompleted,
    OperationStarted,
    ProgressTracker,
    StepCompleted,
    StepStarted,
)
from ..templates import generate_project_files, render_compose
from ..tools.base import ToolConfig, ToolError, ToolResult
from ..tools.docker import DockerTool
from ..tools.filesystem import HostFilesystemTool
from ..tools.git import GitTool
from ..tools.registry import RegistryTool

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
BACKUP_TAG_PREFIX = "backup-"
TIMESTAMP_PATTERN = re.compile(r"\d{8}_\d{6}")

DEFAULT_GIT_NAME = "Developer"
DEFAULT_GIT_EMAIL = "dev@example.com"

BACKUP_STEPS = 8


class OperationError(Exception):
    """Raised when a step of an operation fails."""


def backup_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)


def backup_tag(timestamp: str) -> str:
    return f"{BACKUP_TAG_PREFIX}{timestamp}"


def archive_name(timestamp: str) -> str:
    return f"workspace-{timestamp}.tar.gz"


def archive_name_for_tag(tag: str) -> Optional[str]:
    """Workspace archive that belongs to an image tag, if the tag is timestamped."""
    match = TIMESTAMP_PATTERN.search(tag)
    if not match:
        return None
    return archive_name(match.group(0))


def stale_backup_tags(images: List[Dict[str, Any]], keep: int) -> List[str]:
    """Tags of local backup images beyond the newest ``keep``."""
    tags = sorted(
        {
            image["tag"]
            for image in images
            if str(image.get("tag", "")).startswith(BACKUP_TAG_PREFIX)
        },
        reverse=True,
    )
    return tags[keep:]


class EnvironmentManager:
    """
    Drives the development container through its lifecycle.

    Tools are created from the settings unless given explicitly. Call
    ``initialize`` once before running operations and ``cleanup`` when done.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        docker: Optional[DockerTool] = None,
        git: Optional[GitTool] = None,
        filesystem: Optional[HostFilesystemTool] = None,
        registry: Optional[RegistryTool] = None,
        log_manager: Optional[LogManager] = None,
        progress: Optional[ProgressTracker] = None,
        home: Optional[Path] = None,
    ):
        self.settings = settings or get_settings()
        self.docker = docker or DockerTool(ToolConfig(name="docker"))
        self.git = git or GitTool(ToolConfig(name="git"))
        self.filesystem = filesystem or HostFilesystemTool(
            ToolConfig(name="filesystem")
        )
        self.registry = registry or RegistryTool(
            ToolConfig(
                name="registry",
                environment={
                    "api_url": self.settings.backup.registry_api_url,
                    "http_timeout": self.settings.backup.registry_timeout,
                },
            )
        )
        self.log_manager = log_manager or LogManager()
        self.progress = progress
        self.home = home

        self.correlation_id = str(uuid.uuid4())
        self._operation_id: Optional[str] = None
        self._unavailable: Dict[str, str] = {}

    async def initialize(self) -> None:
        """Initialize the tools; a missing docker or git is recorded, not raised."""
        for name, tool in [
            ("docker", self.docker),
            ("git", self.git),
            ("filesystem", self.filesystem),
            ("registry", self.registry),
        ]:
            try:
                await tool.initialize()
            except ToolError as e:
                self._unavailable[name] = str(e)
                logger.warning(
                    "Tool unavailable",
                    extra={"tool_name": name, "error_message": str(e)},
                )

    async def cleanup(self) -> None:
        await self.registry.cleanup()

    # Operation plumbing

    async def _run_operation(
        self, name: str, func: Callable[..., Awaitable[Dict[str, Any]]], *args, **kwargs
    ) -> Dict[str, Any]:
        start_time = datetime.now()
        self._operation_id = f"{name}_{start_time.strftime(BACKUP_TIMESTAMP_FORMAT)}"

        await self.log_manager.emit_event(
            OperationStarted(
                correlation_id=self.correlation_id,
                operation_id=self._operation_id,
                operation=name,
            )
        )

        try:
            result = await func(*args, **kwargs)
        except (OperationError, ToolError, ConfigurationError) as e:
            logger.error(
                "Operation failed",
                extra={
                    "operation": name,
                    "operation_id": self._operation_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            result = {"success": False, "error": str(e)}

        duration = (datetime.now() - start_time).total_seconds()
        await self.log_manager.emit_event(
            OperationCompleted(
                correlation_id=self.correlation_id,
                operation_id=self._operation_id,
                operation=name,
                success=bool(result.get("success")),
                duration_seconds=duration,
                error_message=result.get("error"),
            )
        )
        return result

    @asynccontextmanager
    async def _step(self, step_name: str):
        """Emit step events around a block and show it on the progress display."""
        start_time = datetime.now()
        await self.log_manager.emit_event(
            StepStarted(
                correlation_id=self.correlation_id,
                operation_id=self._operation_id,
                step_name=step_name,
            )
        )

        error: Optional[BaseException] = None
        try:
            yield
        except Exception as e:
            error = e
            raise
        finally:
            if self.progress is not None:
                self.progress.record_step(step_name, error is None)
            await self.log_manager.emit_event(
                StepCompleted(
                    correlation_id=self.correlation_id,
                    operation_id=self._operation_id,
                    step_name=step_name,
                    success=error is None,
                    duration_seconds=(datetime.now() - start_time).total_seconds(),
                    error_message=str(error) if error else None,
                )
            )

    def _require(self, name: str) -> None:
        if name in self._unavailable:
            raise OperationError(self._unavailable[name])

    def _require_hub_repo(self) -> str:
        backup = self.settings.backup
        if not backup.is_configured:
            raise OperationError(
                "Docker Hub repository not configured. Please run: devenv setup-hub"
            )
        return str(backup.hub_repo)

    @staticmethod
    def _check(result: ToolResult, message: str) -> Dict[str, Any]:
        if not result.success:
            detail = (result.error or "").strip()
            raise OperationError(f"{message}: {detail}" if detail else message)
        return result.output

    def _compose(self, compose_file: Optional[Path] = None) -> Dict[str, Any]:
        path = compose_file or self.settings.environment.compose_path
        return {"compose_file": str(path)}

    # Operations

    async def start(
        self, on_host_check: Optional[Callable[[HostCheckReport], None]] = None
    ) -> Dict[str, Any]:
        """Run the host check, then bring the environment up.

        ``on_host_check`` receives the host report before compose runs.
        """
        return await self._run_operation("start", self._start, on_host_check)

    async def _start(
        self, on_host_check: Optional[Callable[[HostCheckReport], None]]
    ) -> Dict[str, Any]:
        env = self.settings.environment
        report = await check_host_deps(self.filesystem, home=self.home)
        if on_host_check is not None:
            on_host_check(report)

        if not env.compose_path.is_file():
            raise OperationError(
                f"{env.compose_file} not found in {env.project_dir}. "
                "Please run: devenv init"
            )
        self._require("docker")

        self._check(
            await self.filesystem.execute(
                "ensure_directory", {"path": str(env.workspace_path)}
            ),
            "Failed to create workspace directory",
        )
        self._check(
            await self.docker.execute("compose_up", self._compose()),
            "Failed to start development environment",
        )

        return {"success": True, "host_check": report, "editor_url": env.editor_url}

    async def stop(self) -> Dict[str, Any]:
        return await self._run_operation(
            "stop", self._compose_lifecycle, "compose_down", "stop"
        )

    async def restart(self) -> Dict[str, Any]:
        return await self._run_operation(
            "restart", self._compose_lifecycle, "compose_restart", "restart"
        )

    async def _compose_lifecycle(self, action: str, verb: str) -> Dict[str, Any]:
        self._require("docker")
        output = self._check(
            await self.docker.execute(action, self._compose()),
            f"Failed to {verb} development environment",
        )
        return {"success": True, "output": output.get("output", "")}

    async def backup(self) -> Dict[str, Any]:
        return await self._run_operation("backup", self._backup)

    async def _backup(self) -> Dict[str, Any]:
        repo = self._require_hub_repo()
        self._require("docker")

        env = self.settings.environment
        backup_settings = self.settings.backup

        timestamp = backup_timestamp()
        image = f"{repo}:{backup_tag(timestamp)}"
        latest = f"{repo}:{backup_settings.latest_tag}"
        archive = backup_settings.local_backup_dir / archive_name(timestamp)

        if self.progress is not None:
            self.progress.begin(
                BACKUP_STEPS, "💾 Backing up environment"
            )

        try:
            error: Optional[OperationError] = None
            try:
                async with self._step("Stopping container for consistent backup"):
                    self._check(
                        await self.docker.execute("compose_stop", self._compose()),
                        "Failed to stop container",
                    )
                async with self._step("Creating image snapshot"):
                    self._check(
                        await self.docker.execute(
                            "commit_container",
                            {"container": env.container_name, "image": image},
                        ),
                        "Failed to create image snapshot",
                    )
                async with self._step(f"Tagging {backup_settings.latest_tag}"):
                    self._check(
                        await self.docker.execute(
                            "tag_image", {"source": image, "target": latest}
                        ),
                        "Failed to tag backup image",
                    )
                async with self._step(f"Pushing {image}"):
                    self._check(
                        await self.docker.execute("push_image", {"image": image}),
                        "Failed to push backup image",
                    )
                async with self._step(f"Pushing {latest}"):
                    self._check(
                        await self.docker.execute("push_image", {"image": latest}),
                        "Failed to push backup image",
                    )
                async with self._step("Backing up workspace locally"):
                    self._check(
                        await self.filesystem.execute(
                            "archive_directory",
                            {
                                "root": str(env.project_dir),
                                "source": env.workspace_dir,
                                "destination": str(archive),
                                "excludes": backup_settings.workspace_excludes,
                            },
                        ),
                        "Failed to archive workspace",
                    )
            except OperationError as e:
                error = e

            # The container is started again whatever happened above
            async with self._step("Restarting container"):
                started = await self.docker.execute("compose_start", self._compose())
                if error is None:
                    self._check(started, "Failed to restart container")

            if error is not None:
                raise error

            async with self._step("Cleaning up old backup images"):
                removed = await self._cleanup_old_images(repo)
        finally:
            if self.progress is not None:
                self.progress.finish()

        logger.info(
            "Backup completed",
            extra={"image": image, "archive": str(archive), "removed_images": removed},
        )

        return {
            "success": True,
            "image": image,
            "latest": latest,
            "archive": str(archive),
            "removed_images": removed,
        }

    async def _cleanup_old_images(self, repo: str) -> List[str]:
        """Remove local backup images beyond the newest ``keep_local_images``."""
        listed = await self.docker.execute("list_images", {"repository": repo})
        if not listed.success:
            logger.warning(
                "Could not list local backup images",
                extra={"error_message": listed.error},
            )
            return []

        removed = []
        keep = self.settings.backup.keep_local_images
        for tag in stale_backup_tags(listed.output.get("images", []), keep):
            result = await self.docker.execute(
                "remove_image", {"image": f"{repo}:{tag}"}
            )
            if result.success:
                removed.append(tag)
            else:
                logger.warning(
                    "Could not remove old backup image",
                    extra={"image": f"{repo}:{tag}", "error_message": result.error},
                )
        return removed

    async def available_restore_tags(self) -> Dict[str, Any]:
        return await self._run_operation("available_restore_tags", self._restore_tags)

    async def _restore_tags(self) -> Dict[str, Any]:
        repo = self._require_hub_repo()
        output = self._check(
            await self.registry.execute("list_tags", {"repository": repo}),
            "Unable to fetch Docker Hub tags",
        )
        limit = self.settings.backup.restore_tag_limit
        return {"success": True, "repository": repo, "tags": output["tags"][:limit]}

    async def restore(self, tag: Optional[str] = None) -> Dict[str, Any]:
        return await self._run_operation("restore", self._restore, tag)

    async def _restore(self, tag: Optional[str]) -> Dict[str, Any]:
        repo = self._require_hub_repo()
        self._require("docker")

        env = self.settings.environment
        backup_settings = self.settings.backup
        tag = (tag or "").strip() or backup_settings.latest_tag
        image = f"{repo}:{tag}"

        # Nothing may be running yet (fresh machine without a compose file)
        stopped = await self.docker.execute("compose_down", self._compose())
        if not stopped.success:
            logger.warning(
                "Could not stop current environment, continuing restore",
                extra={"image": image, "error_message": stopped.error},
            )
        self._check(
            await self.docker.execute("pull_image", {"image": image}),
            "Failed to pull backup image",
        )

        backup_compose = env.backup_compose_path
        self._check(
            await self.filesystem.execute(
                "write_file",
                {
                    "path": str(backup_compose),
                    "content": render_compose(self.settings, image=image),
                },
            ),
            "Failed to write temporary compose file",
        )

        archive: Optional[Path] = None
        try:
            self._check(
                await self.docker.execute("compose_up", self._compose(backup_compose)),
                "Failed to start environment from backup",
            )

            name = archive_name_for_tag(tag)
            candidate = backup_settings.local_backup_dir / name if name else None
            if candidate is not None and candidate.is_file():
                self._check(
                    await self.filesystem.execute(
                        "extract_archive",
                        {
                            "archive": str(candidate),
                            "destination": str(env.project_dir),
                        },
                    ),
                    "Failed to restore workspace",
                )
                archive = candidate
        finally:
            await self.filesystem.execute("remove_file", {"path": str(backup_compose)})

        return {
            "success": True,
            "image": image,
            "workspace_restored": archive is not None,
            "archive": str(archive) if archive else None,
        }

    async def list_backups(self) -> Dict[str, Any]:
        return await self._run_operation("list_backups", self._list_backups)

    async def _list_backups(self) -> Dict[str, Any]:
        repo = self._require_hub_repo()
        backup_dir = self.settings.backup.local_backup_dir

        remote = await self.registry.execute(
            "list_tags", {"repository": repo, "contains": "backup"}
        )
        local = self._check(
            await self.filesystem.execute("list_archives", {"path": str(backup_dir)}),
            "Unable to list local backups",
        )

        return {
            "success": True,
            "repository": repo,
            "tags": remote.output.get("tags", []) if remote.success else [],
            "hub_error": None if remote.success else remote.error,
            "local_dir": str(backup_dir),
            "local_dir_exists": local["exists"],
            "archives": local["archives"],
        }

    async def setup_hub(
        self, username: str, repo_name: str, login: bool = True
    ) -> Dict[str, Any]:
        return await self._run_operation(
            "setup_hub", self._setup_hub, username, repo_name, login
        )

    async def _setup_hub(
        self, username: str, repo_name: str, login: bool
    ) -> Dict[str, Any]:
        repo = validate_hub_repo(f"{username.strip()}/{repo_name.strip()}")
        save_hub_repo(self.settings.env_file_path, repo)
        self.settings.backup.hub_repo = repo

        logger.info("Docker Hub repository configured", extra={"repository": repo})

        logged_in = None
        if login:
            self._require("docker")
            result = await self.docker.execute("login", {"username": username.strip()})
            logged_in = result.success

        return {
            "success": True,
            "repository": repo,
            "env_file": str(self.settings.env_file_path),
            "logged_in": logged_in,
        }

    async def shell(self) -> Dict[str, Any]:
        return await self._run_operation("shell", self._shell)

    async def _shell(self) -> Dict[str, Any]:
        self._require("docker")
        env = self.settings.environment
        self._check(
            await self.docker.execute(
                "exec_shell", {"container": env.container_name, "shell": env.shell}
            ),
            f"Shell in {env.container_name} exited with an error",
        )
        return {"success": True, "container": env.container_name}

    async def logs(
        self, follow: bool = True, tail: Optional[int] = None
    ) -> Dict[str, Any]:
        return await self._run_operation("logs", self._logs, follow, tail)

    async def _logs(self, follow: bool, tail: Optional[int]) -> Dict[str, Any]:
        self._require("docker")
        params = self._compose()
        params.update({"follow": follow, "tail": tail})
        output = self._check(
            await self.docker.execute("compose_logs", params), "Failed to show logs"
        )
        return {
            "success": True,
            "logs": output.get("logs"),
            "streamed": output.get("streamed"),
        }

    async def status(self) -> Dict[str, Any]:
        return await self._run_operation("status", self._status)

    async def _status(self) -> Dict[str, Any]:
        self._require("docker")
        services = self._check(
            await self.docker.execute("compose_ps", self._compose()),
            "Failed to read environment status",
        )
        usage = self._check(
            await self.docker.execute("system_df", {}),
            "Failed to read Docker disk usage",
        )
        return {
            "success": True,
            "services": services.get("output", ""),
            "disk_usage": usage.get("output", ""),
        }

    async def clean(self) -> Dict[str, Any]:
        return await self._run_operation("clean", self._clean)

    async def _clean(self) -> Dict[str, Any]:
        self._require("docker")
        system = self._check(
            await self.docker.execute("system_prune", {}), "Failed to prune Docker data"
        )
        volumes = self._check(
            await self.docker.execute("volume_prune", {}), "Failed to prune volumes"
        )
        return {
            "success": True,
            "system": system.get("output", ""),
            "volumes": volumes.get("output", ""),
        }

    async def check_deps(self) -> Dict[str, Any]:
        return await self._run_operation("check_deps", self._check_deps)

    async def _check_deps(self) -> Dict[str, Any]:
        report = await check_host_deps(self.filesystem, home=self.home)
        return {"success": report.success, "report": report}

    async def generate(self, force: bool = False) -> Dict[str, Any]:
        return await self._run_operation("generate", self._generate, force)

    async def _generate(self, force: bool) -> Dict[str, Any]:
        project_dir = self.settings.environment.project_dir
        written, skipped = [], []

        for generated in generate_project_files(self.settings):
            output = self._check(
                await self.filesystem.execute(
                    "write_file",
                    {
                        "path": str(generated.path(project_dir)),
                        "content": generated.content,
                        "mode": generated.mode,
                        "overwrite": force,
                    },
                ),
                f"Failed to write {generated.name}",
            )
            (written if output.get("written") else skipped).append(generated.name)

        return {"success": True, "written": written, "skipped": skipped}

    async def fix(self) -> Dict[str, Any]:
        return await self._run_operation("fix", self._fix)

    async def _fix(self) -> Dict[str, Any]:
        env = self.settings.environment
        actions: List[str] = []
        warnings: List[str] = []

        for generated in generate_project_files(self.settings):
            path = generated.path(env.project_dir)
            is_compose = generated.name == env.compose_file
            output = self._check(
                await self.filesystem.execute(
                    "write_file",
                    {
                        "path": str(path),
                        "content": generated.content,
                        "mode": generated.mode,
                        "overwrite": is_compose,
                        "backup": is_compose,
                    },
                ),
                f"Failed to write {generated.name}",
            )
            if output.get("backup_path"):
                backup_name = Path(output["backup_path"]).name
                actions.append(
                    f"Updated {generated.name} (backup saved as {backup_name})"
                )
            elif output.get("written"):
                actions.append(f"Created {generated.name}")
            elif generated.mode == "755":
                chmod = await self.filesystem.execute(
                    "make_executable", {"path": str(path)}
                )
                if chmod.success and chmod.output.get("changed"):
                    actions.append(f"Fixed executable permissions of {generated.name}")

        report = await check_host_deps(self.filesystem, home=self.home)
        for entry in report.created:
            actions.append(f"Created directory {entry.path}")
        for entry in report.warnings:
            warnings.append(entry.message)

        workspace = self._check(
            await self.filesystem.execute(
                "ensure_directory", {"path": str(env.workspace_path)}
            ),
            "Failed to create workspace directory",
        )
        if workspace.get("created"):
            actions.append(f"Created workspace directory {env.workspace_path}")

        await self._fix_git_identity(actions, warnings)
        compose_valid, compose_errors = await self._fix_docker(actions, warnings)

        return {
            "success": True,
            "actions": actions,
            "warnings": warnings,
            "compose_valid": compose_valid,
            "compose_errors": compose_errors,
        }

    async def _fix_git_identity(self, actions: List[str], warnings: List[str]) -> None:
        if "git" in self._unavailable:
            warnings.append(f"Git is not available: {self._unavailable['git']}")
            return

        name = await self.git.execute("get_config", {"key": "user.name"})
        if name.success and name.output.get("is_set"):
            return

        identity = [("user.name", DEFAULT_GIT_NAME), ("user.email", DEFAULT_GIT_EMAIL)]
        for key, value in identity:
            self._check(
                await self.git.execute("set_config", {"key": key, "value": value}),
                f"Failed to set git {key}",
            )
        actions.append("Set default Git configuration")
        warnings.append(
            "Please update with real Git user information: "
            'git config --global user.name "Your Real Name" && '
            'git config --global user.email "your.real.email@example.com"'
        )

    async def _fix_docker(self, actions: List[str], warnings: List[str]):
        if "docker" in self._unavailable:
            warnings.append(f"Docker is not available: {self._unavailable['docker']}")
            return False, self._unavailable["docker"]

        running = await self.docker.execute("ps", {})
        if not running.success:
            launched = await self.docker.execute("start_desktop", {})
            if launched.success:
                actions.append("Started Docker Desktop")
                warnings.append(
                    "Please wait for Docker Desktop to start completely "
                    "(check with: docker ps)"
                )
            else:
                warnings.append("Docker is not running, please start Docker Desktop")

        info = await self.docker.execute("info", {})
        if not (info.success and info.output.get("username")):
            warnings.append(
                "Docker Hub login recommended for backup functionality: docker login"
            )

        config = await self.docker.execute("compose_config", self._compose())
        if not config.success:
            return False, config.error or ""
        valid = bool(config.output.get("valid"))
        errors = config.output.get("errors", "")
        if not valid:
            warnings.append("Docker Compose configuration has issues")
        return valid, errors

    async def validate(self) -> Dict[str, Any]:
        return await self._run_operation("validate", self._validate)

    async def _validate(self) -> Dict[str, Any]:
        validator = ConfigValidator(
            self.settings,
            docker=self.docker,
            git=self.git,
            filesystem=self.filesystem,
            registry=self.registry,
            home=self.home,
        )
        report = await validator.run()
        return {"success": report.passed, "report": report}
