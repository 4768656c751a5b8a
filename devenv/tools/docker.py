"""
Docker tool for container management operations.

This module provides a concrete implementation of the Tool interface for the
Docker CLI and Docker Compose: compose lifecycle of the development service,
image snapshots for backups, registry push/pull and housekeeping.
"""

import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from .base import Tool, ToolConfig, ToolError, ToolSchema, ValidationResult

DEFAULT_COMPOSE_FILE = "docker-compose.yml"

COMPOSE_ACTIONS = [
    "compose_up",
    "compose_down",
    "compose_stop",
    "compose_start",
    "compose_restart",
    "compose_ps",
    "compose_logs",
    "compose_config",
]


class DockerTool(Tool):
    """
    Docker tool for container management operations.

    Provides functionality for:
    - Docker Compose lifecycle (up, down, stop, start, restart, ps, logs, config)
    - Image snapshots (commit, tag, push, pull, list, remove)
    - Interactive sessions (shell, login)
    - Housekeeping (system df, system prune, volume prune)
    """

    def __init__(self, config: ToolConfig):
        super().__init__(config)
        self._docker_available = False
        self._compose_available = False
        self._docker_version: Optional[str] = None
        self._compose_cmd: Optional[List[str]] = None

    async def get_schema(self) -> ToolSchema:
        """Return the Docker tool schema."""
        compose_file = {"type": "string", "default": DEFAULT_COMPOSE_FILE}
        return ToolSchema(
            name="docker",
            description="Docker container management tool",
            version=self.config.version,
            actions={
                "compose_up": {
                    "description": "Start services with Docker Compose",
                    "parameters": {
                        "compose_file": compose_file,
                        "detached": {"type": "boolean", "default": True},
                        "build": {"type": "boolean", "default": False},
                    },
                },
                "compose_down": {
                    "description": "Stop and remove services with Docker Compose",
                    "parameters": {"compose_file": compose_file},
                },
                "compose_stop": {
                    "description": "Stop services without removing them",
                    "parameters": {"compose_file": compose_file},
                },
                "compose_start": {
                    "description": "Start previously stopped services",
                    "parameters": {"compose_file": compose_file},
                },
                "compose_restart": {
                    "description": "Restart services",
                    "parameters": {"compose_file": compose_file},
                },
                "compose_ps": {
                    "description": "List services and their state",
                    "parameters": {"compose_file": compose_file},
                },
                "compose_logs": {
                    "description": "Show service logs",
                    "parameters": {
                        "compose_file": compose_file,
                        "follow": {"type": "boolean", "default": True},
                        "tail": {"type": "integer"},
                    },
                },
                "compose_config": {
                    "description": "Validate a compose file",
                    "parameters": {"compose_file": compose_file},
                },
                "commit_container": {
                    "description": "Commit a container's state to an image",
                    "parameters": {
                        "container": {"type": "string", "required": True},
                        "image": {"type": "string", "required": True},
                    },
                },
                "tag_image": {
                    "description": "Create a tag that refers to an existing image",
                    "parameters": {
                        "source": {"type": "string", "required": True},
                        "target": {"type": "string", "required": True},
                    },
                },
                "push_image": {
                    "description": "Push an image to its registry",
                    "parameters": {"image": {"type": "string", "required": True}},
                },
                "pull_image": {
                    "description": "Pull an image from its registry",
                    "parameters": {
                        "image": {"type": "string", "required": True},
                        "tag": {"type": "string", "default": "latest"},
                    },
                },
                "list_images": {
                    "description": "List local images of a repository",
                    "parameters": {"repository": {"type": "string"}},
                },
                "remove_image": {
                    "description": "Remove a local image",
                    "parameters": {
                        "image": {"type": "string", "required": True},
                        "force": {"type": "boolean", "default": False},
                    },
                },
                "exec_shell": {
                    "description": "Open an interactive shell in a running container",
                    "parameters": {
                        "container": {"type": "string", "required": True},
                        "shell": {"type": "string", "default": "/bin/bash"},
                    },
                },
                "login": {
                    "description": "Log in to Docker Hub",
                    "parameters": {"username": {"type": "string"}},
                },
                "info": {
                    "description": "Show engine information and the logged-in user",
                    "parameters": {},
                },
                "system_df": {
                    "description": "Show Docker disk usage",
                    "parameters": {},
                },
                "system_prune": {
                    "description": "Remove unused Docker data",
                    "parameters": {},
                },
                "volume_prune": {
                    "description": "Remove unused local volumes",
                    "parameters": {},
                },
                "ps": {
                    "description": "List running containers (checks engine access)",
                    "parameters": {},
                },
                "start_desktop": {
                    "description": "Launch Docker Desktop (macOS only)",
                    "parameters": {},
                },
            },
            required_permissions=["docker"],
            dependencies=["docker", "docker-compose"],
        )

    async def _create_client(self) -> Any:
        """Create Docker client (validate Docker availability)."""
        try:
            result = await self._run_command(["docker", "--version"])
            if result["returncode"] != 0:
                raise ToolError("Docker is not available or not running")

            self._docker_version = result["stdout"].strip()
            self._docker_available = True

            # Prefer the compose plugin, fall back to the standalone binary
            compose_result = await self._run_command(["docker", "compose", "version"])
            if compose_result["returncode"] == 0:
                self._compose_available = True
                self._compose_cmd = ["docker", "compose"]
            else:
                compose_result = await self._run_command(
                    ["docker-compose", "--version"]
                )
                if compose_result["returncode"] == 0:
                    self._compose_available = True
                    self._compose_cmd = ["docker-compose"]
                else:
                    self._compose_cmd = None

            return {"docker_available": True, "version": self._docker_version}

        except Exception as e:
            raise ToolError(f"Failed to initialize Docker client: {e}")

    async def _create_validator(self) -> Any:
        """Create parameter validator."""

        class DockerValidator:
            def validate(self, action: str, params: Dict[str, Any]) -> ValidationResult:
                errors = []
                warnings = []
                normalized_params = params.copy()

                if action in COMPOSE_ACTIONS:
                    normalized_params.setdefault("compose_file", DEFAULT_COMPOSE_FILE)

                elif action == "commit_container":
                    if not params.get("container"):
                        errors.append("container is required for commit_container")
                    if not params.get("image"):
                        errors.append("image is required for commit_container")
                    elif ":" not in params["image"].rsplit("/", 1)[-1]:
                        warnings.append(
                            f"Image '{params['image']}' has no tag, 'latest' will be used"
                        )

                elif action == "tag_image":
                    if not params.get("source"):
                        errors.append("source is required for tag_image")
                    if not params.get("target"):
                        errors.append("target is required for tag_image")

                elif action in ["push_image", "pull_image", "remove_image"]:
                    if not params.get("image"):
                        errors.append(f"image is required for {action}")

                elif action == "exec_shell":
                    if not params.get("container"):
                        errors.append("container is required for exec_shell")
                    normalized_params.setdefault("shell", "/bin/bash")

                return ValidationResult(
                    valid=len(errors) == 0,
                    errors=errors,
                    warnings=warnings,
                    normalized_params=normalized_params,
                )

        return DockerValidator()

    async def _execute_action(
        self, action: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Execute Docker action."""
        if not self._docker_available:
            raise ToolError("Docker is not available")

        if action == "compose_up":
            return await self._compose_up(params)
        elif action == "compose_down":
            return await self._compose_simple("down", params)
        elif action == "compose_stop":
            return await self._compose_simple("stop", params)
        elif action == "compose_start":
            return await self._compose_simple("start", params)
        elif action == "compose_restart":
            return await self._compose_simple("restart", params)
        elif action == "compose_ps":
            return await self._compose_simple("ps", params)
        elif action == "compose_logs":
            return await self._compose_logs(params)
        elif action == "compose_config":
            return await self._compose_config(params)
        elif action == "commit_container":
            return await self._commit_container(params)
        elif action == "tag_image":
            return await self._tag_image(params)
        elif action == "push_image":
            return await self._push_image(params)
        elif action == "pull_image":
            return await self._pull_image(params)
        elif action == "list_images":
            return await self._list_images(params)
        elif action == "remove_image":
            return await self._remove_image(params)
        elif action == "exec_shell":
            return await self._exec_shell(params)
        elif action == "login":
            return await self._login(params)
        elif action == "info":
            return await self._info(params)
        elif action == "system_df":
            return await self._simple(["docker", "system", "df"])
        elif action == "system_prune":
            return await self._simple(["docker", "system", "prune", "-f"])
        elif action == "volume_prune":
            return await self._simple(["docker", "volume", "prune", "-f"])
        elif action == "ps":
            return await self._simple(["docker", "ps"])
        elif action == "start_desktop":
            return await self._start_desktop(params)
        else:
            raise ToolError(f"Unknown action: {action}")

    def _compose_base(self, params: Dict[str, Any]) -> List[str]:
        """Build the compose command prefix for a compose file."""
        if not self._compose_available:
            raise ToolError("Docker Compose is not available")
        if not self._compose_cmd:
            raise ToolError("Docker Compose command not available")

        return self._compose_cmd + [
            "-f",
            str(params.get("compose_file", DEFAULT_COMPOSE_FILE)),
        ]

    async def _compose_up(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Start services with Docker Compose."""
        cmd = self._compose_base(params) + ["up"]

        if params.get("detached", True):
            cmd.append("-d")
        if params.get("build"):
            cmd.append("--build")

        result = await self._run_command(cmd)

        return {
            "compose_file": str(params.get("compose_file", DEFAULT_COMPOSE_FILE)),
            "success": result["returncode"] == 0,
            "output": result["stdout"],
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _compose_simple(
        self, subcommand: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Run a compose subcommand that takes no further options."""
        cmd = self._compose_base(params) + [subcommand]

        result = await self._run_command(cmd)

        return {
            "compose_file": str(params.get("compose_file", DEFAULT_COMPOSE_FILE)),
            "command": subcommand,
            "success": result["returncode"] == 0,
            "output": result["stdout"],
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _compose_logs(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Show compose logs, streaming to the terminal when following."""
        cmd = self._compose_base(params) + ["logs"]

        if params.get("tail"):
            cmd.extend(["--tail", str(params["tail"])])

        if params.get("follow", True):
            cmd.append("-f")
            result = await self._run_interactive(cmd)
            return {
                "success": result["returncode"] == 0,
                "returncode": result["returncode"],
                "streamed": True,
            }

        result = await self._run_command(cmd)
        return {
            "success": result["returncode"] == 0,
            "logs": result["stdout"],
            "streamed": False,
        }

    async def _compose_config(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a compose file without starting anything."""
        cmd = self._compose_base(params) + ["config", "--quiet"]

        result = await self._run_command(cmd)

        return {
            "compose_file": str(params.get("compose_file", DEFAULT_COMPOSE_FILE)),
            "valid": result["returncode"] == 0,
            "errors": result["stderr"].strip(),
            "success": True,
        }

    async def _commit_container(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Commit the current state of a container to a new image."""
        cmd = ["docker", "commit", params["container"], params["image"]]

        result = await self._run_command(cmd)

        if result["returncode"] != 0:
            raise ToolError(f"Failed to commit container: {result['stderr']}")

        return {
            "container": params["container"],
            "image": params["image"],
            "image_id": result["stdout"].strip(),
            "success": True,
        }

    async def _tag_image(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Tag an existing image."""
        cmd = ["docker", "tag", params["source"], params["target"]]

        result = await self._run_command(cmd)

        if result["returncode"] != 0:
            raise ToolError(f"Failed to tag image: {result['stderr']}")

        return {"source": params["source"], "target": params["target"], "success": True}

    async def _push_image(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Push an image to its registry."""
        cmd = ["docker", "push", params["image"]]

        result = await self._run_command(cmd)

        if result["returncode"] != 0:
            raise ToolError(f"Failed to push image: {result['stderr']}")

        return {"image": params["image"], "success": True, "output": result["stdout"]}

    async def _pull_image(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Pull a Docker image."""
        image = params["image"]

        # Only add tag if image doesn't already have one
        if ":" not in image.rsplit("/", 1)[-1]:
            image_tag = f"{image}:{params.get('tag', 'latest')}"
        else:
            image_tag = image

        cmd = ["docker", "pull", image_tag]

        result = await self._run_command(cmd)

        if result["returncode"] != 0:
            raise ToolError(f"Failed to pull image: {result['stderr']}")

        return {
            "image": image_tag,
            "success": True,
            "output": result["stdout"],
        }

    async def _list_images(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """List local images, newest first as reported by Docker."""
        cmd = ["docker", "images"]

        if params.get("repository"):
            cmd.append(params["repository"])

        cmd.extend(["--format", "json"])

        result = await self._run_command(cmd)

        images = []
        if result["returncode"] == 0 and result["stdout"]:
            for line in result["stdout"].strip().split("\n"):
                if line:
                    try:
                        image_data = json.loads(line)
                        images.append(
                            {
                                "id": image_data.get("ID", ""),
                                "repository": image_data.get("Repository", ""),
                                "tag": image_data.get("Tag", ""),
                                "created": image_data.get("CreatedAt", ""),
                                "size": image_data.get("Size", ""),
                            }
                        )
                    except json.JSONDecodeError:
                        continue

        return {
            "images": images,
            "success": result["returncode"] == 0,
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _remove_image(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Remove a Docker image."""
        cmd = ["docker", "rmi"]

        if params.get("force"):
            cmd.append("-f")

        cmd.append(params["image"])

        result = await self._run_command(cmd)

        return {
            "image": params["image"],
            "success": result["returncode"] == 0,
            "output": result["stdout"],
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _exec_shell(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Attach an interactive shell to a running container."""
        cmd = ["docker", "exec", "-it", params["container"], params["shell"]]

        result = await self._run_interactive(cmd)

        return {
            "container": params["container"],
            "returncode": result["returncode"],
            "success": result["returncode"] == 0,
        }

    async def _login(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Run an interactive registry login."""
        cmd = ["docker", "login"]

        if params.get("username"):
            cmd.extend(["-u", params["username"]])

        result = await self._run_interactive(cmd)

        return {"returncode": result["returncode"], "success": result["returncode"] == 0}

    async def _info(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Show engine information, extracting the logged-in registry user."""
        result = await self._run_command(["docker", "info"])

        username = None
        for line in result["stdout"].splitlines():
            stripped = line.strip()
            if stripped.startswith("Username:"):
                username = stripped.split(":", 1)[1].strip() or None
                break

        return {
            "success": result["returncode"] == 0,
            "username": username,
            "output": result["stdout"],
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _start_desktop(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Ask macOS to launch Docker Desktop."""
        if sys.platform != "darwin":
            return {
                "launched": False,
                "success": False,
                "error": "Docker Desktop can only be launched automatically on macOS",
            }

        result = await self._run_command(["open", "-a", "Docker"])

        return {
            "launched": result["returncode"] == 0,
            "success": result["returncode"] == 0,
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _simple(self, cmd: List[str]) -> Dict[str, Any]:
        """Run a command whose output is only displayed."""
        result = await self._run_command(cmd)

        return {
            "success": result["returncode"] == 0,
            "output": result["stdout"],
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _run_command(self, cmd: List[str]) -> Dict[str, Any]:
        """Run a command asynchronously, capturing its output."""
        self.logger.debug("Running command", extra={"command": " ".join(cmd)})
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

            stdout, stderr = await process.communicate()

            return {
                "returncode": process.returncode,
                "stdout": stdout.decode("utf-8", errors="replace"),
                "stderr": stderr.decode("utf-8", errors="replace"),
                "command": " ".join(cmd),
            }

        except Exception as e:
            self.logger.error(f"Command execution failed: {e}")
            return {
                "returncode": -1,
                "stdout": "",
                "stderr": str(e),
                "command": " ".join(cmd),
            }

    async def _run_interactive(self, cmd: List[str]) -> Dict[str, Any]:
        """Run a command attached to the current terminal."""
        self.logger.debug("Running interactive command", extra={"command": " ".join(cmd)})
        try:
            process = await asyncio.create_subprocess_exec(*cmd)
            returncode = await process.wait()
            return {"returncode": returncode, "command": " ".join(cmd)}

        except Exception as e:
            self.logger.error(f"Command execution failed: {e}")
            return {"returncode": -1, "stderr": str(e), "command": " ".join(cmd)}

    @property
    def compose_command(self) -> Optional[List[str]]:
        return self._compose_cmd

    @property
    def docker_version(self) -> Optional[str]:
        return self._docker_version

    async def _get_supported_actions(self) -> List[str]:
        """Get list of supported actions."""
        return COMPOSE_ACTIONS + [
            "commit_container",
            "tag_image",
            "push_image",
            "pull_image",
            "list_images",
            "remove_image",
            "exec_shell",
            "login",
            "info",
            "system_df",
            "system_prune",
            "volume_prune",
            "ps",
            "start_desktop",
        ]
