"""
Git tool for the host's global git configuration.

The environment shares the host ``~/.gitconfig`` into the container, so the
manager needs to read the configured identity and, when fixing a fresh
machine, write a placeholder one.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional

from .base import Tool, ToolConfig, ToolError, ToolSchema, ValidationResult

CONFIG_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9-]*(\.[A-Za-z0-9-]+)+$")


class GitTool(Tool):
    """
    Git tool for global configuration values.

    Provides functionality for:
    - Reading a global config value (``git config --global <key>``)
    - Writing a global config value
    """

    def __init__(self, config: ToolConfig):
        super().__init__(config)
        self._git_available = False
        self._git_version: Optional[str] = None

    async def get_schema(self) -> ToolSchema:
        """Return the Git tool schema."""
        return ToolSchema(
            name="git",
            description="Git global configuration tool",
            version=self.config.version,
            actions={
                "get_config": {
                    "description": "Read a global git config value",
                    "parameters": {"key": {"type": "string", "required": True}},
                },
                "set_config": {
                    "description": "Write a global git config value",
                    "parameters": {
                        "key": {"type": "string", "required": True},
                        "value": {"type": "string", "required": True},
                    },
                },
            },
            required_permissions=["filesystem"],
            dependencies=["git"],
        )

    async def _create_client(self) -> Any:
        """Create Git client (validate Git availability)."""
        result = await self._run_command(["git", "--version"])
        if result["returncode"] != 0:
            raise ToolError("Git is not available")

        self._git_version = result["stdout"].strip()
        self._git_available = True

        return {"git_available": True, "version": self._git_version}

    async def _create_validator(self) -> Any:
        """Create parameter validator."""

        class GitValidator:
            def validate(self, action: str, params: Dict[str, Any]) -> ValidationResult:
                errors = []

                key = params.get("key") or ""
                if not CONFIG_KEY_PATTERN.match(key):
                    errors.append(f"Invalid git config key: {key!r}")

                if action == "set_config" and not params.get("value"):
                    errors.append("value is required for set_config")

                return ValidationResult(
                    valid=len(errors) == 0,
                    errors=errors,
                    normalized_params=params.copy(),
                )

        return GitValidator()

    async def _execute_action(
        self, action: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Execute Git action."""
        if not self._git_available:
            raise ToolError("Git is not available")

        if action == "get_config":
            return await self._get_config(params)
        elif action == "set_config":
            return await self._set_config(params)
        else:
            raise ToolError(f"Unknown action: {action}")

    async def _get_config(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Read a value; an unset key is reported, not failed."""
        result = await self._run_command(["git", "config", "--global", params["key"]])

        value = result["stdout"].strip() if result["returncode"] == 0 else ""

        return {
            "key": params["key"],
            "value": value or None,
            "is_set": bool(value),
            "success": True,
        }

    async def _set_config(self, params: Dict[str, Any]) -> Dict[str, Any]:
        cmd = ["git", "config", "--global", params["key"], params["value"]]

        result = await self._run_command(cmd)

        return {
            "key": params["key"],
            "value": params["value"],
            "success": result["returncode"] == 0,
            "error": result["stderr"] if result["returncode"] != 0 else None,
        }

    async def _run_command(self, cmd: List[str]) -> Dict[str, Any]:
        """Run a command asynchronously."""
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

    @property
    def git_version(self) -> Optional[str]:
        return self._git_version

    async def _get_supported_actions(self) -> List[str]:
        """Get list of supported actions."""
        return ["get_config", "set_config"]
