"""
Host filesystem tool for directory, file and archive operations.

This module provides a concrete implementation of the Tool interface for the
host-side filesystem work of the environment manager: dependency cache
directories, generated files, and workspace backup archives.
"""

import asyncio
import os
import shutil
import stat
import tarfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import aiofiles

from .base import Tool, ToolConfig, ToolError, ToolSchema, ValidationResult

PATH_ACTIONS = [
    "ensure_directory",
    "get_info",
    "write_file",
    "remove_file",
    "make_executable",
    "list_archives",
    "disk_usage",
]


class HostFilesystemTool(Tool):
    """
    Host filesystem tool.

    Provides functionality for:
    - Directory operations (ensure, inspect)
    - File operations (write with backup, remove, make executable)
    - Workspace archives (create, extract, list)
    - Free space reporting
    """

    def __init__(self, config: ToolConfig):
        super().__init__(config)

    async def get_schema(self) -> ToolSchema:
        """Return the filesystem tool schema."""
        return ToolSchema(
            name="filesystem",
            description="Host filesystem operations tool",
            version=self.config.version,
            actions={
                "ensure_directory": {
                    "description": "Create a directory if it does not exist",
                    "parameters": {"path": {"type": "string", "required": True}},
                },
                "get_info": {
                    "description": "Get file or directory information",
                    "parameters": {"path": {"type": "string", "required": True}},
                },
                "write_file": {
                    "description": "Write text content to a file",
                    "parameters": {
                        "path": {"type": "string", "required": True},
                        "content": {"type": "string", "required": True},
                        "mode": {"type": "string", "default": "644"},
                        "overwrite": {"type": "boolean", "default": True},
                        "backup": {"type": "boolean", "default": False},
                    },
                },
                "remove_file": {
                    "description": "Delete a file",
                    "parameters": {"path": {"type": "string", "required": True}},
                },
                "make_executable": {
                    "description": "Add execute permission to a file",
                    "parameters": {"path": {"type": "string", "required": True}},
                },
                "archive_directory": {
                    "description": "Create a gzip tar archive of a directory",
                    "parameters": {
                        "root": {"type": "string", "required": True},
                        "source": {"type": "string", "required": True},
                        "destination": {"type": "string", "required": True},
                        "excludes": {"type": "array", "items": {"type": "string"}},
                    },
                },
                "extract_archive": {
                    "description": "Extract a gzip tar archive",
                    "parameters": {
                        "archive": {"type": "string", "required": True},
                        "destination": {"type": "string", "required": True},
                    },
                },
                "list_archives": {
                    "description": "List archives in a directory",
                    "parameters": {
                        "path": {"type": "string", "required": True},
                        "pattern": {"type": "string", "default": "*.tar.gz"},
                    },
                },
                "disk_usage": {
                    "description": "Report disk space for the filesystem holding a path",
                    "parameters": {"path": {"type": "string", "required": True}},
                },
            },
            required_permissions=["filesystem"],
            dependencies=[],
        )

    async def _create_client(self) -> Any:
        """The host filesystem needs no client."""
        return {"filesystem_available": True}

    async def _create_validator(self) -> Any:
        """Create parameter validator."""

        class FileSystemValidator:
            def validate(self, action: str, params: Dict[str, Any]) -> ValidationResult:
                errors = []
                normalized_params = params.copy()

                if action in PATH_ACTIONS:
                    if not params.get("path"):
                        errors.append(f"path is required for {action}")
                    else:
                        normalized_params["path"] = str(
                            Path(params["path"]).expanduser()
                        )

                if action == "write_file":
                    if "content" not in params:
                        errors.append("content is required for write_file")
                    if "mode" in params and not self._validate_mode(params["mode"]):
                        errors.append(f"Invalid mode format: {params['mode']}")

                elif action == "archive_directory":
                    for key in ["root", "source", "destination"]:
                        if not params.get(key):
                            errors.append(f"{key} is required for archive_directory")

                elif action == "extract_archive":
                    for key in ["archive", "destination"]:
                        if not params.get(key):
                            errors.append(f"{key} is required for extract_archive")

                return ValidationResult(
                    valid=len(errors) == 0,
                    errors=errors,
                    normalized_params=normalized_params,
                )

            def _validate_mode(self, mode: str) -> bool:
                """Validate file mode format."""
                try:
                    if mode.isdigit() and len(mode) == 3:
                        int(mode, 8)
                        return True
                    return False
                except ValueError:
                    return False

        return FileSystemValidator()

    async def _execute_action(
        self, action: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Execute filesystem action."""
        if action == "ensure_directory":
            return await self._ensure_directory(params)
        elif action == "get_info":
            return await self._get_info(params)
        elif action == "write_file":
            return await self._write_file(params)
        elif action == "remove_file":
            return await self._remove_file(params)
        elif action == "make_executable":
            return await self._make_executable(params)
        elif action == "archive_directory":
            return await self._archive_directory(params)
        elif action == "extract_archive":
            return await self._extract_archive(params)
        elif action == "list_archives":
            return await self._list_archives(params)
        elif action == "disk_usage":
            return await self._disk_usage(params)
        else:
            raise ToolError(f"Unknown action: {action}")

    async def _ensure_directory(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Create a directory (and parents) when missing."""
        path = Path(params["path"])

        if path.is_dir():
            return {"path": str(path), "created": False, "success": True}

        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return {"path": str(path), "created": False, "success": False, "error": str(e)}

        return {"path": str(path), "created": True, "success": True}

    async def _get_info(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Get file or directory information."""
        path = Path(params["path"])

        if not path.exists():
            return {"path": str(path), "exists": False, "success": True}

        info = path.stat()
        return {
            "path": str(path),
            "exists": True,
            "is_dir": path.is_dir(),
            "is_file": path.is_file(),
            "size": info.st_size,
            "mode": oct(stat.S_IMODE(info.st_mode)),
            "executable": os.access(path, os.X_OK),
            "modified": datetime.fromtimestamp(info.st_mtime).isoformat(),
            "success": True,
        }

    async def _write_file(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Write text content to a file, optionally keeping a backup copy."""
        path = Path(params["path"])
        content = str(params["content"])
        mode_str = params.get("mode", "644")

        backup_path = None
        if path.exists():
            if not params.get("overwrite", True):
                return {"path": str(path), "written": False, "success": True}
            if params.get("backup"):
                backup_path = path.with_name(path.name + ".backup")
                shutil.copy2(path, backup_path)

        path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)

        path.chmod(int(mode_str, 8))

        return {
            "path": str(path),
            "written": True,
            "size": len(content.encode("utf-8")),
            "mode": mode_str,
            "backup_path": str(backup_path) if backup_path else None,
            "success": True,
        }

    async def _remove_file(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Delete a file; a missing file is not an error."""
        path = Path(params["path"])
        existed = path.exists()
        path.unlink(missing_ok=True)
        return {"path": str(path), "removed": existed, "success": True}

    async def _make_executable(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Add user/group/other execute bits to a file."""
        path = Path(params["path"])

        if not path.is_file():
            raise ToolError(f"File not found: {path}")

        mode = stat.S_IMODE(path.stat().st_mode)
        changed = not os.access(path, os.X_OK)
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        return {"path": str(path), "changed": changed, "success": True}

    async def _archive_directory(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Archive ``root/source`` into ``destination`` with gzip compression."""
        root = Path(params["root"])
        source = params["source"].strip("/")
        destination = Path(params["destination"])
        excluded = [f"{source}/{name.strip('/')}" for name in params.get("excludes", [])]

        if not (root / source).is_dir():
            raise ToolError(f"Directory not found: {root / source}")

        def _filter(member: tarfile.TarInfo):
            for prefix in excluded:
                if member.name == prefix or member.name.startswith(prefix + "/"):
                    return None
            return member

        def _write() -> None:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with tarfile.open(destination, "w:gz") as archive:
                archive.add(root / source, arcname=source, filter=_filter)

        await asyncio.to_thread(_write)

        return {
            "archive": str(destination),
            "size": destination.stat().st_size,
            "excluded": excluded,
            "success": True,
        }

    async def _extract_archive(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Extract an archive into a directory."""
        archive_path = Path(params["archive"])
        destination = Path(params["destination"])

        if not archive_path.is_file():
            raise ToolError(f"Archive not found: {archive_path}")

        def _extract() -> int:
            with tarfile.open(archive_path, "r:gz") as archive:
                members = archive.getmembers()
                archive.extractall(destination, filter="data")
                return len(members)

        count = await asyncio.to_thread(_extract)

        return {
            "archive": str(archive_path),
            "destination": str(destination),
            "members": count,
            "success": True,
        }

    async def _list_archives(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """List archives matching a glob pattern, sorted by name."""
        path = Path(params["path"])
        pattern = params.get("pattern", "*.tar.gz")

        if not path.is_dir():
            return {"path": str(path), "exists": False, "archives": [], "success": True}

        archives: List[Dict[str, Any]] = []
        for item in sorted(path.glob(pattern)):
            if not item.is_file():
                continue
            info = item.stat()
            archives.append(
                {
                    "name": item.name,
                    "path": str(item),
                    "size": info.st_size,
                    "modified": datetime.fromtimestamp(info.st_mtime),
                }
            )

        return {"path": str(path), "exists": True, "archives": archives, "success": True}

    async def _disk_usage(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Report total/used/free space in gigabytes."""
        usage = shutil.disk_usage(params["path"])
        gib = 1024**3
        return {
            "path": params["path"],
            "total_gb": usage.total // gib,
            "used_gb": usage.used // gib,
            "free_gb": usage.free // gib,
            "success": True,
        }

    async def _get_supported_actions(self) -> List[str]:
        """Get list of supported actions."""
        return PATH_ACTIONS + ["archive_directory", "extract_archive"]
