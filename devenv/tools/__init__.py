"""
Tools package.

This package wraps the external programs the environment manager drives:
the Docker CLI and Compose, git, the host filesystem, and the Docker Hub API.
"""

from .base import Tool, ToolConfig, ToolError, ToolResult, ToolSchema, ToolStatus
from .docker import DockerTool
from .filesystem import HostFilesystemTool
from .git import GitTool
from .registry import RegistryTool

__all__ = [
    # Base classes
    "Tool",
    "ToolConfig",
    "ToolError",
    "ToolResult",
    "ToolSchema",
    "ToolStatus",
    # Tools
    "DockerTool",
    "GitTool",
    "HostFilesystemTool",
    "RegistryTool",
]
