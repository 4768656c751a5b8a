"""
Host paths shared into the development container.

The compose generator and the host prechecker both read this table so the
mounted paths and the checked paths cannot drift apart.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional


class MountKind(Enum):
    """How the prechecker treats a host path."""

    CACHE = "cache"  # directory, created when missing
    CONFIG = "config"  # user configuration, only reported


@dataclass(frozen=True)
class HostMount:
    """A host path bind-mounted into the container."""

    host: str
    container: str
    description: str
    kind: MountKind = MountKind.CACHE
    read_only: bool = False
    is_file: bool = False

    def host_path(self, home: Optional[Path] = None) -> Path:
        """Resolve the ``~`` prefix against ``home`` (the user's home by default)."""
        home = home or Path.home()
        if self.host.startswith("~/"):
            return home / self.host[2:]
        return Path(self.host).expanduser()

    def volume_spec(self, container_home: str = "/root") -> str:
        """Render the compose short-syntax volume entry."""
        container = self.container.replace("{home}", container_home)
        spec = f"{self.host}:{container}"
        return f"{spec}:ro" if self.read_only else spec


HOST_MOUNTS: List[HostMount] = [
    HostMount(
        "~/.gitconfig",
        "{home}/.gitconfig",
        "Git configuration file",
        kind=MountKind.CONFIG,
        read_only=True,
        is_file=True,
    ),
    HostMount(
        "~/.ssh",
        "{home}/.ssh",
        "SSH configuration directory",
        kind=MountKind.CONFIG,
        read_only=True,
    ),
    HostMount("~/.m2", "{home}/.m2", "Maven cache directory"),
    HostMount("~/.gradle", "{home}/.gradle", "Gradle cache directory"),
    HostMount("~/go/pkg/mod", "/go/pkg/mod", "Go module cache directory"),
    HostMount(
        "~/Library/Caches/go-build",
        "{home}/.cache/go-build",
        "Go build cache directory",
    ),
    HostMount("~/.ivy2", "{home}/.ivy2", "Ivy cache directory"),
    HostMount("~/.cache/pip", "{home}/.cache/pip", "Python cache directory"),
]


def cache_mounts() -> List[HostMount]:
    """Dependency cache directories that are created on demand."""
    return [mount for mount in HOST_MOUNTS if mount.kind is MountKind.CACHE]


def config_mounts() -> List[HostMount]:
    """User configuration paths that are only checked."""
    return [mount for mount in HOST_MOUNTS if mount.kind is MountKind.CONFIG]
