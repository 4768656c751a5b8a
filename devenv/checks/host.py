"""
Host machine dependency directory check.

Creates the dependency cache directories that are bind-mounted into the
container (docker would otherwise create them owned by root) and reports on
the user configuration paths that are mounted read-only.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from ..config.mounts import HostMount, MountKind, cache_mounts, config_mounts
from ..tools.filesystem import HostFilesystemTool

logger = logging.getLogger(__name__)


class HostCheckStatus(Enum):
    CREATED = "created"
    EXISTS = "exists"
    MISSING = "missing"
    FAILED = "failed"


class HostCheckEntry(BaseModel):
    """Outcome of checking one host path."""

    path: str
    description: str
    status: HostCheckStatus
    message: str = ""

    @property
    def is_warning(self) -> bool:
        return self.status in (HostCheckStatus.MISSING, HostCheckStatus.FAILED)


class HostCheckReport(BaseModel):
    """Outcome of a full host check."""

    entries: List[HostCheckEntry] = Field(default_factory=list)

    @property
    def created(self) -> List[HostCheckEntry]:
        return [e for e in self.entries if e.status is HostCheckStatus.CREATED]

    @property
    def warnings(self) -> List[HostCheckEntry]:
        return [e for e in self.entries if e.is_warning]

    @property
    def success(self) -> bool:
        return not any(e.status is HostCheckStatus.FAILED for e in self.entries)


async def _check_cache_dir(
    filesystem: HostFilesystemTool, mount: HostMount, path: Path
) -> HostCheckEntry:
    result = await filesystem.execute("ensure_directory", {"path": str(path)})

    if not result.success:
        return HostCheckEntry(
            path=str(path),
            description=mount.description,
            status=HostCheckStatus.FAILED,
            message=f"Could not create directory: {result.error}",
        )

    if result.output.get("created"):
        logger.info("Created dependency directory", extra={"path": str(path)})
        return HostCheckEntry(
            path=str(path),
            description=mount.description,
            status=HostCheckStatus.CREATED,
            message=f"Creating directory: {path}",
        )

    return HostCheckEntry(
        path=str(path),
        description=mount.description,
        status=HostCheckStatus.EXISTS,
        message=f"Directory exists: {path}",
    )


async def _check_config_path(
    filesystem: HostFilesystemTool, mount: HostMount, path: Path
) -> HostCheckEntry:
    result = await filesystem.execute("get_info", {"path": str(path)})
    info = result.output

    expected = info.get("is_file") if mount.is_file else info.get("is_dir")
    if result.success and info.get("exists") and expected:
        return HostCheckEntry(
            path=str(path),
            description=mount.description,
            status=HostCheckStatus.EXISTS,
            message=f"{mount.description} exists",
        )

    return HostCheckEntry(
        path=str(path),
        description=mount.description,
        status=HostCheckStatus.MISSING,
        message=(
            f"Warning: {mount.description} does not exist, please configure it first"
        ),
    )


async def check_host_deps(
    filesystem: HostFilesystemTool, home: Optional[Path] = None
) -> HostCheckReport:
    """
    Check every host mount.

    Cache directories are created when missing; configuration paths are only
    reported. Running the check twice creates nothing the second time.
    """
    report = HostCheckReport()

    for mount in cache_mounts() + config_mounts():
        path = mount.host_path(home)
        if mount.kind is MountKind.CACHE:
            entry = await _check_cache_dir(filesystem, mount, path)
        else:
            entry = await _check_config_path(filesystem, mount, path)
        report.entries.append(entry)

    return report
