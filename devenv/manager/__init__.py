"""Development environment operations."""

from .environment import (
    EnvironmentManager,
    OperationError,
    archive_name,
    archive_name_for_tag,
    backup_tag,
    backup_timestamp,
    stale_backup_tags,
)

__all__ = [
    "EnvironmentManager",
    "OperationError",
    "archive_name",
    "archive_name_for_tag",
    "backup_tag",
    "backup_timestamp",
    "stale_backup_tags",
]
