"""
Per-user application directories.

Log files and the event log live under the platform's user data directory
(``$XDG_DATA_HOME`` or ``~/.local/share`` on Unix, ``%LOCALAPPDATA%`` on
Windows). When that directory cannot be written, a private temporary
directory is used instead.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional


def user_data_root() -> Path:
    """Return the platform's per-user data directory."""
    if os.name == "nt":
        return Path(os.environ.get("LOCALAPPDATA") or tempfile.gettempdir())
    return Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def get_secure_app_directory(
    app_name: str = "devenv", subdirectory: Optional[str] = None
) -> Path:
    """
    Get a writable directory for ``app_name``, creating it if needed.

    >>> get_secure_app_directory("devenv", "logs")  # doctest: +SKIP
    PosixPath('/home/dev/.local/share/devenv/logs')
    """
    app_dir = user_data_root() / app_name
    if subdirectory:
        app_dir = app_dir / subdirectory

    try:
        app_dir.mkdir(parents=True, exist_ok=True)
        _ensure_writable(app_dir)
    except OSError:
        fallback = Path(tempfile.mkdtemp(prefix=f"{app_name}_", suffix="_data"))
        fallback.chmod(0o700)
        return fallback
    return app_dir


def _ensure_writable(directory: Path) -> None:
    probe = directory / ".write_test"
    probe.touch()
    probe.unlink()
