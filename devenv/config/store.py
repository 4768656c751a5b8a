"""
Persistence of the backup repository identifier.

The identifier lives in the project ``.env`` file as a single
``DEVENV_HUB_REPO=owner/name`` line. Saving rewrites that line in place and
leaves every other line untouched.
"""

import re
from pathlib import Path
from typing import Optional

HUB_REPO_KEY = "DEVENV_HUB_REPO"

# Docker Hub repositories are lowercase "namespace/name" references
_COMPONENT = r"[a-z0-9]+(?:[._-][a-z0-9]+)*"
HUB_REPO_PATTERN = re.compile(rf"^{_COMPONENT}/{_COMPONENT}$")

_LINE_PATTERN = re.compile(rf"^\s*(?:export\s+)?{HUB_REPO_KEY}\s*=(.*)$")


class ConfigurationError(ValueError):
    """Raised when a configuration value is malformed."""


def validate_hub_repo(value: str) -> str:
    """Return the normalized ``owner/name`` identifier or raise."""
    repo = value.strip()
    if not HUB_REPO_PATTERN.match(repo):
        raise ConfigurationError(
            f"Invalid Docker Hub repository '{value}': expected lowercase 'owner/name'"
        )
    return repo


def read_hub_repo(env_file: Path) -> Optional[str]:
    """Read the configured repository identifier, if any."""
    if not env_file.exists():
        return None

    for line in env_file.read_text(encoding="utf-8").splitlines():
        match = _LINE_PATTERN.match(line)
        if match:
            value = match.group(1).strip().strip("\"'")
            return value or None
    return None


def save_hub_repo(env_file: Path, repo: str) -> str:
    """Persist the repository identifier, replacing any previous value."""
    repo = validate_hub_repo(repo)
    new_line = f"{HUB_REPO_KEY}={repo}"

    lines = []
    if env_file.exists():
        lines = env_file.read_text(encoding="utf-8").splitlines()

    replaced = False
    result = []
    for line in lines:
        if _LINE_PATTERN.match(line):
            if not replaced:
                result.append(new_line)
                replaced = True
            continue
        result.append(line)

    if not replaced:
        result.append(new_line)

    env_file.parent.mkdir(parents=True, exist_ok=True)
    env_file.write_text("\n".join(result) + "\n", encoding="utf-8")
    return repo
