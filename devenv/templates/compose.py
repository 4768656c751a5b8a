"""
Compose file generation.

The service definition is built as a plain mapping and serialized with
PyYAML, so the output is always syntactically valid compose input.
"""

from typing import Any, Dict, List, Optional

import yaml

from ..config.mounts import HOST_MOUNTS
from ..config.settings import AppSettings

COMPOSE_HEADER = "# Generated by devenv. Change settings and run `devenv init --force`.\n"

# name -> mount point below the container home
NAMED_VOLUMES = {
    "vscode-server": ".vscode-server",
    "vscode-extensions": ".vscode-server/extensions",
    "dev-config": ".config",
    "dev-cache": ".cache",
}


def _volumes(settings: AppSettings) -> List[str]:
    env = settings.environment
    home = env.container_home.rstrip("/")

    volumes = [f"./{env.workspace_dir}:{env.container_workspace}"]
    volumes.extend(f"{name}:{home}/{target}" for name, target in NAMED_VOLUMES.items())
    volumes.extend(mount.volume_spec(home) for mount in HOST_MOUNTS)
    return volumes


def build_compose_config(
    settings: AppSettings, image: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the compose document for the development service.

    Args:
        settings: Application settings
        image: Run this image instead of building from the Dockerfile
            (used when restoring a backup)

    Returns:
        The compose document as an ordered mapping
    """
    env = settings.environment

    service: Dict[str, Any] = {}
    if image:
        service["image"] = image
    else:
        service["build"] = {"context": ".", "dockerfile": env.dockerfile}

    service.update(
        {
            "container_name": env.container_name,
            "hostname": env.hostname,
            "volumes": _volumes(settings),
            "ports": [f"{port}:{port}" for port in env.ports],
            "environment": [
                f"WORKSPACE={env.container_workspace}",
                f"GOPROXY={env.go_proxy}",
                "GO111MODULE=on",
            ],
            "stdin_open": True,
            "tty": True,
            "restart": "unless-stopped",
            "working_dir": env.container_workspace,
        }
    )

    return {
        "services": {env.service_name: service},
        "volumes": {name: {"driver": "local"} for name in NAMED_VOLUMES},
    }


def render_compose(settings: AppSettings, image: Optional[str] = None) -> str:
    """Render the compose document to YAML text."""
    document = build_compose_config(settings, image=image)
    return COMPOSE_HEADER + yaml.safe_dump(
        document, sort_keys=False, default_flow_style=False
    )
