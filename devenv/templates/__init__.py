"""
Generated project files: compose file, Dockerfile and container startup script.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..config.settings import AppSettings
from ..container import startup
from .compose import build_compose_config, render_compose
from .dockerfile import render_dockerfile


@dataclass
class GeneratedFile:
    """A file written into the project directory."""

    name: str
    content: str
    mode: str = "644"
    description: str = ""

    def path(self, project_dir: Path) -> Path:
        return project_dir / self.name


def render_startup_script() -> str:
    """Source of the container startup script."""
    return Path(startup.__file__).read_text(encoding="utf-8")


def generate_project_files(settings: AppSettings) -> List[GeneratedFile]:
    """Render every generated file for the current settings."""
    env = settings.environment
    return [
        GeneratedFile(
            env.compose_file,
            render_compose(settings),
            description="Docker orchestration configuration",
        ),
        GeneratedFile(
            env.dockerfile,
            render_dockerfile(settings),
            description="Container image definition",
        ),
        GeneratedFile(
            env.startup_script,
            render_startup_script(),
            mode="755",
            description="Container startup script",
        ),
    ]


__all__ = [
    "GeneratedFile",
    "build_compose_config",
    "generate_project_files",
    "render_compose",
    "render_dockerfile",
    "render_startup_script",
]
