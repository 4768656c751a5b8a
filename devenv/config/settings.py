"""
Central configuration management for the development environment manager.

This module provides type-safe configuration management using Pydantic,
loading values from ``DEVENV_*`` environment variables and the project
``.env`` file.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .store import validate_hub_repo

ENV_FILE = ".env"


class EnvironmentSettings(BaseSettings):
    """Container and compose project settings."""

    project_dir: Path = Field(default_factory=Path.cwd)
    container_name: str = Field(default="my-dev-env")
    service_name: str = Field(default="dev-environment")
    hostname: str = Field(default="dev-container")
    compose_file: str = Field(default="docker-compose.yml")
    backup_compose_file: str = Field(default="docker-compose.backup.yml")
    dockerfile: str = Field(default="Dockerfile")
    startup_script: str = Field(default="startup.py")
    workspace_dir: str = Field(default="workspace")
    container_workspace: str = Field(default="/workspace")
    container_home: str = Field(default="/root")
    ports: List[int] = Field(default=[8080, 3000, 5000, 8000])
    editor_port: int = Field(default=8080)
    go_proxy: str = Field(default="https://goproxy.cn,direct")
    shell: str = Field(default="/bin/bash")

    @field_validator("ports")
    @classmethod
    def validate_ports(cls, v):
        """Validate published ports are in the TCP range."""
        for port in v:
            if not 0 < port < 65536:
                raise ValueError(f"Invalid port: {port}")
        return v

    @property
    def compose_path(self) -> Path:
        return self.project_dir / self.compose_file

    @property
    def backup_compose_path(self) -> Path:
        return self.project_dir / self.backup_compose_file

    @property
    def workspace_path(self) -> Path:
        return self.project_dir / self.workspace_dir

    @property
    def editor_url(self) -> str:
        return f"http://localhost:{self.editor_port}"

    model_config = SettingsConfigDict(
        env_prefix="DEVENV_", env_file=ENV_FILE, case_sensitive=False, extra="ignore"
    )


class BackupSettings(BaseSettings):
    """Backup and restore settings."""

    hub_repo: Optional[str] = Field(default=None)
    local_backup_dir: Path = Field(
        default_factory=lambda: Path.home() / "dev-env-backups"
    )
    keep_local_images: int = Field(default=3, ge=0)
    workspace_excludes: List[str] = Field(default=["node_modules", "target", "build"])
    latest_tag: str = Field(default="latest-backup")
    registry_api_url: str = Field(
        default="https://registry.hub.docker.com/v2/repositories"
    )
    registry_timeout: float = Field(default=10.0)
    restore_tag_limit: int = Field(default=10)

    @field_validator("hub_repo", mode="before")
    @classmethod
    def validate_repo(cls, v):
        """Validate the repository identifier is ``owner/name``."""
        if v is None or not str(v).strip():
            return None
        return validate_hub_repo(str(v))

    @property
    def is_configured(self) -> bool:
        return bool(self.hub_repo)

    model_config = SettingsConfigDict(
        env_prefix="DEVENV_", env_file=ENV_FILE, case_sensitive=False, extra="ignore"
    )


class ToolchainSettings(BaseSettings):
    """Versions and sources of the tools baked into the image."""

    base_image: str = Field(default="ubuntu:22.04")
    timezone: str = Field(default="Asia/Shanghai")
    node_major: int = Field(default=20)
    java_version: int = Field(default=17)
    maven_version: str = Field(default="3.9.6")
    gradle_version: str = Field(default="8.5")
    go_version: str = Field(default="1.23.5")
    python_packages: List[str] = Field(
        default=[
            "requests",
            "numpy",
            "pandas",
            "flask",
            "fastapi",
            "uvicorn",
            "pytest",
            "black",
            "flake8",
        ]
    )
    assistant_install_url: str = Field(default="https://claude.ai/install.sh")
    editor_install_url: str = Field(default="https://code-server.dev/install.sh")
    container_user: str = Field(default="developer")

    @property
    def go_download_url(self) -> str:
        return f"https://go.dev/dl/go{self.go_version}.linux-amd64.tar.gz"

    @property
    def maven_download_url(self) -> str:
        major = self.maven_version.split(".")[0]
        return (
            f"https://archive.apache.org/dist/maven/maven-{major}/"
            f"{self.maven_version}/binaries/apache-maven-{self.maven_version}-bin.tar.gz"
        )

    @property
    def gradle_download_url(self) -> str:
        return f"https://services.gradle.org/distributions/gradle-{self.gradle_version}-bin.zip"

    model_config = SettingsConfigDict(
        env_prefix="DEVENV_", env_file=ENV_FILE, case_sensitive=False, extra="ignore"
    )


class ValidationSettings(BaseSettings):
    """Thresholds used by the configuration validator."""

    required_disk_gb: int = Field(default=10)
    connectivity_urls: Dict[str, str] = Field(
        default={
            "Docker Hub": "https://hub.docker.com",
            "Go official site": "https://go.dev",
            "Claude": "https://claude.ai",
        }
    )

    model_config = SettingsConfigDict(
        env_prefix="DEVENV_", env_file=ENV_FILE, case_sensitive=False, extra="ignore"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text
    log_file: Optional[str] = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    model_config = SettingsConfigDict(
        env_prefix="DEVENV_", env_file=ENV_FILE, case_sensitive=False, extra="ignore"
    )


class AppSettings(BaseSettings):
    """Main application settings."""

    app_name: str = Field(default="devenv")
    app_version: str = Field(default="0.1.0")

    environment: EnvironmentSettings = Field(default_factory=EnvironmentSettings)
    backup: BackupSettings = Field(default_factory=BackupSettings)
    toolchain: ToolchainSettings = Field(default_factory=ToolchainSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def env_file_path(self) -> Path:
        return self.environment.project_dir / ENV_FILE

    def get_safe_dict(self) -> Dict[str, Any]:
        """Get configuration dict with sensitive values masked."""
        config = self.model_dump(mode="json")

        def mask_sensitive(obj):
            """Recursively mask sensitive fields."""
            if isinstance(obj, dict):
                for key, value in obj.items():
                    if any(
                        sensitive in key.lower()
                        for sensitive in ["password", "secret", "token", "api_key"]
                    ):
                        if value and str(value).strip():
                            obj[key] = "***MASKED***"
                    elif isinstance(value, (dict, list)):
                        mask_sensitive(value)
            elif isinstance(obj, list):
                for item in obj:
                    if isinstance(item, (dict, list)):
                        mask_sensitive(item)

        mask_sensitive(config)
        return config

    model_config = SettingsConfigDict(
        env_prefix="DEVENV_", env_file=ENV_FILE, case_sensitive=False, extra="ignore"
    )


# Singleton pattern for settings
_settings: Optional[AppSettings] = None


def project_env_file() -> Path:
    """The project `.env`: under ``DEVENV_PROJECT_DIR`` when set, else the cwd."""
    project_dir = os.environ.get("DEVENV_PROJECT_DIR")
    base = Path(project_dir).expanduser() if project_dir else Path.cwd()
    return base / ENV_FILE


def load_settings() -> AppSettings:
    """Build settings with every group reading the same project `.env`."""
    env_file = project_env_file()
    return AppSettings(
        _env_file=env_file,
        environment=EnvironmentSettings(_env_file=env_file),
        backup=BackupSettings(_env_file=env_file),
        toolchain=ToolchainSettings(_env_file=env_file),
        validation=ValidationSettings(_env_file=env_file),
        logging=LoggingSettings(_env_file=env_file),
    )


def get_settings() -> AppSettings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload of settings (after the .env file changed, or in tests)."""
    global _settings
    _settings = None
    return get_settings()
