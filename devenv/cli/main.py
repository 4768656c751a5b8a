"""
Main CLI interface for the development environment manager.

This module maps the ``devenv`` subcommands onto ``EnvironmentManager``
operations and renders their results for the terminal.
"""

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict

import click
from pydantic import ValidationError

from .. import __version__
from ..checks.host import HostCheckReport, HostCheckStatus
from ..checks.validator import ValidationReport
from ..config.settings import AppSettings, get_settings
from ..config.store import ConfigurationError
from ..logging_utils import LogManager, ProgressTracker
from ..manager import EnvironmentManager
from ..utils.directories import get_secure_app_directory

LOG_FILE_NAME = "devenv.log"


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured logging with correlation IDs."""

    def format(self, record):
        correlation_id = getattr(record, "correlation_id", "unknown")
        operation_id = getattr(record, "operation_id", None)

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if operation_id:
            log_data["operation_id"] = operation_id

        # Add any extra fields from the record
        for key, value in record.__dict__.items():
            if key not in [
                "name",
                "msg",
                "args",
                "levelname",
                "levelno",
                "pathname",
                "filename",
                "module",
                "lineno",
                "funcName",
                "created",
                "msecs",
                "relativeCreated",
                "thread",
                "threadName",
                "processName",
                "process",
                "taskName",
                "exc_info",
                "exc_text",
                "stack_info",
                "correlation_id",
                "operation_id",
            ]:
                if not key.startswith("_"):
                    log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(settings: AppSettings, verbose: bool = False) -> Path:
    """Send logs to a structured file and warnings to the console."""
    if settings.logging.log_file:
        log_file = Path(settings.logging.log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
    else:
        log_file = get_secure_app_directory("devenv", "logs") / LOG_FILE_NAME

    file_handler = logging.FileHandler(log_file)
    if settings.logging.log_format == "json":
        file_handler.setFormatter(StructuredFormatter())
    else:
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else settings.logging.log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    return log_file


def create_manager(
    settings: AppSettings, show_progress: bool = False
) -> EnvironmentManager:
    log_manager = LogManager()
    progress = ProgressTracker() if show_progress else None
    return EnvironmentManager(settings, log_manager=log_manager, progress=progress)


def run_with_manager(
    ctx: click.Context,
    func: Callable[[EnvironmentManager], Awaitable[Dict[str, Any]]],
    show_progress: bool = False,
) -> Dict[str, Any]:
    """Run ``func`` against an initialized manager inside an event loop."""

    async def _run():
        manager = create_manager(ctx.obj["settings"], show_progress)
        try:
            await manager.initialize()
            return await func(manager)
        finally:
            await manager.cleanup()

    return asyncio.run(_run())


def fail(result: Dict[str, Any]) -> None:
    click.echo(f"❌ {result.get('error') or 'Operation failed'}")
    sys.exit(1)


def echo_host_report(report: HostCheckReport) -> None:
    for entry in report.entries:
        if entry.status is HostCheckStatus.CREATED:
            click.echo(f"📁 {entry.message}")
        elif entry.status is HostCheckStatus.EXISTS:
            click.echo(f"✅ {entry.message}")
        else:
            click.echo(f"⚠️ {entry.message}")


def echo_validation_report(report: ValidationReport) -> None:
    for section, results in report.by_section().items():
        click.echo()
        click.echo(f"=== {section} ===")
        for result in results:
            if result.passed:
                icon = "✅"
            else:
                icon = "❌" if result.required else "⚠️"
            line = f"{icon} {result.name}"
            if result.message:
                line += f": {result.message}"
            click.echo(line)
            if result.suggestion:
                click.echo(f"   Fix suggestion: {result.suggestion}")

    click.echo()
    click.echo("=== Performance Recommendations ===")
    click.echo("💡 Optimization suggestions:")
    for i, recommendation in enumerate(report.recommendations, 1):
        click.echo(f"{i}. {recommendation}")


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ["B", "K", "M", "G"]:
        if value < 1024:
            return f"{value:.0f}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}T"


# CLI Commands


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """devenv - containerized development environment manager"""
    ctx.ensure_object(dict)

    try:
        settings = get_settings()
    except (ValidationError, ConfigurationError) as e:
        click.echo(f"❌ Configuration error: {e}")
        sys.exit(1)

    ctx.obj["settings"] = settings
    ctx.obj["log_file"] = configure_logging(settings, verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.pass_context
def start(ctx):
    """Start development environment."""
    click.echo("🔍 Checking host machine dependency directories...")

    def host_checked(report: HostCheckReport) -> None:
        echo_host_report(report)
        click.echo("🚀 Starting development environment...")

    result = run_with_manager(ctx, lambda manager: manager.start(host_checked))
    if not result["success"]:
        fail(result)

    click.echo("✅ Development environment started!")
    click.echo(f"🌐 VS Code access URL: {result['editor_url']}")


@cli.command()
@click.pass_context
def stop(ctx):
    """Stop development environment."""
    click.echo("⏹️ Stopping development environment...")

    result = run_with_manager(ctx, lambda manager: manager.stop())
    if not result["success"]:
        fail(result)

    click.echo("✅ Development environment stopped!")


@cli.command()
@click.pass_context
def restart(ctx):
    """Restart development environment."""
    click.echo("🔄 Restarting development environment...")

    result = run_with_manager(ctx, lambda manager: manager.restart())
    if not result["success"]:
        fail(result)

    click.echo("✅ Development environment restarted!")


@cli.command()
@click.pass_context
def backup(ctx):
    """Backup environment to Docker Hub."""
    click.echo("💾 Starting environment backup to Docker Hub...")

    result = run_with_manager(
        ctx, lambda manager: manager.backup(), show_progress=True
    )
    if not result["success"]:
        fail(result)

    click.echo("✅ Backup completed!")
    click.echo(f"🐳 Docker Hub image: {result['image']}")
    click.echo(f"📂 Local workspace: {result['archive']}")
    if result.get("removed_images"):
        click.echo(
            f"🧹 Removed old backup images: {', '.join(result['removed_images'])}"
        )


@cli.command()
@click.option("--tag", "-t", help="Backup tag to restore (default: latest-backup)")
@click.pass_context
def restore(ctx, tag):
    """Restore environment from Docker Hub."""
    latest_tag = ctx.obj["settings"].backup.latest_tag

    async def _restore(manager: EnvironmentManager) -> Dict[str, Any]:
        chosen = tag
        if not chosen:
            available = await manager.available_restore_tags()
            if available["success"]:
                click.echo("Available backups on Docker Hub:")
                for name in available["tags"]:
                    click.echo(f"  - {name}")
            elif "setup-hub" in (available.get("error") or ""):
                return available
            else:
                click.echo(f"⚠️ {available['error']}")
            click.echo()
            chosen = click.prompt(
                f"Enter backup tag to restore (or '{latest_tag}' for latest)",
                default=latest_tag,
            )

        click.echo("📥 Restoring environment from Docker Hub backup...")
        return await manager.restore(chosen)

    result = run_with_manager(ctx, _restore)
    if not result["success"]:
        fail(result)

    click.echo(f"📥 Restored image: {result['image']}")
    if result.get("workspace_restored"):
        click.echo(f"📁 Workspace restored from {result['archive']}")
    click.echo("✅ Restore completed!")


@cli.command("list-backups")
@click.pass_context
def list_backups(ctx):
    """List all available backups."""
    click.echo("📋 Available backups:")

    result = run_with_manager(ctx, lambda manager: manager.list_backups())
    if not result["success"]:
        fail(result)

    click.echo("🐳 Docker Hub backups:")
    if result.get("hub_error"):
        click.echo("  Unable to fetch Docker Hub tags")
    elif not result["tags"]:
        click.echo("  No Docker Hub backups found")
    for name in result["tags"]:
        click.echo(f"  - {name}")

    click.echo()
    click.echo("📁 Local workspace backups:")
    if not result["local_dir_exists"]:
        click.echo("  No local backup directory found")
    elif not result["archives"]:
        click.echo("  No local backups found")
    for archive in result["archives"]:
        modified = archive["modified"].strftime("%b %d %H:%M")
        click.echo(
            f"  - {archive['path']} ({_format_size(archive['size'])}, {modified})"
        )


@cli.command("setup-hub")
@click.option("--username", "-u", help="Docker Hub username")
@click.option("--repository", "-r", help="Repository name (e.g., my-dev-env)")
@click.option("--no-login", is_flag=True, help="Skip docker login")
@click.pass_context
def setup_hub(ctx, username, repository, no_login):
    """Configure Docker Hub repository."""
    click.echo("🔧 Configuring Docker Hub backup...")
    if not username or not repository:
        click.echo("Please provide your Docker Hub information:")
    if not username:
        username = click.prompt("Docker Hub username")
    if not repository:
        repository = click.prompt("Repository name (e.g., my-dev-env)")

    if not no_login:
        click.echo("🔐 Please login to Docker Hub...")

    result = run_with_manager(
        ctx,
        lambda manager: manager.setup_hub(username, repository, login=not no_login),
    )
    if not result["success"]:
        fail(result)

    click.echo("✅ Docker Hub configuration completed")
    click.echo(f"📂 Repository: {result['repository']}")
    if result.get("logged_in") is False:
        click.echo("⚠️ Docker Hub login failed, run: docker login")


@cli.command()
@click.pass_context
def shell(ctx):
    """Enter development environment shell."""
    click.echo("🐚 Entering development environment shell...")

    result = run_with_manager(ctx, lambda manager: manager.shell())
    if not result["success"]:
        fail(result)


@cli.command()
@click.option("--no-follow", is_flag=True, help="Print the logs and exit")
@click.option("--tail", "-n", type=int, help="Number of lines to show per service")
@click.pass_context
def logs(ctx, no_follow, tail):
    """View container logs."""
    click.echo("📝 Development environment logs:")

    result = run_with_manager(
        ctx, lambda manager: manager.logs(follow=not no_follow, tail=tail)
    )
    if not result["success"]:
        fail(result)

    if result.get("logs"):
        click.echo(result["logs"])


@cli.command()
@click.pass_context
def status(ctx):
    """View environment status."""
    result = run_with_manager(ctx, lambda manager: manager.status())
    if not result["success"]:
        fail(result)

    click.echo("📊 Development environment status:")
    click.echo(result["services"].rstrip())
    click.echo()
    click.echo("🔧 Docker resource usage:")
    click.echo(result["disk_usage"].rstrip())


@cli.command()
@click.pass_context
def clean(ctx):
    """Clean unused Docker resources."""
    click.echo("🧹 Cleaning unused Docker resources...")

    result = run_with_manager(ctx, lambda manager: manager.clean())
    if not result["success"]:
        fail(result)

    click.echo("✅ Cleanup completed!")


@cli.command("check-deps")
@click.pass_context
def check_deps(ctx):
    """Check host machine dependency directories."""
    click.echo("🔍 Checking host machine dependency directories...")

    result = run_with_manager(ctx, lambda manager: manager.check_deps())
    if "report" in result:
        echo_host_report(result["report"])
    if not result["success"]:
        fail(result)

    click.echo("✅ Dependency check completed!")


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
@click.pass_context
def init(ctx, force):
    """Generate docker-compose.yml, Dockerfile and the startup script."""
    result = run_with_manager(ctx, lambda manager: manager.generate(force=force))
    if not result["success"]:
        fail(result)

    for name in result["written"]:
        click.echo(f"📝 Wrote {name}")
    for name in result["skipped"]:
        click.echo(f"⏭️ Skipped {name} (already exists, use --force to overwrite)")
    click.echo("✅ Project files generated!")


@cli.command()
@click.pass_context
def fix(ctx):
    """Automatically fix common configuration issues."""
    click.echo("🔧 Automatically fixing configuration issues...")

    result = run_with_manager(ctx, lambda manager: manager.fix())
    if not result["success"]:
        fail(result)

    for action in result["actions"]:
        click.echo(f"✅ {action}")
    for warning in result["warnings"]:
        click.echo(f"⚠️ {warning}")

    if result["compose_valid"]:
        click.echo("✅ Docker Compose configuration is valid")
    else:
        click.echo("❌ Docker Compose configuration has issues")
        if result.get("compose_errors"):
            click.echo(result["compose_errors"])

    click.echo("✅ Automatic fix completed!")
    click.echo("Next steps:")
    click.echo("1. Run: devenv check-deps")
    click.echo("2. Run: devenv setup-hub (for backup)")
    click.echo("3. Run: devenv start")


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate development environment configuration."""
    click.echo("🔍 Validating development environment configuration...")

    result = run_with_manager(ctx, lambda manager: manager.validate())
    if "report" not in result:
        fail(result)

    echo_validation_report(result["report"])
    click.echo()

    if not result["success"]:
        click.echo("❌ Some required checks failed")
        sys.exit(1)

    click.echo("🎉 Configuration validation completed!")
    click.echo("If all checks pass, you can run:")
    click.echo("  devenv start")


@cli.command()
@click.pass_context
def config(ctx):
    """Show the effective configuration."""
    settings: AppSettings = ctx.obj["settings"]
    click.echo(json.dumps(settings.get_safe_dict(), indent=2, default=str))


@cli.command()
@click.option("--operation", "-o", help="Only show runs of this operation")
@click.option("--limit", "-n", default=20, show_default=True, help="Runs to show")
def history(operation, limit):
    """Show recent operation runs from the event log."""
    records = [
        record
        for record in LogManager().read_history(operation)
        if record.get("event_type") == "operation_completed"
    ]
    if not records:
        click.echo("📜 No operations recorded yet")
        return

    click.echo("📜 Recent operations:")
    for record in records[-limit:]:
        icon = "✅" if record.get("success") else "❌"
        line = (
            f"  {icon} {record.get('timestamp', '')[:19]}  "
            f"{record.get('operation', '?')} "
            f"({float(record.get('duration_seconds') or 0):.1f}s)"
        )
        if record.get("error_message"):
            line += f" - {record['error_message']}"
        click.echo(line)


@cli.command("help")
@click.pass_context
def help_command(ctx):
    """Show this help information."""
    click.echo(ctx.parent.get_help())


@cli.command()
@click.pass_context
def version(ctx):
    """Show version information."""
    click.echo("devenv - Development Environment Manager")
    click.echo(f"Version: {__version__}")
    click.echo(f"Log file: {ctx.obj['log_file']}")


if __name__ == "__main__":
    cli()
