#!/usr/bin/env python3
"""
Container startup script.

Copied into the image and run as its main process: prepares the Go
directories, trusts the workspace for git, launches the web editor, reports
the AI assistant configuration and the toolchain versions, then idles until
the container is stopped.

Runs with the image's system Python, so it only uses the standard library.
"""

import argparse
import os
import shutil
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

GO_ROOT = Path("/go")
WORKSPACE = "/workspace"
EDITOR_PORT = 8080

ASSISTANT_CONFIG_FILES = [
    Path(".config") / "claude" / "config.json",
    Path(".claude-code") / "config.json",
]

TOOL_VERSIONS: List[Tuple[str, List[str]]] = [
    ("Java", ["java", "-version"]),
    ("Go", ["go", "version"]),
    ("Python", ["python", "--version"]),
    ("Maven", ["mvn", "-version"]),
    ("Gradle", ["gradle", "--version"]),
    ("Node.js", ["node", "--version"]),
    ("Claude Code", ["claude", "--version"]),
]


def prepare_go_dirs(root: Path = GO_ROOT) -> List[Path]:
    """Create the GOPATH src/bin/pkg directories."""
    created = []
    for name in ["src", "bin", "pkg"]:
        path = root / name
        try:
            path.mkdir(parents=True, exist_ok=True)
            created.append(path)
        except OSError as e:
            print(f"⚠️ Could not create {path}: {e}")
    return created


def mark_safe_directory(workspace: str = WORKSPACE) -> bool:
    """Trust the mounted workspace for git (it is owned by the host user)."""
    if shutil.which("git") is None:
        return False
    result = subprocess.run(
        ["git", "config", "--global", "--add", "safe.directory", workspace],
        capture_output=True,
        text=True,
    )
    return result.returncode == 0


def start_editor(
    port: int = EDITOR_PORT, workspace: str = WORKSPACE
) -> Optional[subprocess.Popen]:
    """Launch code-server in the background."""
    if shutil.which("code-server") is None:
        print("⚠️ code-server is not installed, web editor not started")
        return None

    print("📝 Starting VS Code Server...")
    return subprocess.Popen(
        ["code-server", "--bind-addr", f"0.0.0.0:{port}", "--auth", "none", workspace]
    )


def assistant_status(home: Optional[Path] = None, environ=None) -> str:
    """Return ``missing``, ``unconfigured`` or ``configured``."""
    if shutil.which("claude") is None:
        return "missing"

    home = home or Path.home()
    environ = os.environ if environ is None else environ

    if environ.get("ANTHROPIC_API_KEY"):
        return "configured"
    if any((home / path).is_file() for path in ASSISTANT_CONFIG_FILES):
        return "configured"
    return "unconfigured"


def report_assistant(status: str) -> None:
    print("🤖 Checking Claude Code configuration...")
    if status == "missing":
        print("⚠️ Claude Code is not properly installed")
        print("Please install manually: curl -fsSL https://claude.ai/install.sh | bash")
        return

    print("✅ Claude Code is installed")
    if status == "configured":
        print("✅ Claude Code is configured")
    else:
        print("⚠️ Claude Code requires API key configuration")
        print("Please run the following command for configuration:")
        print("  claude auth")
        print("Or set environment variable:")
        print("  export ANTHROPIC_API_KEY='your-api-key'")


def tool_version(cmd: Sequence[str]) -> Optional[str]:
    """First line of a tool's version output, or None when unavailable."""
    if shutil.which(cmd[0]) is None:
        return None
    try:
        # java prints its version on stderr
        result = subprocess.run(
            list(cmd), stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True
        )
    except OSError:
        return None
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    if result.returncode != 0 or not lines:
        return None
    return lines[0].strip()


def report_versions() -> None:
    print("Available development tools:")
    for label, cmd in TOOL_VERSIONS:
        version = tool_version(cmd)
        if version is None:
            version = "needs configuration" if label == "Claude Code" else "not installed"
        print(f"  - {label}: {version}")


def idle(editor: Optional[subprocess.Popen]) -> None:
    """Block until SIGTERM/SIGINT, then stop the editor."""

    def _stop(signum, frame):
        raise SystemExit(0)

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)

    try:
        while True:
            time.sleep(3600)
    finally:
        if editor is not None and editor.poll() is None:
            editor.terminate()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Development container startup")
    parser.add_argument("--port", type=int, default=EDITOR_PORT)
    parser.add_argument("--workspace", default=WORKSPACE)
    parser.add_argument(
        "--no-idle", action="store_true", help="Exit after the startup report"
    )
    args = parser.parse_args(argv)

    print("🚀 Starting development environment...")

    prepare_go_dirs()
    mark_safe_directory(args.workspace)
    editor = start_editor(args.port, args.workspace)
    report_assistant(assistant_status())

    print("✅ Development environment started!")
    print(f"🌐 VS Code Web interface: http://localhost:{args.port}")
    print(f"📁 Working directory: {args.workspace}")
    print(f"👤 Current user: {os.environ.get('USER') or Path.home().name}")
    print()
    report_versions()
    sys.stdout.flush()

    if args.no_idle:
        return 0

    idle(editor)
    return 0


if __name__ == "__main__":
    sys.exit(main())
