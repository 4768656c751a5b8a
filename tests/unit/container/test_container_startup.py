"""
Tests for the container startup script.
"""

import subprocess
from unittest.mock import patch

from devenv.container import startup


class TestStartupScript:
    def test_prepare_go_dirs(self, tmp_path):
        created = startup.prepare_go_dirs(tmp_path / "go")

        assert [path.name for path in created] == ["src", "bin", "pkg"]
        assert all(path.is_dir() for path in created)

    def test_assistant_missing(self, home_dir):
        with patch("devenv.container.startup.shutil.which", return_value=None):
            assert startup.assistant_status(home_dir, environ={}) == "missing"

    def test_assistant_configured_by_api_key(self, home_dir):
        with patch(
            "devenv.container.startup.shutil.which", return_value="/usr/bin/claude"
        ):
            status = startup.assistant_status(
                home_dir, environ={"ANTHROPIC_API_KEY": "sk-test"}
            )

        assert status == "configured"

    def test_assistant_configured_by_file(self, home_dir):
        config = home_dir / ".claude-code" / "config.json"
        config.parent.mkdir()
        config.write_text("{}")

        with patch(
            "devenv.container.startup.shutil.which", return_value="/usr/bin/claude"
        ):
            assert startup.assistant_status(home_dir, environ={}) == "configured"

    def test_assistant_unconfigured(self, home_dir):
        with patch(
            "devenv.container.startup.shutil.which", return_value="/usr/bin/claude"
        ):
            assert startup.assistant_status(home_dir, environ={}) == "unconfigured"

    def test_tool_version_first_line(self):
        completed = subprocess.CompletedProcess(
            ["java", "-version"],
            0,
            stdout='\nopenjdk version "17.0.9" 2023-10-17\nOpenJDK Runtime\n',
        )
        with (
            patch("devenv.container.startup.shutil.which", return_value="/bin/java"),
            patch("devenv.container.startup.subprocess.run", return_value=completed),
        ):
            assert startup.tool_version(["java", "-version"]) == (
                'openjdk version "17.0.9" 2023-10-17'
            )

    def test_tool_version_not_installed(self):
        with patch("devenv.container.startup.shutil.which", return_value=None):
            assert startup.tool_version(["mvn", "-version"]) is None

    def test_tool_version_failure(self):
        completed = subprocess.CompletedProcess(["go", "version"], 1, stdout="oops\n")
        with (
            patch("devenv.container.startup.shutil.which", return_value="/bin/go"),
            patch("devenv.container.startup.subprocess.run", return_value=completed),
        ):
            assert startup.tool_version(["go", "version"]) is None

    def test_report_versions(self, capsys):
        with patch.object(startup, "tool_version", return_value=None):
            startup.report_versions()

        out = capsys.readouterr().out
        assert "  - Java: not installed" in out
        assert "  - Claude Code: needs configuration" in out

    def test_main_without_idle(self, capsys):
        with (
            patch.object(startup, "prepare_go_dirs") as prepare,
            patch.object(startup, "mark_safe_directory") as mark_safe,
            patch.object(startup, "start_editor", return_value=None) as start_editor,
            patch.object(startup, "assistant_status", return_value="unconfigured"),
            patch.object(startup, "report_versions"),
            patch.object(startup, "idle") as idle,
        ):
            code = startup.main(["--no-idle", "--port", "9090"])

        out = capsys.readouterr().out
        assert code == 0
        assert "http://localhost:9090" in out
        assert "claude auth" in out
        prepare.assert_called_once()
        mark_safe.assert_called_once_with("/workspace")
        start_editor.assert_called_once_with(9090, "/workspace")
        idle.assert_not_called()
