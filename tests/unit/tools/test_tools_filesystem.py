"""
Tests for the host filesystem tool.
"""

import os
import tarfile

import pytest

from devenv.tools.filesystem import HostFilesystemTool


class TestHostFilesystemTool:
    """Test host filesystem tool functionality."""

    @pytest.fixture
    def fs_tool(self, filesystem_config):
        """Create filesystem tool instance."""
        return HostFilesystemTool(filesystem_config)

    @pytest.fixture
    def workspace_tree(self, tmp_path):
        """A project with a workspace containing sources and a dependency dir."""
        root = tmp_path / "project"
        workspace = root / "workspace"
        (workspace / "src").mkdir(parents=True)
        (workspace / "src" / "app.py").write_text("print('hi')\n")
        (workspace / "README.md").write_text("# demo\n")
        (workspace / "node_modules" / "left-pad").mkdir(parents=True)
        (workspace / "node_modules" / "left-pad" / "index.js").write_text("//\n")
        (workspace / ".venv" / "bin").mkdir(parents=True)
        (workspace / ".venv" / "bin" / "python").write_text("")
        return root

    @pytest.mark.asyncio
    async def test_get_schema(self, fs_tool):
        schema = await fs_tool.get_schema()

        assert schema.name == "filesystem"
        assert "archive_directory" in schema.actions
        assert "ensure_directory" in schema.actions

    @pytest.mark.asyncio
    async def test_path_is_required(self, fs_tool):
        result = await fs_tool.execute("ensure_directory", {})

        assert result.success is False
        assert "path is required for ensure_directory" in result.error

    @pytest.mark.asyncio
    async def test_invalid_mode_rejected(self, fs_tool, tmp_path):
        result = await fs_tool.execute(
            "write_file",
            {"path": str(tmp_path / "x.txt"), "content": "x", "mode": "rwx"},
        )

        assert result.success is False
        assert "Invalid mode format" in result.error

    @pytest.mark.asyncio
    async def test_ensure_directory_is_idempotent(self, fs_tool, tmp_path):
        """Test directory creation reports whether anything was created."""
        target = tmp_path / "cache" / "pip"

        first = await fs_tool.execute("ensure_directory", {"path": str(target)})
        second = await fs_tool.execute("ensure_directory", {"path": str(target)})

        assert first.success is True
        assert first.output["created"] is True
        assert second.output["created"] is False
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_ensure_directory_failure(self, fs_tool, tmp_path):
        """Test a path blocked by a regular file is reported as a failure."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        result = await fs_tool.execute(
            "ensure_directory", {"path": str(blocker / "child")}
        )

        assert result.success is False
        assert result.error

    @pytest.mark.asyncio
    async def test_get_info(self, fs_tool, tmp_path):
        script = tmp_path / "startup.py"
        script.write_text("#!/usr/bin/env python3\n")

        missing = await fs_tool.execute("get_info", {"path": str(tmp_path / "nope")})
        present = await fs_tool.execute("get_info", {"path": str(script)})

        assert missing.output["exists"] is False
        assert present.output["exists"] is True
        assert present.output["is_file"] is True
        assert present.output["is_dir"] is False

    @pytest.mark.asyncio
    async def test_write_file_sets_mode(self, fs_tool, tmp_path):
        target = tmp_path / "nested" / "startup.py"

        result = await fs_tool.execute(
            "write_file", {"path": str(target), "content": "print()\n", "mode": "755"}
        )

        assert result.success is True
        assert result.output["written"] is True
        assert target.read_text() == "print()\n"
        assert os.access(target, os.X_OK)

    @pytest.mark.asyncio
    async def test_write_file_keeps_existing_without_overwrite(self, fs_tool, tmp_path):
        target = tmp_path / "Dockerfile"
        target.write_text("FROM custom\n")

        result = await fs_tool.execute(
            "write_file",
            {"path": str(target), "content": "FROM generated\n", "overwrite": False},
        )

        assert result.output["written"] is False
        assert target.read_text() == "FROM custom\n"

    @pytest.mark.asyncio
    async def test_write_file_with_backup(self, fs_tool, tmp_path):
        target = tmp_path / "docker-compose.yml"
        target.write_text("old: true\n")

        result = await fs_tool.execute(
            "write_file",
            {"path": str(target), "content": "new: true\n", "backup": True},
        )

        backup = tmp_path / "docker-compose.yml.backup"
        assert result.output["backup_path"] == str(backup)
        assert backup.read_text() == "old: true\n"
        assert target.read_text() == "new: true\n"

    @pytest.mark.asyncio
    async def test_remove_file(self, fs_tool, tmp_path):
        target = tmp_path / "docker-compose.backup.yml"
        target.write_text("services: {}\n")

        removed = await fs_tool.execute("remove_file", {"path": str(target)})
        again = await fs_tool.execute("remove_file", {"path": str(target)})

        assert removed.output["removed"] is True
        assert again.success is True
        assert again.output["removed"] is False

    @pytest.mark.asyncio
    async def test_make_executable(self, fs_tool, tmp_path):
        script = tmp_path / "startup.py"
        script.write_text("")
        script.chmod(0o644)

        result = await fs_tool.execute("make_executable", {"path": str(script)})

        assert result.success is True
        assert result.output["changed"] is True
        assert os.access(script, os.X_OK)

    @pytest.mark.asyncio
    async def test_make_executable_missing_file(self, fs_tool, tmp_path):
        result = await fs_tool.execute(
            "make_executable", {"path": str(tmp_path / "missing.py")}
        )

        assert result.success is False
        assert "File not found" in result.error

    @pytest.mark.asyncio
    async def test_archive_directory_excludes_dependency_dirs(
        self, fs_tool, workspace_tree, tmp_path
    ):
        """Test the archive holds the workspace minus excluded directories."""
        destination = tmp_path / "backups" / "workspace-20240101_120000.tar.gz"

        result = await fs_tool.execute(
            "archive_directory",
            {
                "root": str(workspace_tree),
                "source": "workspace",
                "destination": str(destination),
                "excludes": ["node_modules", ".venv"],
            },
        )

        assert result.success is True
        with tarfile.open(destination, "r:gz") as archive:
            names = archive.getnames()

        assert "workspace/src/app.py" in names
        assert "workspace/README.md" in names
        assert not any(name.startswith("workspace/node_modules") for name in names)
        assert not any(name.startswith("workspace/.venv") for name in names)

    @pytest.mark.asyncio
    async def test_archive_missing_source(self, fs_tool, tmp_path):
        result = await fs_tool.execute(
            "archive_directory",
            {
                "root": str(tmp_path),
                "source": "workspace",
                "destination": str(tmp_path / "out.tar.gz"),
            },
        )

        assert result.success is False
        assert "Directory not found" in result.error

    @pytest.mark.asyncio
    async def test_extract_archive(self, fs_tool, workspace_tree, tmp_path):
        """Test an archive restores the workspace under the destination."""
        destination = tmp_path / "workspace.tar.gz"
        await fs_tool.execute(
            "archive_directory",
            {
                "root": str(workspace_tree),
                "source": "workspace",
                "destination": str(destination),
            },
        )
        restored = tmp_path / "restored"

        result = await fs_tool.execute(
            "extract_archive",
            {"archive": str(destination), "destination": str(restored)},
        )

        assert result.success is True
        assert (restored / "workspace" / "src" / "app.py").read_text() == "print('hi')\n"

    @pytest.mark.asyncio
    async def test_list_archives(self, fs_tool, tmp_path):
        backups = tmp_path / "backups"
        backups.mkdir()
        (backups / "workspace-20240102_000000.tar.gz").write_bytes(b"b")
        (backups / "workspace-20240101_000000.tar.gz").write_bytes(b"a")
        (backups / "notes.txt").write_text("ignored")

        result = await fs_tool.execute("list_archives", {"path": str(backups)})
        missing = await fs_tool.execute(
            "list_archives", {"path": str(tmp_path / "none")}
        )

        names = [archive["name"] for archive in result.output["archives"]]
        assert names == [
            "workspace-20240101_000000.tar.gz",
            "workspace-20240102_000000.tar.gz",
        ]
        assert missing.output["exists"] is False
        assert missing.output["archives"] == []

    @pytest.mark.asyncio
    async def test_disk_usage(self, fs_tool, tmp_path):
        result = await fs_tool.execute("disk_usage", {"path": str(tmp_path)})

        assert result.success is True
        assert result.output["total_gb"] >= result.output["free_gb"] >= 0
