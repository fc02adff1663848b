"""Unit tests for the persisted role state file."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from fwrole.core.exceptions import StateFileError
from fwrole.core.files import AtomicFileWriter
from fwrole.core.ocf import Role
from fwrole.services.state_file import RoleStateFile


class TestRoleStateFile:
    """Tests for RoleStateFile."""

    @pytest.fixture
    def state_file(self, mock_ctx, tmp_path):
        return RoleStateFile(mock_ctx, tmp_path / "fwrole-test.state")

    def test_absent_file(self, state_file):
        """A missing file means the resource is not started."""
        assert state_file.read() is None

    def test_write_and_read(self, state_file):
        state_file.write(Role.PROMOTED)
        assert state_file.path.read_text() == "Promoted\n"
        assert state_file.read() is Role.PROMOTED

        state_file.write(Role.UNPROMOTED)
        assert state_file.read() is Role.UNPROMOTED

    def test_creates_directory(self, mock_ctx, tmp_path):
        state_file = RoleStateFile(mock_ctx, tmp_path / "run" / "resource-agents" / "x.state")
        state_file.write(Role.UNPROMOTED)
        assert state_file.read() is Role.UNPROMOTED

    def test_legacy_content(self, state_file):
        state_file.path.write_text("Master\n")
        assert state_file.read() is Role.PROMOTED

    def test_unrecognized_content(self, state_file, mock_ctx):
        """Garbage in the file should read as not started, with a warning."""
        state_file.path.write_text("garbage")
        assert state_file.read() is None
        mock_ctx.console.warn.assert_called_once()

    def test_unreadable_file(self, state_file, mock_ctx):
        """A permission error reads as not started instead of escaping."""
        state_file.write(Role.PROMOTED)

        with patch.object(Path, "read_text", side_effect=PermissionError(13, "Permission denied")):
            assert state_file.read() is None
        mock_ctx.console.warn.assert_called_once()

    def test_unreadable_directory(self, state_file, mock_ctx):
        with patch.object(Path, "read_text", side_effect=NotADirectoryError(20, "Not a directory")):
            assert state_file.read() is None
        mock_ctx.console.warn.assert_called_once()

    def test_no_temp_files_left(self, state_file, tmp_path):
        state_file.write(Role.PROMOTED)
        assert [p.name for p in tmp_path.iterdir()] == ["fwrole-test.state"]

    def test_write_failure(self, mock_ctx, tmp_path):
        """An unwritable location should raise StateFileError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        state_file = RoleStateFile(mock_ctx, blocker / "x.state")

        with pytest.raises(StateFileError) as exc:
            state_file.write(Role.PROMOTED)
        assert exc.value.exit_code == 1

    def test_delete(self, state_file):
        state_file.write(Role.PROMOTED)
        assert state_file.delete() is True
        assert not state_file.path.exists()

    def test_delete_absent(self, state_file):
        assert state_file.delete() is False

    def test_delete_failure(self, mock_ctx, tmp_path):
        directory = tmp_path / "dir.state"
        directory.mkdir()
        with pytest.raises(StateFileError):
            RoleStateFile(mock_ctx, directory).delete()


class TestAtomicFileWriter:
    """Tests for AtomicFileWriter."""

    def test_replaces_content(self, tmp_path):
        target = tmp_path / "target"
        target.write_text("old")

        with AtomicFileWriter(target).open() as f:
            f.write("new")

        assert target.read_text() == "new"

    def test_permissions(self, tmp_path):
        target = tmp_path / "target"
        with AtomicFileWriter(target, permissions=0o600).open() as f:
            f.write("x")
        assert oct(os.stat(target).st_mode & 0o777) == oct(0o600 & ~_umask())

    def test_failure_keeps_original(self, tmp_path):
        """An error while writing should leave the target untouched."""
        target = tmp_path / "target"
        target.write_text("old")

        with pytest.raises(RuntimeError):
            with AtomicFileWriter(target).open() as f:
                f.write("partial")
                raise RuntimeError("boom")

        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["target"]


def _umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask
