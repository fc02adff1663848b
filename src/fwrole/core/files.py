"""Atomic file replacement."""

import contextlib
import os
import secrets
from pathlib import Path
from typing import Generator


DEFAULT_FILE_PERMS = 0o644


class AtomicFileWriter:
    """Replace a file through a temp file in the same directory.

    Readers see either the old content or the new content, never a partial
    write. The temp file is removed on every failure path.
    """

    def __init__(self, target_path: Path, permissions: int = DEFAULT_FILE_PERMS) -> None:
        self.target_path = Path(target_path)
        self.permissions = permissions

    def _temp_path(self) -> Path:
        return self.target_path.with_name(
            f".{self.target_path.name}.tmp_{secrets.token_hex(8)}"
        )

    @contextlib.contextmanager
    def open(self, mode: str = "w") -> Generator:
        """Open for atomic writing.

        Usage:
            with AtomicFileWriter(path).open() as f:
                f.write("content")
            # File is atomically replaced here
        """
        self.target_path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        tmp_path = self._temp_path()

        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, self.permissions)
        try:
            with os.fdopen(fd, mode) as f:
                yield f
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.target_path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                tmp_path.unlink()
            raise
