"""Persisted role state.

The state file holds one line: the last role this node reached. It is a
hint for monitor, which cannot tell "Promoted" from "not started" when the
promoted rule set is empty. The live firewall stays the source of truth.

Lifecycle:
- written on every successful start, promote and demote
- deleted on stop
- absent means the resource is not started
"""

from pathlib import Path
from typing import Optional

from fwrole.core.context import ExecutionContext
from fwrole.core.exceptions import StateFileError
from fwrole.core.files import AtomicFileWriter
from fwrole.core.ocf import Role


STATE_FILE_PERMS = 0o644


class RoleStateFile:
    """Reads and writes the persisted role of one resource instance."""

    def __init__(self, ctx: ExecutionContext, path: Path) -> None:
        """Initialize state file.

        Args:
            ctx: Execution context
            path: Location of the state file
        """
        self.ctx = ctx
        self.path = Path(path)

    def read(self) -> Optional[Role]:
        """Read the persisted role.

        Returns:
            Persisted role, or None if the file is absent or unreadable
        """
        try:
            content = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            self.ctx.console.warn(f"Could not read state file {self.path}: {e}")
            return None

        role = Role.parse(content)
        if role is None:
            self.ctx.console.warn(f"Ignoring unrecognized state in {self.path}: '{content}'")
        return role

    def write(self, role: Role) -> None:
        """Persist role atomically.

        Raises:
            StateFileError: If the file cannot be written
        """
        try:
            with AtomicFileWriter(self.path, permissions=STATE_FILE_PERMS).open() as f:
                f.write(f"{role.value}\n")
        except OSError as e:
            raise StateFileError(
                f"Cannot write state file: {self.path}",
                hint="Check that the state directory is writable",
                details=[str(e)],
            ) from e

        self.ctx.console.debug(f"State saved to {self.path}: {role.value}")

    def delete(self) -> bool:
        """Remove the state file.

        Returns:
            True if a file was removed, False if there was none

        Raises:
            StateFileError: If the file exists but cannot be removed
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateFileError(
                f"Cannot remove state file: {self.path}",
                details=[str(e)],
            ) from e

        self.ctx.console.debug(f"State file removed: {self.path}")
        return True
