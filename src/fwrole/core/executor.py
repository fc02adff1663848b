"""Command execution.

Provides:
- Bounded command execution with output capture
- Uniform error reporting for failed or timed-out commands
"""

import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional

from fwrole.core.context import ExecutionContext
from fwrole.core.exceptions import ExecutionError


@dataclass
class CommandResult:
    """Result of a command execution."""
    command: list[str]
    return_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.return_code == 0


class CommandExecutor:
    """Command execution with output capture and timeouts.

    Every command is bounded by a timeout: the cluster manager kills
    actions that overrun, so nothing here may block indefinitely.
    """

    def __init__(self, ctx: ExecutionContext) -> None:
        """Initialize executor with context.

        Args:
            ctx: Execution context
        """
        self.ctx = ctx

    def run(
        self,
        command: list[str],
        *,
        description: Optional[str] = None,
        check: bool = True,
        timeout: Optional[int] = None,
    ) -> CommandResult:
        """Execute a command.

        Args:
            command: Command as list of strings
            description: Human-readable description for logging
            check: Raise exception on non-zero exit
            timeout: Command timeout in seconds (default: configured command_timeout)

        Returns:
            CommandResult with output

        Raises:
            ExecutionError: If the command cannot run, times out,
                or fails and check=True
        """
        if description:
            self.ctx.console.step(description)

        if timeout is None:
            timeout = self.ctx.command_timeout

        cmd_display = shlex.join(command)
        self.ctx.console.debug(f"Running: {cmd_display}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise ExecutionError(
                f"Command timed out after {timeout}s: {description or cmd_display}",
                command=cmd_display,
            )
        except OSError as e:
            raise ExecutionError(
                f"Cannot execute: {cmd_display}",
                command=cmd_display,
                details=[str(e)],
            ) from e

        cmd_result = CommandResult(
            command=command,
            return_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

        if check and result.returncode != 0:
            raise ExecutionError(
                f"Command failed: {description or cmd_display}",
                command=cmd_display,
                return_code=result.returncode,
                stderr=result.stderr,
            )

        return cmd_result
