"""Custom exceptions for the fwrole resource agent.

All exceptions provide:
- Clear error messages
- Optional hints for resolution
- Optional details for debugging
- OCF exit codes for reporting to the cluster manager
"""

from typing import Optional

from fwrole.core.ocf import OcfStatus


class FwRoleError(Exception):
    """Base exception for all fwrole errors.

    Attributes:
        message: Human-readable error description
        hint: Suggested action to resolve the error
        details: Additional context for debugging
        exit_code: OCF exit code reported to the cluster manager
    """

    exit_code: int = OcfStatus.ERR_GENERIC

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or []

    def __str__(self) -> str:
        return self.message


class ConfigurationError(FwRoleError):
    """Resource configuration errors.

    Raised when:
    - A required parameter is missing
    - A parameter has an invalid value
    - The orchestrator environment is malformed
    """
    exit_code = OcfStatus.ERR_CONFIGURED


class ValidationError(ConfigurationError):
    """Input validation errors.

    Raised when:
    - A port is not an integer between 1 and 65535
    - A source is not an IP address or CIDR block
    - A comma-separated list has empty entries
    """


class BackendUnavailable(FwRoleError):
    """No usable packet-filter backend.

    Raised when neither nft nor iptables is found on the execution path.
    Retrying the same action cannot fix this.
    """
    exit_code = OcfStatus.ERR_INSTALLED


class ExecutionError(FwRoleError):
    """Command execution failures.

    Raised when:
    - A command returns non-zero exit code
    - A command times out
    - A command binary cannot be executed
    """

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        return_code: Optional[int] = None,
        stderr: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        if not details:
            details = []
        if return_code is not None:
            details.append(f"Exit code: {return_code}")
        if stderr:
            details.append(f"Error output: {stderr.strip()}")
        super().__init__(message, hint=hint, details=details)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class RuleMutationFailure(FwRoleError):
    """A firewall mutation failed.

    Raised when:
    - Creating the table or chain fails
    - Adding a rule fails
    - Purging rules fails
    """

    def __init__(
        self,
        message: str,
        *,
        rule: Optional[str] = None,
        chain: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.rule = rule
        self.chain = chain


class StateFileError(FwRoleError):
    """The persisted role could not be written or removed."""
