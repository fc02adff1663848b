"""Core framework components for the fwrole resource agent."""

from fwrole.core.exceptions import (
    FwRoleError,
    ConfigurationError,
    ValidationError,
    BackendUnavailable,
    ExecutionError,
    RuleMutationFailure,
    StateFileError,
)

from fwrole.core.ocf import OcfStatus, Role
from fwrole.core.config import AgentConfig, AgentSettings, ClusterEnvironment
from fwrole.core.context import ExecutionContext, create_context
from fwrole.core.output import console, Console, Verbosity
from fwrole.core.audit import AuditLogger, AuditEvent, AuditEventType, AuditResult
from fwrole.core.executor import CommandExecutor, CommandResult
from fwrole.core.files import AtomicFileWriter

__all__ = [
    # Exceptions
    "FwRoleError",
    "ConfigurationError",
    "ValidationError",
    "BackendUnavailable",
    "ExecutionError",
    "RuleMutationFailure",
    "StateFileError",
    # OCF
    "OcfStatus",
    "Role",
    # Config
    "AgentConfig",
    "AgentSettings",
    "ClusterEnvironment",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditEventType",
    "AuditResult",
    # Executor
    "CommandExecutor",
    "CommandResult",
    # Files
    "AtomicFileWriter",
]
