"""Configuration management using Pydantic.

Provides:
- Resource parameters read from OCF_RESKEY_* environment variables
- Orchestrator metadata (requested role, clone flags, instance name)
- Derived values such as the default persisted-state path
- YAML rendering of the effective configuration
"""

import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, ValidationError as PydanticValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fwrole.core.exceptions import ConfigurationError, FwRoleError
from fwrole.core.ocf import Role
from fwrole.core.validation import validate_chain_name


AGENT_NAME = "fwrole"

# Default paths
DEFAULT_RSC_TMP = Path("/run/resource-agents")
DEFAULT_AUDIT_LOG = Path("/var/log/fwrole/audit.log")

DEFAULT_CHAIN = "fwrole"
DEFAULT_COMMAND_TIMEOUT = 15
MAX_COMMAND_TIMEOUT = 300

# Anonymous clone instances are named "<resource>:<n>"
CLONE_SUFFIX = re.compile(r":[0-9]+$")


def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AgentSettings(BaseSettings):
    """Resource parameters, set by the cluster as OCF_RESKEY_<name>."""

    model_config = SettingsConfigDict(env_prefix="OCF_RESKEY_", extra="ignore")

    ports: str = ""
    source_ips: str = ""
    state: Optional[Path] = None
    notify_delay: int = Field(0, ge=0)
    blocked_role: Role = Role.UNPROMOTED
    chain: str = DEFAULT_CHAIN
    command_timeout: int = Field(DEFAULT_COMMAND_TIMEOUT, ge=1, le=MAX_COMMAND_TIMEOUT)
    audit: bool = True
    audit_log: Path = DEFAULT_AUDIT_LOG

    @field_validator("state", mode="before")
    @classmethod
    def validate_state(cls, v: Any) -> Any:
        return _empty_to_none(v)

    @field_validator("notify_delay", "command_timeout", "audit", "audit_log", mode="before")
    @classmethod
    def default_when_empty(cls, v: Any, info: ValidationInfo) -> Any:
        if _empty_to_none(v) is None:
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("blocked_role", mode="before")
    @classmethod
    def validate_blocked_role(cls, v: Any) -> Any:
        if isinstance(v, Role) or _empty_to_none(v) is None:
            return v or Role.UNPROMOTED
        role = Role.parse(str(v))
        if role is None:
            raise ValueError(
                f"blocked_role must be one of: {Role.UNPROMOTED.value}, {Role.PROMOTED.value}"
            )
        return role

    @field_validator("chain")
    @classmethod
    def validate_chain(cls, v: str) -> str:
        try:
            return validate_chain_name(v)
        except FwRoleError as e:
            raise ValueError(e.message) from e


class ClusterEnvironment(BaseSettings):
    """Metadata the cluster manager passes to every action."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    role: Optional[str] = Field(None, alias="OCF_RESKEY_CRM_meta_role")
    globally_unique: bool = Field(False, alias="OCF_RESKEY_CRM_meta_globally_unique")
    notify_type: Optional[str] = Field(None, alias="OCF_RESKEY_CRM_meta_notify_type")
    notify_operation: Optional[str] = Field(None, alias="OCF_RESKEY_CRM_meta_notify_operation")
    resource_instance: str = Field(AGENT_NAME, alias="OCF_RESOURCE_INSTANCE")
    rsc_tmp: Path = Field(DEFAULT_RSC_TMP, alias="HA_RSCTMP")
    debug: bool = Field(False, alias="HA_debug")

    @field_validator("globally_unique", "debug", mode="before")
    @classmethod
    def validate_flag(cls, v: Any) -> Any:
        if _empty_to_none(v) is None:
            return False
        return v

    @field_validator("resource_instance", "rsc_tmp", mode="before")
    @classmethod
    def default_when_empty(cls, v: Any, info: ValidationInfo) -> Any:
        if _empty_to_none(v) is None:
            return cls.model_fields[info.field_name].default
        return v


def _format_errors(error: PydanticValidationError) -> list[str]:
    details = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "value"
        details.append(f"{location}: {err.get('msg')}")
    return details


class AgentConfig:
    """Effective configuration of one agent invocation.

    This is the main interface for accessing configuration throughout the agent.
    """

    def __init__(
        self,
        settings: Optional[AgentSettings] = None,
        cluster: Optional[ClusterEnvironment] = None,
    ) -> None:
        """Initialize from pre-built models (defaults if omitted).

        Use AgentConfig.load() to read the environment with error conversion.
        """
        self._settings = settings or AgentSettings()
        self._cluster = cluster or ClusterEnvironment()

    @classmethod
    def load(cls) -> "AgentConfig":
        """Load configuration from the process environment.

        Raises:
            ConfigurationError: If any parameter is invalid
        """
        try:
            settings = AgentSettings()
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid resource parameters",
                hint="Check the OCF_RESKEY_* parameters of the resource",
                details=_format_errors(e),
            ) from e

        try:
            cluster = ClusterEnvironment()
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid cluster environment",
                details=_format_errors(e),
            ) from e

        return cls(settings=settings, cluster=cluster)

    @property
    def settings(self) -> AgentSettings:
        """Get the resource parameters."""
        return self._settings

    @property
    def cluster(self) -> ClusterEnvironment:
        """Get the orchestrator metadata."""
        return self._cluster

    @property
    def requested_role(self) -> Optional[Role]:
        """Role the cluster asked for in this invocation, if any."""
        return Role.parse(self._cluster.role)

    @property
    def instance_name(self) -> str:
        """Resource instance name, without the clone number for anonymous clones."""
        name = self._cluster.resource_instance
        if self._cluster.globally_unique:
            return name
        return CLONE_SUFFIX.sub("", name)

    @property
    def state_path(self) -> Path:
        """Path of the persisted role file."""
        if self._settings.state is not None:
            return self._settings.state
        return self._cluster.rsc_tmp / f"{AGENT_NAME}-{self.instance_name}.state"

    def to_dict(self) -> dict[str, Any]:
        """Effective configuration as plain data."""
        s = self._settings
        return {
            "resource": {
                "instance": self.instance_name,
                "requested_role": self.requested_role.value if self.requested_role else None,
                "globally_unique": self._cluster.globally_unique,
            },
            "parameters": {
                "ports": s.ports,
                "source_ips": s.source_ips,
                "state": str(self.state_path),
                "notify_delay": s.notify_delay,
                "blocked_role": s.blocked_role.value,
                "chain": s.chain,
                "command_timeout": s.command_timeout,
                "audit": s.audit,
                "audit_log": str(s.audit_log),
            },
        }

    def to_yaml(self) -> str:
        """Convert configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
