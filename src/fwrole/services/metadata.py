"""OCF resource agent metadata.

Describes the agent's parameters and supported actions as the XML
document the cluster manager requests with the meta-data action.
"""

from dataclasses import dataclass
from typing import Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from fwrole import __version__
from fwrole.core.config import (
    AGENT_NAME,
    DEFAULT_AUDIT_LOG,
    DEFAULT_CHAIN,
    DEFAULT_COMMAND_TIMEOUT,
)
from fwrole.core.ocf import Role


OCF_API_VERSION = "1.1"


@dataclass(frozen=True)
class ParameterInfo:
    """One resource parameter."""
    name: str
    shortdesc: str
    longdesc: str
    content_type: str = "string"
    default: Optional[str] = None
    required: bool = False
    unique: bool = False


@dataclass(frozen=True)
class ActionInfo:
    """One supported action with its default timeout."""
    name: str
    timeout: str
    interval: Optional[str] = None
    role: Optional[str] = None
    depth: Optional[str] = None


PARAMETERS: tuple[ParameterInfo, ...] = (
    ParameterInfo(
        name="ports",
        shortdesc="TCP ports to control",
        longdesc=(
            "Comma-separated list of TCP destination ports (1-65535). "
            "Connections to these ports are rejected while the node holds "
            "the blocked role."
        ),
        required=True,
    ),
    ParameterInfo(
        name="source_ips",
        shortdesc="Source addresses to control",
        longdesc=(
            "Comma-separated list of IPv4/IPv6 addresses or CIDR blocks. "
            "One rule is created for every port and source. "
            "When empty, connections from any source are rejected."
        ),
        default="",
    ),
    ParameterInfo(
        name="state",
        shortdesc="State file",
        longdesc=(
            "Location of the file holding the last role this node reached. "
            "Defaults to a per-instance file in the resource agent temporary directory."
        ),
        unique=True,
    ),
    ParameterInfo(
        name="notify_delay",
        shortdesc="Notification delay",
        longdesc="Seconds to wait before acknowledging a notification.",
        content_type="integer",
        default="0",
    ),
    ParameterInfo(
        name="blocked_role",
        shortdesc="Role that rejects traffic",
        longdesc=(
            f"Role during which the rules are enforced: {Role.UNPROMOTED.value} "
            f"(standbys reject, the promoted node accepts) or {Role.PROMOTED.value}."
        ),
        default=Role.UNPROMOTED.value,
    ),
    ParameterInfo(
        name="chain",
        shortdesc="Table/chain name",
        longdesc=(
            "Name of the nftables table or iptables chain holding the rules. "
            "Everything in it belongs to this resource and is removed on stop."
        ),
        default=DEFAULT_CHAIN,
    ),
    ParameterInfo(
        name="command_timeout",
        shortdesc="Firewall command timeout",
        longdesc="Seconds after which a single firewall or cluster command is abandoned.",
        content_type="integer",
        default=str(DEFAULT_COMMAND_TIMEOUT),
    ),
    ParameterInfo(
        name="audit",
        shortdesc="Audit role transitions",
        longdesc="Record start, stop, promote and demote outcomes in the audit log.",
        content_type="boolean",
        default="true",
    ),
    ParameterInfo(
        name="audit_log",
        shortdesc="Audit log file",
        longdesc="JSON lines audit log of role transitions.",
        default=str(DEFAULT_AUDIT_LOG),
    ),
)

ACTIONS: tuple[ActionInfo, ...] = (
    ActionInfo(name="start", timeout="30s"),
    ActionInfo(name="stop", timeout="30s"),
    ActionInfo(name="promote", timeout="30s"),
    ActionInfo(name="demote", timeout="30s"),
    ActionInfo(name="monitor", timeout="20s", interval="10s", role=Role.PROMOTED.value, depth="0"),
    ActionInfo(name="monitor", timeout="20s", interval="11s", role=Role.UNPROMOTED.value, depth="0"),
    ActionInfo(name="notify", timeout="30s"),
    ActionInfo(name="meta-data", timeout="5s"),
    ActionInfo(name="validate-all", timeout="20s"),
)


jinja_env = Environment(
    loader=PackageLoader("fwrole", "templates"),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_metadata() -> str:
    """Render the resource agent metadata XML document."""
    template = jinja_env.get_template("metadata.xml")
    return template.render(
        agent_name=AGENT_NAME,
        agent_version=__version__,
        api_version=OCF_API_VERSION,
        parameters=PARAMETERS,
        actions=ACTIONS,
    )
