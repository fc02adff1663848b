"""Rule set model.

Derives the rules this agent enforces from its parameters and maps each
role to the rules that must be live while the node holds it. There are
only two rule sets: every rule, or none.
"""

import ipaddress
from dataclasses import dataclass
from typing import Optional

from fwrole.core.exceptions import ConfigurationError
from fwrole.core.ocf import Role
from fwrole.core.validation import split_csv, validate_port, validate_source


PROTOCOL_TCP = "tcp"

FAMILY_IPV4 = "ipv4"
FAMILY_IPV6 = "ipv6"
FAMILY_ANY = "any"


@dataclass(frozen=True)
class RuleSpec:
    """A single rejected (source, port) pair.

    source is a canonical address or network string, or None for any source.
    """
    port: int
    source: Optional[str] = None
    protocol: str = PROTOCOL_TCP

    @property
    def family(self) -> str:
        """Address family the rule applies to."""
        if self.source is None:
            return FAMILY_ANY
        version = ipaddress.ip_network(self.source, strict=False).version
        return FAMILY_IPV6 if version == 6 else FAMILY_IPV4

    def __str__(self) -> str:
        """Human-readable representation."""
        source = self.source or "any"
        return f"reject {self.protocol}/{self.port} from {source}"


def parse_ports(ports_csv: str) -> list[int]:
    """Parse the ports parameter.

    Raises:
        ConfigurationError: If the parameter is empty
        ValidationError: If any entry is not a valid port
    """
    entries = split_csv(ports_csv, "ports")
    if not entries:
        raise ConfigurationError(
            "Parameter 'ports' is required",
            hint="Set ports to a comma-separated list, e.g. ports=80,443",
        )
    return [validate_port(entry) for entry in entries]


def parse_sources(source_ips_csv: str) -> list[Optional[str]]:
    """Parse the source_ips parameter.

    An empty parameter yields a single wildcard source (None).

    Raises:
        ValidationError: If any entry is not an address or CIDR block
    """
    entries = split_csv(source_ips_csv, "source_ips")
    if not entries:
        return [None]
    return [validate_source(entry) for entry in entries]


def parse_rules(ports_csv: str, source_ips_csv: str = "") -> list[RuleSpec]:
    """Build the full rule set from the ports and source_ips parameters.

    Rules are the cross-product of ports and sources, in parameter order
    (ports outer, sources inner). Repeated entries collapse to their first
    occurrence.

    Raises:
        ConfigurationError: If the parameters are missing or malformed
    """
    ports = parse_ports(ports_csv)
    sources = parse_sources(source_ips_csv)

    rules = [RuleSpec(port=port, source=source) for port in ports for source in sources]
    return list(dict.fromkeys(rules))


def target_rule_set(
    role: Role,
    rules: list[RuleSpec],
    blocked_role: Role = Role.UNPROMOTED,
) -> list[RuleSpec]:
    """Rules that must be live while the node holds role.

    Args:
        role: Role to compute the rule set for
        rules: Full rule set from parse_rules()
        blocked_role: Role whose traffic is rejected

    Returns:
        All rules if role is the blocked role, otherwise no rules
    """
    if role is blocked_role:
        return list(rules)
    return []
