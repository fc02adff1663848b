"""Firewall backends, rule model and the role state machine."""

from fwrole.services.agent import RoleAgent, DriftReport
from fwrole.services.firewall import FirewallBackend, detect_backend
from fwrole.services.iptables import IptablesBackend
from fwrole.services.nftables import NftablesBackend
from fwrole.services.rules import RuleSpec, parse_rules, target_rule_set

__all__ = [
    "RoleAgent",
    "DriftReport",
    "FirewallBackend",
    "detect_backend",
    "IptablesBackend",
    "NftablesBackend",
    "RuleSpec",
    "parse_rules",
    "target_rule_set",
]
