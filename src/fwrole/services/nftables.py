"""nftables backend.

Rules live in a dedicated inet table named after the configured chain,
with a single base chain hooked into input:

    table inet fwrole {
        chain input {
            type filter hook input priority 0; policy accept;
            ip saddr 10.0.0.0/24 tcp dport 5432 reject with tcp reset
        }
    }

Removing the table removes every rule we created and nothing else.
"""

import re

from fwrole.core.exceptions import ValidationError
from fwrole.core.validation import validate_source
from fwrole.services.firewall import FirewallBackend
from fwrole.services.rules import FAMILY_IPV6, RuleSpec


NFT_FAMILY = "inet"
NFT_CHAIN = "input"
NFT_CHAIN_SPEC = "{ type filter hook input priority 0 ; policy accept ; }"

RULE_PATTERN = re.compile(
    r"^\s*(?:(?P<family>ip6?) saddr (?P<source>\S+) )?"
    r"tcp dport (?P<port>\d+) reject with tcp reset\b"
)


class NftablesBackend(FirewallBackend):
    """Backend for nftables via the nft command."""

    name = "nftables"
    binary = "nft"
    binaries = ("nft",)

    @property
    def table(self) -> str:
        return self.chain

    def ensure_container(self) -> None:
        # "nft add" is a no-op for existing tables and chains
        self._run([self.binary, "add", "table", NFT_FAMILY, self.table])
        self._run([
            self.binary, "add", "chain", NFT_FAMILY, self.table, NFT_CHAIN,
            NFT_CHAIN_SPEC,
        ])

    def rule_exists(self, spec: RuleSpec) -> bool:
        return spec in self.list_rules()

    def apply_rule(self, spec: RuleSpec) -> bool:
        if self.rule_exists(spec):
            self.ctx.console.debug(f"Rule already present, skipping: {spec}")
            return False

        self.ctx.console.step(f"Adding rule: {spec}")
        self._run(
            [self.binary, "add", "rule", NFT_FAMILY, self.table, NFT_CHAIN]
            + self.rule_expression(spec),
            rule=spec,
        )
        return True

    def purge_all(self) -> bool:
        if not self._table_exists():
            self.ctx.console.debug(f"Table {NFT_FAMILY} {self.table} not present, nothing to purge")
            return False

        self.ctx.console.step(f"Removing table {NFT_FAMILY} {self.table}")
        self._run([self.binary, "delete", "table", NFT_FAMILY, self.table])
        return True

    def list_rules(self) -> list[RuleSpec]:
        result = self._run(
            [self.binary, "list", "chain", NFT_FAMILY, self.table, NFT_CHAIN],
            check=False,
        )
        if not result.success:
            return []
        return self.parse_rules(result.stdout)

    @staticmethod
    def rule_expression(spec: RuleSpec) -> list[str]:
        """Build the nft rule expression for a spec."""
        expr = []
        if spec.source is not None:
            family = "ip6" if spec.family == FAMILY_IPV6 else "ip"
            expr.extend([family, "saddr", spec.source])
        expr.extend([spec.protocol, "dport", str(spec.port), "reject", "with", "tcp", "reset"])
        return expr

    @staticmethod
    def parse_rules(output: str) -> list[RuleSpec]:
        """Parse `nft list chain` output into the rules we manage.

        Lines that are not reject rules of our shape are ignored.
        """
        rules = []
        for line in output.splitlines():
            match = RULE_PATTERN.match(line)
            if not match:
                continue

            source = match.group("source")
            if source is not None:
                try:
                    source = validate_source(source)
                except ValidationError:
                    continue

            spec = RuleSpec(port=int(match.group("port")), source=source)
            if spec not in rules:
                rules.append(spec)
        return rules

    def _table_exists(self) -> bool:
        result = self._run(
            [self.binary, "list", "table", NFT_FAMILY, self.table],
            check=False,
        )
        return result.success
