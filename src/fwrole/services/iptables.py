"""Iptables backend.

Rules live in a dedicated chain, jumped to from INPUT, on both iptables
and ip6tables. A rule goes to the binaries its source address family
needs: IPv4 sources to iptables, IPv6 sources to ip6tables, and
any-source rules to both.

All commands use -w to wait for the xtables lock instead of failing on
concurrent access.
"""

from typing import Optional

from fwrole.core.exceptions import ValidationError
from fwrole.core.executor import CommandResult
from fwrole.core.validation import validate_source
from fwrole.services.firewall import FirewallBackend
from fwrole.services.rules import FAMILY_IPV4, FAMILY_IPV6, RuleSpec


IPTABLES = "iptables"
IP6TABLES = "ip6tables"

INPUT_CHAIN = "INPUT"

# Upper bound on duplicate INPUT jumps removed by purge_all()
MAX_JUMP_REMOVALS = 16


class IptablesBackend(FirewallBackend):
    """Backend for iptables and ip6tables."""

    name = "iptables"
    binary = IPTABLES

    binaries = (IPTABLES, IP6TABLES)

    def ensure_container(self) -> None:
        for binary in self.binaries:
            if not self._chain_exists(binary):
                self.ctx.console.step(f"Creating chain {self.chain} ({binary})")
                self._run_tables(binary, ["-N", self.chain])

            if not self._jump_exists(binary):
                self._run_tables(binary, ["-I", INPUT_CHAIN, "1", "-j", self.chain])

    def rule_exists(self, spec: RuleSpec) -> bool:
        return all(self._rule_present(binary, spec) for binary in self.binaries_for(spec))

    def apply_rule(self, spec: RuleSpec) -> bool:
        missing = [b for b in self.binaries_for(spec) if not self._rule_present(b, spec)]
        if not missing:
            self.ctx.console.debug(f"Rule already present, skipping: {spec}")
            return False

        self.ctx.console.step(f"Adding rule: {spec}")
        for binary in missing:
            self._run_tables(binary, ["-A", self.chain] + self.rule_args(spec), rule=spec)
        return True

    def purge_all(self) -> bool:
        removed = False
        for binary in self.binaries:
            if not self._chain_exists(binary):
                continue

            self.ctx.console.step(f"Removing chain {self.chain} ({binary})")
            for _ in range(MAX_JUMP_REMOVALS):
                if not self._jump_exists(binary):
                    break
                self._run_tables(binary, ["-D", INPUT_CHAIN, "-j", self.chain])

            self._run_tables(binary, ["-F", self.chain])
            self._run_tables(binary, ["-X", self.chain])
            removed = True

        if not removed:
            self.ctx.console.debug(f"Chain {self.chain} not present, nothing to purge")
        return removed

    def list_rules(self) -> list[RuleSpec]:
        rules: list[RuleSpec] = []
        for binary in self.binaries:
            result = self._run_tables(binary, ["-S", self.chain], check=False)
            if not result.success:
                continue
            for spec in self.parse_rules(result.stdout, self.chain):
                if spec not in rules:
                    rules.append(spec)
        return rules

    @staticmethod
    def binaries_for(spec: RuleSpec) -> tuple[str, ...]:
        """Binaries that must carry a rule, by its source address family."""
        if spec.family == FAMILY_IPV4:
            return (IPTABLES,)
        if spec.family == FAMILY_IPV6:
            return (IP6TABLES,)
        return (IPTABLES, IP6TABLES)

    @staticmethod
    def rule_args(spec: RuleSpec) -> list[str]:
        """Convert a spec to iptables rule-specification arguments."""
        args = ["-p", spec.protocol]
        if spec.source is not None:
            args.extend(["-s", spec.source])
        args.extend([
            "--dport", str(spec.port),
            "-j", "REJECT", "--reject-with", "tcp-reset",
        ])
        return args

    @staticmethod
    def parse_rules(output: str, chain: str) -> list[RuleSpec]:
        """Parse `iptables -S <chain>` output into the rules we manage.

        Example line:
        -A fwrole -s 10.0.0.1/32 -p tcp -m tcp --dport 80 -j REJECT --reject-with tcp-reset
        """
        rules = []
        for line in output.splitlines():
            parts = line.split()
            if len(parts) < 2 or parts[0] != "-A" or parts[1] != chain:
                continue

            options = _option_values(parts[2:])
            if options.get("-j") != "REJECT" or options.get("-p") != "tcp":
                continue

            try:
                port = int(options.get("--dport", ""))
            except ValueError:
                continue

            source = options.get("-s")
            if source is not None:
                try:
                    source = validate_source(source)
                except ValidationError:
                    continue

            spec = RuleSpec(port=port, source=source)
            if spec not in rules:
                rules.append(spec)
        return rules

    def _run_tables(
        self,
        binary: str,
        args: list[str],
        *,
        check: bool = True,
        rule: Optional[RuleSpec] = None,
    ) -> CommandResult:
        return self._run([binary, "-w"] + args, check=check, rule=rule)

    def _chain_exists(self, binary: str) -> bool:
        return self._run_tables(binary, ["-S", self.chain], check=False).success

    def _jump_exists(self, binary: str) -> bool:
        return self._run_tables(
            binary, ["-C", INPUT_CHAIN, "-j", self.chain], check=False,
        ).success

    def _rule_present(self, binary: str, spec: RuleSpec) -> bool:
        return self._run_tables(
            binary, ["-C", self.chain] + self.rule_args(spec), check=False,
        ).success


def _option_values(tokens: list[str]) -> dict[str, str]:
    """Map each option flag to the token following it."""
    values = {}
    for i, token in enumerate(tokens[:-1]):
        if token.startswith("-"):
            values[token] = tokens[i + 1]
    return values
