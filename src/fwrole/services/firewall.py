"""Packet-filter backend interface and backend selection.

A backend translates rule operations into commands of one packet-filter
tool. Backends hold no state between calls: every query goes to the live
firewall.

Selection probes the execution path once per invocation. nftables wins
when both tools are installed, so all nodes of a cluster pick the same
backend without configuration.
"""

import shutil
from abc import ABC, abstractmethod
from typing import Optional

from fwrole.core.config import DEFAULT_CHAIN
from fwrole.core.context import ExecutionContext
from fwrole.core.executor import CommandExecutor, CommandResult
from fwrole.core.exceptions import BackendUnavailable, ExecutionError, RuleMutationFailure
from fwrole.services.rules import RuleSpec


class FirewallBackend(ABC):
    """Capability set shared by all packet-filter backends.

    Every mutation is idempotent: ensure_container() and apply_rule() are
    no-ops when the desired state is already live, and purge_all() succeeds
    when there is nothing to remove.
    """

    name: str = ""
    binary: str = ""

    # Every tool the backend runs; all must be installed for it to be selected
    binaries: tuple[str, ...] = ()

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: CommandExecutor,
        chain: str = DEFAULT_CHAIN,
    ) -> None:
        """Initialize backend.

        Args:
            ctx: Execution context
            executor: Command executor
            chain: Name of the table/chain that groups our rules
        """
        self.ctx = ctx
        self.executor = executor
        self.chain = chain

    @abstractmethod
    def ensure_container(self) -> None:
        """Create the grouping table/chain if it does not exist."""

    @abstractmethod
    def rule_exists(self, spec: RuleSpec) -> bool:
        """Check if a rule is live. Never mutates."""

    @abstractmethod
    def apply_rule(self, spec: RuleSpec) -> bool:
        """Add a rule rejecting matching traffic.

        Returns:
            True if the rule was added, False if it was already present
        """

    @abstractmethod
    def purge_all(self) -> bool:
        """Remove all our rules and the grouping table/chain.

        Returns:
            True if anything was removed, False if there was nothing to remove
        """

    @abstractmethod
    def list_rules(self) -> list[RuleSpec]:
        """List the rules currently live in the grouping table/chain."""

    def _run(
        self,
        command: list[str],
        *,
        check: bool = True,
        rule: Optional[RuleSpec] = None,
    ) -> CommandResult:
        """Run a backend command.

        Raises:
            RuleMutationFailure: If the command fails and check=True,
                or cannot run at all
        """
        try:
            result = self.executor.run(command, check=False)
        except ExecutionError as e:
            raise RuleMutationFailure(
                f"{self.name} command failed: {' '.join(command)}",
                rule=str(rule) if rule else None,
                chain=self.chain,
                details=[e.message] + e.details,
            ) from e

        if check and not result.success:
            details = [f"Exit code: {result.return_code}"]
            if result.stderr:
                details.append(result.stderr.strip())
            raise RuleMutationFailure(
                f"{self.name} command failed: {' '.join(command)}",
                rule=str(rule) if rule else None,
                chain=self.chain,
                details=details,
            )

        return result

    def __str__(self) -> str:
        return f"{self.name} ({self.chain})"


def detect_backend(
    ctx: ExecutionContext,
    executor: CommandExecutor,
    chain: str = DEFAULT_CHAIN,
) -> FirewallBackend:
    """Select the packet-filter backend for this node.

    Args:
        ctx: Execution context
        executor: Command executor
        chain: Name of the table/chain that groups our rules

    Returns:
        NftablesBackend if nft is installed, else IptablesBackend if both
        iptables and ip6tables are installed

    Raises:
        BackendUnavailable: If no backend has all of its tools installed
    """
    from fwrole.services.iptables import IptablesBackend
    from fwrole.services.nftables import NftablesBackend

    details = []
    for backend_cls in (NftablesBackend, IptablesBackend):
        missing = [b for b in backend_cls.binaries if not shutil.which(b)]
        if not missing:
            ctx.console.debug(f"Using {backend_cls.name} backend")
            return backend_cls(ctx, executor, chain)
        details.append(f"{backend_cls.name}: {', '.join(missing)} not found in PATH")

    raise BackendUnavailable(
        "No packet-filter backend found",
        hint="Install nftables (nft), or iptables with ip6tables, on this node",
        details=details,
    )
