"""
Pytest fixtures for fwrole tests
Shared fakes for the firewall backend and command execution
"""

import os
from typing import Callable, Optional
from unittest.mock import Mock

import pytest

from fwrole.core.exceptions import ExecutionError, RuleMutationFailure
from fwrole.core.executor import CommandResult
from fwrole.services.firewall import FirewallBackend
from fwrole.services.rules import RuleSpec


# ============================================
# Fakes
# ============================================

class FakeExecutor:
    """Records commands and answers them through a handler.

    The handler receives the command list and returns (return_code, stdout).
    By default every command succeeds with no output.
    """

    def __init__(self, handler: Optional[Callable[[list[str]], tuple[int, str]]] = None):
        self.handler = handler or (lambda command: (0, ""))
        self.commands: list[list[str]] = []

    def run(self, command, *, description=None, check=True, timeout=None):
        self.commands.append(list(command))
        return_code, stdout = self.handler(list(command))
        stderr = "" if return_code == 0 else "simulated failure"
        result = CommandResult(
            command=list(command),
            return_code=return_code,
            stdout=stdout,
            stderr=stderr,
        )
        if check and not result.success:
            raise ExecutionError(
                f"Command failed: {' '.join(command)}",
                command=" ".join(command),
                return_code=return_code,
                stderr=stderr,
            )
        return result

    def ran(self, *prefix: str) -> list[list[str]]:
        """Commands starting with the given tokens."""
        return [c for c in self.commands if c[:len(prefix)] == list(prefix)]


class NftSimulator:
    """Stateful stand-in for the nft command.

    Tracks tables, chains and rule lines, and prints `nft list chain` the
    way nft does. Use as a FakeExecutor handler.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, list[str]]] = {}

    def __call__(self, command: list[str]) -> tuple[int, str]:
        verb, kind, _family, table = command[1:5]
        rest = command[5:]

        if verb == "add" and kind == "table":
            self.tables.setdefault(table, {})
            return 0, ""
        if table not in self.tables:
            return 1, ""

        chains = self.tables[table]
        if verb == "add" and kind == "chain":
            chains.setdefault(rest[0], [])
            return 0, ""
        if verb == "add" and kind == "rule":
            if rest[0] not in chains:
                return 1, ""
            chains[rest[0]].append(" ".join(rest[1:]))
            return 0, ""
        if verb == "delete" and kind == "table":
            del self.tables[table]
            return 0, ""
        if verb == "list" and kind == "table":
            return 0, f"table inet {table} {{\n}}\n"
        if verb == "list" and kind == "chain":
            if rest[0] not in chains:
                return 1, ""
            lines = [f"table inet {table} {{", f"\tchain {rest[0]} {{",
                     "\t\ttype filter hook input priority filter; policy accept;"]
            lines += [f"\t\t{rule}" for rule in chains[rest[0]]]
            lines += ["\t}", "}"]
            return 0, "\n".join(lines) + "\n"
        return 1, ""


class IptablesSimulator:
    """Stateful stand-in for iptables and ip6tables.

    Keeps chains, rules and INPUT jumps per binary, and prints `-S` output
    with explicit host prefixes the way iptables does. Use as a
    FakeExecutor handler.
    """

    def __init__(self):
        self.chains: dict[str, dict[str, list[list[str]]]] = {"iptables": {}, "ip6tables": {}}
        self.jumps: dict[str, int] = {"iptables": 0, "ip6tables": 0}

    def __call__(self, command: list[str]) -> tuple[int, str]:
        binary = command[0]
        flag, target, *args = command[2:]
        chains = self.chains[binary]

        if target == "INPUT":
            if flag == "-C":
                return (0 if self.jumps[binary] else 1), ""
            if flag == "-I" and args[-1] in chains:
                self.jumps[binary] += 1
                return 0, ""
            if flag == "-D" and self.jumps[binary]:
                self.jumps[binary] -= 1
                return 0, ""
            return 1, ""

        if flag == "-N":
            if target in chains:
                return 1, ""
            chains[target] = []
            return 0, ""
        if target not in chains:
            return 1, ""

        if flag == "-S":
            lines = [f"-N {target}"]
            lines += [f"-A {target} {self._render(binary, rule)}" for rule in chains[target]]
            return 0, "\n".join(lines) + "\n"
        if flag == "-C":
            return (0 if args in chains[target] else 1), ""
        if flag == "-A":
            chains[target].append(args)
            return 0, ""
        if flag == "-F":
            chains[target].clear()
            return 0, ""
        if flag == "-X":
            if self.jumps[binary] or chains[target]:
                return 1, ""
            del chains[target]
            return 0, ""
        return 1, ""

    def rules(self, binary: str, chain: str = "fwrole") -> list[list[str]]:
        return self.chains[binary].get(chain, [])

    @staticmethod
    def _render(binary: str, rule: list[str]) -> str:
        options = dict(zip(rule[::2], rule[1::2]))
        parts = []
        source = options.get("-s")
        if source is not None:
            if "/" not in source:
                source += "/128" if binary == "ip6tables" else "/32"
            parts += ["-s", source]
        parts += ["-p", options["-p"], "-m", options["-p"], "--dport", options["--dport"],
                  "-j", options["-j"], "--reject-with", options["--reject-with"]]
        return " ".join(parts)


class FakeBackend(FirewallBackend):
    """In-memory packet filter."""

    name = "fake"
    binary = "fake"

    def __init__(self, ctx, chain: str = "fwrole"):
        super().__init__(ctx, executor=None, chain=chain)
        self.live: list[RuleSpec] = []
        self.container = False
        self.calls: list = []
        self.fail_on: Optional[RuleSpec] = None

    def ensure_container(self) -> None:
        self.calls.append("ensure_container")
        self.container = True

    def rule_exists(self, spec: RuleSpec) -> bool:
        return spec in self.live

    def apply_rule(self, spec: RuleSpec) -> bool:
        self.calls.append(("apply_rule", spec))
        if spec == self.fail_on:
            raise RuleMutationFailure(
                f"fake command failed for {spec}",
                rule=str(spec),
                chain=self.chain,
            )
        if spec in self.live:
            return False
        self.live.append(spec)
        return True

    def purge_all(self) -> bool:
        self.calls.append("purge_all")
        removed = self.container or bool(self.live)
        self.live.clear()
        self.container = False
        return removed

    def list_rules(self) -> list[RuleSpec]:
        return list(self.live)


# ============================================
# Fixtures
# ============================================

@pytest.fixture(autouse=True)
def clean_cluster_env(monkeypatch):
    """Remove cluster-manager variables inherited from the test runner."""
    for key in list(os.environ):
        if key.startswith(("OCF_", "HA_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_ctx():
    """Execution context with a silent console."""
    ctx = Mock()
    ctx.console = Mock()
    ctx.command_timeout = 15
    return ctx


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def fake_backend(mock_ctx):
    return FakeBackend(mock_ctx)
