"""Role state machine.

Converges the live firewall to the rule set of the role the cluster
assigns, persists the role reached and reports the promotion score.

States: Unpromoted, Promoted, and implicit Absent (not started).

    start    Absent                -> Unpromoted
    promote  Absent | Unpromoted   -> Promoted
    demote   Promoted              -> Unpromoted
    stop     any                   -> Absent
    monitor  read-only

Reconciliation never diffs against a previous snapshot. It applies the
whole target rule set through idempotent backend operations, so repeated
or duplicated actions converge to the same live state. Rules applied
before a failure are left in place: partial enforcement is kept over
none.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from fwrole.core.audit import AuditEventType, AuditLogger, AuditResult
from fwrole.core.context import ExecutionContext
from fwrole.core.exceptions import FwRoleError
from fwrole.core.ocf import OcfStatus, Role
from fwrole.services.cluster import PromotionScore, score_for
from fwrole.services.firewall import FirewallBackend
from fwrole.services.rules import RuleSpec, target_rule_set
from fwrole.services.state_file import RoleStateFile


@dataclass
class DriftReport:
    """Difference between live rules and the rule set of a role."""
    expected_role: Role
    missing_rules: list[RuleSpec] = field(default_factory=list)  # Expected but not live
    unexpected_rules: list[RuleSpec] = field(default_factory=list)  # Live but not expected

    @property
    def has_drift(self) -> bool:
        """Check if there is any drift."""
        return bool(self.missing_rules) or bool(self.unexpected_rules)

    @property
    def missing_count(self) -> int:
        return len(self.missing_rules)

    @property
    def unexpected_count(self) -> int:
        return len(self.unexpected_rules)

    def __str__(self) -> str:
        if not self.has_drift:
            return f"live rules match role {self.expected_role.value}"
        return (
            f"live rules do not match role {self.expected_role.value}: "
            f"{self.missing_count} missing, {self.unexpected_count} unexpected"
        )


class RoleAgent:
    """Role-driven firewall rule reconciliation.

    Each public action returns the OCF status to report. Failures raise
    FwRoleError subclasses carrying their own exit code.
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        backend: FirewallBackend,
        state_file: RoleStateFile,
        score: PromotionScore,
        rules: list[RuleSpec],
        *,
        blocked_role: Role = Role.UNPROMOTED,
        requested_role: Optional[Role] = None,
        audit: Optional[AuditLogger] = None,
        resource: str = "fwrole",
    ) -> None:
        """Initialize the state machine.

        Args:
            ctx: Execution context
            backend: Packet-filter backend
            state_file: Persisted role of this instance
            score: Promotion score writer
            rules: Full rule set, already validated
            blocked_role: Role whose traffic is rejected
            requested_role: Role the cluster asked for in this invocation
            audit: Audit logger for role transitions
            resource: Resource instance name for audit records
        """
        self.ctx = ctx
        self.backend = backend
        self.state_file = state_file
        self.score = score
        self.rules = rules
        self.blocked_role = blocked_role
        self.requested_role = requested_role
        self.audit = audit
        self.resource = resource

    # =========================================================================
    # Actions
    # =========================================================================

    def start(self) -> OcfStatus:
        """Start the resource in the Unpromoted role."""
        def _start() -> None:
            if self.requested_role is Role.PROMOTED:
                self.ctx.console.info("Start requested in Promoted role, leaving rules for promote")
            else:
                self.reconcile(Role.UNPROMOTED)
            self._enter(Role.UNPROMOTED)

        return self._transition(AuditEventType.AGENT_START, Role.UNPROMOTED, _start)

    def promote(self) -> OcfStatus:
        """Move to the Promoted role (from Unpromoted or Absent)."""
        def _promote() -> None:
            self.reconcile(Role.PROMOTED)
            self._enter(Role.PROMOTED)

        return self._transition(AuditEventType.AGENT_PROMOTE, Role.PROMOTED, _promote)

    def demote(self) -> OcfStatus:
        """Move back to the Unpromoted role."""
        def _demote() -> None:
            self.reconcile(Role.UNPROMOTED)
            self._enter(Role.UNPROMOTED)

        return self._transition(AuditEventType.AGENT_DEMOTE, Role.UNPROMOTED, _demote)

    def stop(self) -> OcfStatus:
        """Remove all rules, the persisted role and the promotion score."""
        def _stop() -> None:
            self.backend.purge_all()
            self.state_file.delete()
            self.score.clear()

        return self._transition(AuditEventType.AGENT_STOP, None, _stop)

    def monitor(self) -> OcfStatus:
        """Check that live rules match the expected role. Never mutates.

        The expected role is the one the cluster asks about, falling back to
        the persisted role.

        Returns:
            SUCCESS (Unpromoted) or RUNNING_PROMOTED (Promoted) when healthy,
            NOT_RUNNING when not started or when live rules drifted
        """
        persisted = self.state_file.read()
        if persisted is None:
            self.ctx.console.verbose("No persisted role, resource is not running")
            return OcfStatus.NOT_RUNNING

        expected = self.requested_role or persisted
        report = self.check_drift(expected)

        if report.has_drift:
            self.ctx.console.warn(f"monitor: {report}")
            for spec in report.missing_rules:
                self.ctx.console.verbose(f"  missing: {spec}")
            for spec in report.unexpected_rules:
                self.ctx.console.verbose(f"  unexpected: {spec}")
            return OcfStatus.NOT_RUNNING

        self.ctx.console.verbose(f"monitor: {report}")
        if expected is Role.PROMOTED:
            return OcfStatus.RUNNING_PROMOTED
        return OcfStatus.SUCCESS

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def target_rules(self, role: Role) -> list[RuleSpec]:
        """Rules that must be live while holding role."""
        return target_rule_set(role, self.rules, self.blocked_role)

    def reconcile(self, role: Role) -> None:
        """Converge live rules to the rule set of role.

        Raises:
            RuleMutationFailure: If a backend mutation fails
        """
        target = self.target_rules(role)

        if not target:
            self.ctx.console.step(f"Removing all rules for role {role.value}")
            self.backend.purge_all()
            return

        self.ctx.console.step(f"Enforcing {len(target)} rule(s) for role {role.value}")
        self.backend.ensure_container()
        added = sum(1 for spec in target if self.backend.apply_rule(spec))
        self.ctx.console.verbose(f"{added} rule(s) added, {len(target) - added} already present")

    def check_drift(self, role: Role) -> DriftReport:
        """Compare live rules with the rule set of role."""
        expected = set(self.target_rules(role))
        report = DriftReport(expected_role=role)

        for spec in self.rules:
            present = self.backend.rule_exists(spec)
            if spec in expected and not present:
                report.missing_rules.append(spec)
            elif spec not in expected and present:
                report.unexpected_rules.append(spec)

        return report

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _enter(self, role: Role) -> None:
        """Record role as reached: persist it, then report its score."""
        self.state_file.write(role)
        self.score.set_for(role)
        self.ctx.console.success(
            f"Role {role.value} reached (promotion score {score_for(role)})"
        )

    def _transition(
        self,
        event_type: AuditEventType,
        role: Optional[Role],
        action: Callable[[], None],
    ) -> OcfStatus:
        """Run a transition and record its outcome in the audit log."""
        try:
            action()
        except FwRoleError as e:
            self._audit(event_type, AuditResult.FAILURE, role, error=e.message)
            raise

        self._audit(event_type, AuditResult.SUCCESS, role)
        return OcfStatus.SUCCESS

    def _audit(
        self,
        event_type: AuditEventType,
        result: AuditResult,
        role: Optional[Role],
        error: Optional[str] = None,
    ) -> None:
        if self.audit is None:
            return
        self.audit.log_transition(
            event_type,
            result,
            resource=self.resource,
            role=role.value if role else None,
            parameters={
                "backend": self.backend.name,
                "chain": self.backend.chain,
                "rules": len(self.rules),
            },
            error=error,
        )


def acknowledge_notification(
    ctx: ExecutionContext,
    delay: int,
    notify_type: Optional[str] = None,
    operation: Optional[str] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> OcfStatus:
    """Acknowledge a cluster notification after the configured delay.

    The delay gives a role change on another node time to propagate
    before the cluster continues.
    """
    label = "-".join(part for part in (notify_type, operation) if part) or "unknown"

    if delay > 0:
        ctx.console.verbose(f"Delaying notification {label} by {delay}s")
        sleep(delay)

    ctx.console.debug(f"Notification {label} acknowledged")
    return OcfStatus.SUCCESS
