"""Promotion score reporting.

The cluster manager promotes the instance with the highest promotion
score. The score is a transient node attribute (lifetime "reboot") written
through crm_attribute.
"""

from fwrole.core.context import ExecutionContext
from fwrole.core.executor import CommandExecutor
from fwrole.core.ocf import Role


CRM_ATTRIBUTE = "crm_attribute"

PROMOTED_SCORE = 100
UNPROMOTED_SCORE = 10


def score_for(role: Role) -> int:
    """Promotion score reported while holding role."""
    return PROMOTED_SCORE if role is Role.PROMOTED else UNPROMOTED_SCORE


class PromotionScore:
    """Writes this node's promotion score for the current resource."""

    def __init__(self, ctx: ExecutionContext, executor: CommandExecutor) -> None:
        self.ctx = ctx
        self.executor = executor

    def set(self, score: int) -> None:
        """Set the promotion score.

        Raises:
            ExecutionError: If crm_attribute fails
        """
        self.executor.run(
            [CRM_ATTRIBUTE, "--promotion", "--lifetime", "reboot", "--update", str(score)],
            description=f"Set promotion score to {score}",
        )

    def set_for(self, role: Role) -> None:
        """Set the promotion score matching role."""
        self.set(score_for(role))

    def clear(self) -> None:
        """Delete the promotion score.

        Raises:
            ExecutionError: If crm_attribute fails
        """
        self.executor.run(
            [CRM_ATTRIBUTE, "--promotion", "--lifetime", "reboot", "--delete"],
            description="Clear promotion score",
        )
