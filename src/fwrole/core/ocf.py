"""OCF resource agent vocabulary: exit codes and cluster roles."""

from enum import Enum, IntEnum
from typing import Optional


class OcfStatus(IntEnum):
    """OCF resource agent exit codes."""
    SUCCESS = 0
    ERR_GENERIC = 1
    ERR_ARGS = 2
    ERR_UNIMPLEMENTED = 3
    ERR_PERM = 4
    ERR_INSTALLED = 5
    ERR_CONFIGURED = 6
    NOT_RUNNING = 7
    RUNNING_PROMOTED = 8
    FAILED_PROMOTED = 9


class Role(str, Enum):
    """Role of a promotable resource instance on this node."""
    UNPROMOTED = "Unpromoted"
    PROMOTED = "Promoted"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Parse a role name as reported by the cluster manager.

        Accepts the legacy names Master, Slave and Started.

        Returns:
            Role, or None if value is empty or not a role name
        """
        if not value:
            return None

        name = value.strip().lower()
        if name in ("promoted", "master"):
            return cls.PROMOTED
        if name in ("unpromoted", "slave", "started"):
            return cls.UNPROMOTED
        return None

    def __str__(self) -> str:
        return self.value
