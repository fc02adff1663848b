"""Execution context for agent actions.

The ExecutionContext holds the configuration and output settings of one
agent invocation. It is constructed once and passed explicitly to the
executor, the firewall backends and the role state machine.
"""

from dataclasses import dataclass, field
from typing import Optional

from fwrole.core.config import AgentConfig
from fwrole.core.output import Console, console, Verbosity


@dataclass
class ExecutionContext:
    """Execution context passed to all services.

    Attributes:
        verbosity: Output verbosity level (0-3)
        no_color: If True, disable colored output
        action: Name of the agent action being run
    """

    verbosity: int = 1
    no_color: bool = False
    action: Optional[str] = None

    # Internal state (initialized lazily)
    _config: Optional[AgentConfig] = field(default=None, repr=False)
    _console: Console = field(default_factory=lambda: console, repr=False)

    def __post_init__(self) -> None:
        """Configure console after initialization."""
        self._console.configure(
            verbosity=self.verbosity,
            no_color=self.no_color,
        )

    @property
    def config(self) -> AgentConfig:
        """Get agent configuration (lazy loaded from the environment).

        Raises:
            ConfigurationError: If the environment holds invalid parameters
        """
        if self._config is None:
            self._config = AgentConfig.load()
        return self._config

    @property
    def console(self) -> Console:
        """Get console for output."""
        return self._console

    @property
    def command_timeout(self) -> int:
        """Upper bound in seconds for every external command."""
        return self.config.settings.command_timeout


def create_context(
    verbose: int = 0,
    no_color: bool = False,
    action: Optional[str] = None,
    debug: bool = False,
    config: Optional[AgentConfig] = None,
) -> ExecutionContext:
    """Create an execution context from CLI options.

    Args:
        verbose: Increase verbosity (can be repeated)
        no_color: Disable colored output
        action: Agent action being run
        debug: Force debug output (HA_debug set by the cluster)
        config: Pre-loaded configuration (loaded lazily if None)

    Returns:
        Configured execution context
    """
    if debug:
        verbosity = Verbosity.DEBUG
    else:
        verbosity = min(Verbosity.NORMAL + verbose, Verbosity.DEBUG)

    return ExecutionContext(
        verbosity=verbosity,
        no_color=no_color,
        action=action,
        _config=config,
    )
