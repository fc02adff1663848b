"""Main CLI entry point using Typer.

The cluster manager runs the agent as `fwrole <action>` with the resource
parameters in OCF_RESKEY_* environment variables. Every action exits with
an OCF status code.

Operator commands (status, show-config) are read-only.
"""

from typing import Annotated, Callable

import typer

from fwrole import __version__
from fwrole.core import (
    AgentConfig,
    AuditLogger,
    CommandExecutor,
    ExecutionContext,
    FwRoleError,
    OcfStatus,
    console,
    create_context,
)
from fwrole.services.agent import RoleAgent, acknowledge_notification
from fwrole.services.cluster import PromotionScore
from fwrole.services.firewall import detect_backend
from fwrole.services.metadata import render_metadata
from fwrole.services.rules import parse_rules
from fwrole.services.state_file import RoleStateFile


app = typer.Typer(
    name="fwrole",
    help="Role-driven firewall resource agent for Pacemaker clusters.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


VerboseOption = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
]

NoColorOption = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"fwrole version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Role-driven firewall resource agent.

    Rejects TCP connections to the configured ports while the node holds
    the blocked role, using nftables or iptables.

    [bold]Examples:[/bold]
        OCF_RESKEY_ports=5432 OCF_RESKEY_source_ips=10.0.0.0/24 fwrole validate-all
        fwrole meta-data
        fwrole status
    """
    pass


# =============================================================================
# Helpers
# =============================================================================

def _load_context(action: str, verbose: int = 0, no_color: bool = False) -> ExecutionContext:
    """Create the context and load configuration from the environment.

    Raises:
        ConfigurationError: If the environment holds invalid parameters
    """
    config = AgentConfig.load()
    return create_context(
        verbose=verbose,
        no_color=no_color,
        action=action,
        debug=config.cluster.debug,
        config=config,
    )


def _build_agent(ctx: ExecutionContext, validate_rules: bool = True) -> RoleAgent:
    """Assemble the role state machine for this invocation.

    Parameters are validated before the backend is probed, so invalid
    configuration never reaches a firewall command.

    Raises:
        ConfigurationError: If ports or source_ips are invalid
        BackendUnavailable: If no packet-filter tool is installed
    """
    config = ctx.config
    settings = config.settings

    rules = parse_rules(settings.ports, settings.source_ips) if validate_rules else []

    executor = CommandExecutor(ctx)
    backend = detect_backend(ctx, executor, settings.chain)

    return RoleAgent(
        ctx,
        backend,
        RoleStateFile(ctx, config.state_path),
        PromotionScore(ctx, executor),
        rules,
        blocked_role=settings.blocked_role,
        requested_role=config.requested_role,
        audit=AuditLogger(log_path=settings.audit_log, enabled=settings.audit),
        resource=config.instance_name,
    )


def _handle_error(action: str, error: FwRoleError) -> None:
    """Report an error and exit with its OCF status."""
    console.error(f"{action} failed: {error.message}")

    for detail in error.details:
        console.detail(detail)

    if error.hint:
        console.hint(error.hint)

    raise typer.Exit(int(error.exit_code))


def _system_error(error: OSError) -> FwRoleError:
    """Wrap an OS error no service anticipated."""
    return FwRoleError(
        f"System error: {error.strerror or error}",
        details=[str(error)],
    )


def _run_action(
    action: str,
    operation: Callable[[RoleAgent], OcfStatus],
    *,
    verbose: int = 0,
    no_color: bool = False,
    validate_rules: bool = True,
) -> None:
    """Run one agent action and exit with its status."""
    try:
        ctx = _load_context(action, verbose, no_color)
        agent = _build_agent(ctx, validate_rules=validate_rules)
        status = operation(agent)
    except FwRoleError as e:
        _handle_error(action, e)
    except OSError as e:
        _handle_error(action, _system_error(e))

    raise typer.Exit(int(status))


# =============================================================================
# Resource Agent Actions
# =============================================================================

@app.command("start")
def agent_start(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Start the resource in the Unpromoted role."""
    _run_action("start", RoleAgent.start, verbose=verbose, no_color=no_color)


@app.command("stop")
def agent_stop(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Remove all rules and the persisted role."""
    _run_action(
        "stop", RoleAgent.stop,
        verbose=verbose, no_color=no_color, validate_rules=False,
    )


@app.command("promote")
def agent_promote(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Move the resource to the Promoted role."""
    _run_action("promote", RoleAgent.promote, verbose=verbose, no_color=no_color)


@app.command("demote")
def agent_demote(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Move the resource back to the Unpromoted role."""
    _run_action("demote", RoleAgent.demote, verbose=verbose, no_color=no_color)


@app.command("monitor")
def agent_monitor(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Check that live rules match the expected role."""
    _run_action("monitor", RoleAgent.monitor, verbose=verbose, no_color=no_color)


@app.command("notify")
def agent_notify(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Acknowledge a cluster notification after notify_delay seconds."""
    try:
        ctx = _load_context("notify", verbose, no_color)
        cluster = ctx.config.cluster
        status = acknowledge_notification(
            ctx,
            ctx.config.settings.notify_delay,
            notify_type=cluster.notify_type,
            operation=cluster.notify_operation,
        )
    except FwRoleError as e:
        _handle_error("notify", e)

    raise typer.Exit(int(status))


@app.command("validate-all")
def agent_validate(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Validate parameters and check that a firewall backend is available."""
    def _validate(agent: RoleAgent) -> OcfStatus:
        agent.ctx.console.success(
            f"Configuration valid: {len(agent.rules)} rule(s), backend {agent.backend}"
        )
        return OcfStatus.SUCCESS

    _run_action("validate-all", _validate, verbose=verbose, no_color=no_color)


@app.command("meta-data")
def agent_metadata() -> None:
    """Print the resource agent metadata XML."""
    typer.echo(render_metadata())


# =============================================================================
# Operator Commands
# =============================================================================

@app.command("status")
def agent_status(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Show persisted role, backend and live rules. Changes nothing."""
    try:
        ctx = _load_context("status", verbose, no_color)
        agent = _build_agent(ctx)

        persisted = agent.state_file.read()
        expected = agent.requested_role or persisted

        items = {
            "Resource": agent.resource,
            "Backend": str(agent.backend),
            "Persisted role": persisted.value if persisted else "none (not started)",
            "Blocked role": agent.blocked_role.value,
            "Configured rules": len(agent.rules),
        }
        if expected is not None:
            items["Drift"] = str(agent.check_drift(expected))
        ctx.console.summary("fwrole status", items)

        live = agent.backend.list_rules()
        if live:
            ctx.console.table(
                "Live rules",
                ["Port", "Protocol", "Source", "Action"],
                [[str(r.port), r.protocol, r.source or "any", "reject"] for r in live],
            )
        else:
            ctx.console.info("No live rules")
    except FwRoleError as e:
        _handle_error("status", e)
    except OSError as e:
        _handle_error("status", _system_error(e))


@app.command("show-config")
def agent_show_config(verbose: VerboseOption = 0, no_color: NoColorOption = False) -> None:
    """Show the effective configuration as YAML."""
    try:
        ctx = _load_context("show-config", verbose, no_color)
        config: AgentConfig = ctx.config
        ctx.console.yaml(config.to_yaml(), title="Effective configuration")
    except FwRoleError as e:
        _handle_error("show-config", e)


if __name__ == "__main__":
    app()
