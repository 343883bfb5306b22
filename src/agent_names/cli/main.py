"""CLI entry point for agent-names.

Invoked as::

    agent-names [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agent_names.cli.main

Commands
--------
init                 Create a new registry state file
names register       Register a name (operator)
names resolve        Show the live record for a name
names renew          Extend a lease (operator)
names available      Check whether a name can be registered
names price          Show the advisory fee for a name
names set-soul       Replace a soul hash (operator)
names set-payment    Replace a payment address (operator)
names transfer       Transfer an ownership token
names list           List registered names
admin set-operator   Flag or unflag an operator (admin)
admin pause          Trip the circuit breaker (admin)
admin unpause        Reset the circuit breaker (admin)
events               Show the audit trail
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.table import Table

from agent_names.errors import RegistryError

console = Console()

_DEFAULT_STATE_FILE = "agent-names-state.json"


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agent-names")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=_DEFAULT_STATE_FILE,
    show_default=True,
    envvar="AGENT_NAMES_STATE",
    help="JSON file holding registry state between invocations.",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    show_default=True,
    help="Logging level.",
)
@click.pass_context
def cli(ctx: click.Context, state_file: str, log_level: str) -> None:
    """Leased, tokenized name registry for autonomous-agent identities"""
    logging.basicConfig(level=getattr(logging, log_level))
    ctx.ensure_object(dict)
    ctx.obj["state_file"] = Path(state_file)


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from agent_names import __version__

    console.print(f"[bold]agent-names[/bold] v{__version__}")


# ------------------------------------------------------------------
# init
# ------------------------------------------------------------------


@cli.command(name="init")
@click.option("--admin", required=True, help="Admin principal.")
@click.option(
    "--operator",
    "-o",
    multiple=True,
    help="Operator principal (repeatable).",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON settings file (lease length, name bounds, prices).",
)
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing state file.")
@click.pass_context
def init_command(
    ctx: click.Context,
    admin: str,
    operator: tuple[str, ...],
    config_file: str | None,
    force: bool,
) -> None:
    """Create a fresh registry state file."""
    from agent_names.access import AccessControl
    from agent_names.config import RegistrySettings
    from agent_names.registry import NameRegistry

    state_file: Path = ctx.obj["state_file"]
    if state_file.exists() and not force:
        _fail(f"{state_file} already exists. Use --force to overwrite it.")

    settings = RegistrySettings.from_file(config_file) if config_file else RegistrySettings()
    try:
        roles = AccessControl(admin=admin, operators=list(operator))
    except RegistryError as exc:
        _fail(str(exc))
    registry = NameRegistry(roles, settings=settings)
    _save(registry, state_file)

    console.print(f"[green]Initialized[/green] registry at [bold]{state_file}[/bold]")
    console.print(f"  Admin:     {admin}")
    console.print(f"  Operators: {', '.join(operator) or '(none)'}")
    console.print(f"  Lease:     {settings.lease_days} days")


# ------------------------------------------------------------------
# names command group
# ------------------------------------------------------------------


@cli.group(name="names")
def names_group() -> None:
    """Register, resolve and manage names."""


@names_group.command(name="register")
@click.argument("name")
@click.option("--owner", required=True, help="Principal that will own the name.")
@click.option("--soul-hash", required=True, help="Hex-encoded soul document hash.")
@click.option("--payment-address", required=True, help="Principal receiving payments.")
@click.option("--as", "caller", required=True, help="Calling operator principal.")
@click.pass_context
def register_command(
    ctx: click.Context,
    name: str,
    owner: str,
    soul_hash: str,
    payment_address: str,
    caller: str,
) -> None:
    """Register NAME for an owner."""
    registry = _load(ctx)
    soul = _parse_hash(soul_hash)
    try:
        token_id = registry.register(
            caller,
            name,
            owner=owner,
            soul_hash=soul,
            payment_address=payment_address,
        )
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])

    record = registry.resolve(name)
    console.print(f"[green]Registered[/green] [bold]{name}[/bold]")
    console.print(f"  Token ID: {token_id}")
    console.print(f"  Owner:    {record.owner}")
    console.print(f"  Expires:  {record.expires_at.isoformat()}")


@names_group.command(name="resolve")
@click.argument("name")
@click.pass_context
def resolve_command(ctx: click.Context, name: str) -> None:
    """Show the live identity record for NAME."""
    registry = _load(ctx)
    try:
        record = registry.resolve(name)
    except RegistryError as exc:
        _fail(str(exc))

    table = Table(title=f"Identity — {name}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in record.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@names_group.command(name="renew")
@click.argument("name")
@click.option("--as", "caller", required=True, help="Calling operator principal.")
@click.pass_context
def renew_command(ctx: click.Context, name: str, caller: str) -> None:
    """Extend the lease on NAME by one period."""
    registry = _load(ctx)
    try:
        expires_at = registry.renew(caller, name)
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    console.print(f"[green]Renewed[/green] [bold]{name}[/bold] until {expires_at.isoformat()}")


@names_group.command(name="available")
@click.argument("name")
@click.pass_context
def available_command(ctx: click.Context, name: str) -> None:
    """Check whether NAME can be registered now."""
    registry = _load(ctx)
    try:
        available = registry.is_available(name)
    except RegistryError as exc:
        _fail(str(exc))
    if available:
        console.print(f"[green]{name} is available.[/green]")
    else:
        console.print(f"[yellow]{name} is taken.[/yellow]")


@names_group.command(name="price")
@click.argument("name")
@click.pass_context
def price_command(ctx: click.Context, name: str) -> None:
    """Show the advisory registration fee for NAME."""
    registry = _load(ctx)
    try:
        price = registry.get_price(name)
    except RegistryError as exc:
        _fail(str(exc))
    console.print(f"{name}: [bold]{price}[/bold]")


@names_group.command(name="set-soul")
@click.argument("name")
@click.argument("soul_hash")
@click.option("--as", "caller", required=True, help="Calling operator principal.")
@click.pass_context
def set_soul_command(ctx: click.Context, name: str, soul_hash: str, caller: str) -> None:
    """Replace the soul hash of NAME with SOUL_HASH (hex)."""
    registry = _load(ctx)
    try:
        registry.update_soul(caller, name, _parse_hash(soul_hash))
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    console.print(f"[green]Updated[/green] soul hash of [bold]{name}[/bold]")


@names_group.command(name="set-payment")
@click.argument("name")
@click.argument("address")
@click.option("--as", "caller", required=True, help="Calling operator principal.")
@click.pass_context
def set_payment_command(ctx: click.Context, name: str, address: str, caller: str) -> None:
    """Replace the payment address of NAME with ADDRESS."""
    registry = _load(ctx)
    try:
        registry.update_payment_address(caller, name, address)
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    console.print(f"[green]Updated[/green] payment address of [bold]{name}[/bold]")


@names_group.command(name="transfer")
@click.argument("token_id", type=int)
@click.argument("to")
@click.option("--as", "caller", required=True, help="Current holder or approved spender.")
@click.pass_context
def transfer_command(ctx: click.Context, token_id: int, to: str, caller: str) -> None:
    """Transfer ownership token TOKEN_ID to TO."""
    registry = _load(ctx)
    try:
        registry.transfer(caller, token_id, to)
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    console.print(f"[green]Transferred[/green] token [bold]{token_id}[/bold] to {to}")


@names_group.command(name="list")
@click.option(
    "--include-expired",
    is_flag=True,
    default=False,
    help="Include lapsed records that have not been reclaimed.",
)
@click.pass_context
def list_command(ctx: click.Context, include_expired: bool) -> None:
    """List registered names."""
    registry = _load(ctx)
    entries = registry.list_names(include_expired=include_expired)
    if not entries:
        console.print("[yellow]No names registered.[/yellow]")
        return

    now = registry.clock.now()
    table = Table(title="Registered Names", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Token", justify="right")
    table.add_column("Owner")
    table.add_column("Expires")
    table.add_column("Live", justify="center")

    for name, record in entries:
        live = "[green]Yes[/green]" if record.is_live(now) else "[red]No[/red]"
        table.add_row(
            name,
            str(record.token_id),
            record.owner,
            record.expires_at.isoformat(),
            live,
        )

    console.print(table)
    console.print(f"\nTotal: {len(entries)} name(s)")


# ------------------------------------------------------------------
# admin command group
# ------------------------------------------------------------------


@cli.group(name="admin")
def admin_group() -> None:
    """Operator management and the circuit breaker."""


@admin_group.command(name="set-operator")
@click.argument("principal")
@click.option("--disable", is_flag=True, default=False, help="Clear the operator flag.")
@click.option("--as", "caller", required=True, help="Admin principal.")
@click.pass_context
def set_operator_command(
    ctx: click.Context, principal: str, disable: bool, caller: str
) -> None:
    """Flag (or with --disable, unflag) PRINCIPAL as an operator."""
    registry = _load(ctx)
    try:
        registry.set_operator(caller, principal, not disable)
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    state = "disabled" if disable else "enabled"
    console.print(f"Operator [bold]{principal}[/bold] {state}")


@admin_group.command(name="pause")
@click.option("--as", "caller", required=True, help="Admin principal.")
@click.pass_context
def pause_command(ctx: click.Context, caller: str) -> None:
    """Halt all operator mutations."""
    registry = _load(ctx)
    try:
        registry.pause(caller)
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    console.print("[yellow]Registry paused.[/yellow]")


@admin_group.command(name="unpause")
@click.option("--as", "caller", required=True, help="Admin principal.")
@click.pass_context
def unpause_command(ctx: click.Context, caller: str) -> None:
    """Resume operator mutations."""
    registry = _load(ctx)
    try:
        registry.unpause(caller)
    except RegistryError as exc:
        _fail(str(exc))
    _save(registry, ctx.obj["state_file"])
    console.print("[green]Registry unpaused.[/green]")


# ------------------------------------------------------------------
# events
# ------------------------------------------------------------------


@cli.command(name="events")
@click.option("--name", default=None, help="Only events affecting this name.")
@click.option("--tail", type=int, default=None, help="Only the last N events.")
@click.pass_context
def events_command(ctx: click.Context, name: str | None, tail: int | None) -> None:
    """Show the audit trail in commit order."""
    registry = _load(ctx)
    events = registry.events(name=name)
    if tail is not None:
        events = events[-tail:]
    if not events:
        console.print("[yellow]No events recorded.[/yellow]")
        return

    table = Table(title="Audit Events", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Actor")
    table.add_column("Timestamp")
    for event in events:
        table.add_row(
            str(event.sequence),
            event.event_type.value,
            event.name or "-",
            event.actor_id,
            event.timestamp.isoformat(),
        )
    console.print(table)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def _parse_hash(value: str) -> bytes:
    from agent_names.primitives import parse_hash

    try:
        return parse_hash(value)
    except ValueError as exc:
        _fail(f"invalid hex hash {value!r}: {exc}")


def _load(ctx: click.Context):  # type: ignore[no-untyped-def]
    """Load the registry from the state file, or exit if it is missing."""
    from agent_names.registry.snapshot import load_file

    state_file: Path = ctx.obj["state_file"]
    if not state_file.exists():
        _fail(f"State file {state_file} not found. Run 'agent-names init' first.")
    try:
        return load_file(state_file)
    except (ValueError, KeyError) as exc:
        _fail(f"Could not load state file {state_file}: {exc}")


def _save(registry, state_file: Path) -> None:  # type: ignore[no-untyped-def]
    """Persist registry state to *state_file*."""
    from agent_names.registry.snapshot import save_file

    save_file(registry, state_file)


if __name__ == "__main__":
    cli()
