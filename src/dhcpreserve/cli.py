"""
CLI commands for DHCP reservation management.

Promotes a dynamically leased address to a fixed reservation on a DHCP
server, or removes one.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dhcpreserve import __version__
from dhcpreserve.backends import BACKENDS, DHCPBackend, get_backend
from dhcpreserve.config import get_config
from dhcpreserve.errors import DHCPReserveError, ErrorKind
from dhcpreserve.logging_config import configure_logging
from dhcpreserve.workflow import WorkflowResult, lookup, remove, reserve

console = Console()


@click.group()
@click.version_option(__version__, prog_name="dhcpreserve")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write a rotating log file")
def dhcpreserve(debug: bool, log_file: str | None):
    """Manage DHCP reservations on a remote DHCP server.

    \b
    Examples:
        # Turn the current lease of an address into a reservation
        dhcpreserve reserve --server dhcp01 --ip 10.0.0.50

        # Remove a reservation
        dhcpreserve remove --server dhcp01 --ip 10.0.0.50 --scope 10.0.0.0

        # Show which scope and client an address belongs to
        dhcpreserve lookup --server dhcp01 --ip 10.0.0.50

    Backend settings come from DHCPRESERVE_* environment variables
    or a .env file in ~/.dhcpreserve/.
    """
    configure_logging(debug=debug, log_file=log_file)


backend_option = click.option(
    "--backend", "-b",
    type=click.Choice(BACKENDS, case_sensitive=False),
    help="DHCP backend (default from DHCPRESERVE_BACKEND)",
)
json_option = click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")


def open_backend(name: str | None, ip: str, server: str, json_out: bool) -> DHCPBackend:
    """Create the backend or exit with a failure result."""
    try:
        return get_backend(name)
    except ValueError as e:
        result = WorkflowResult(
            success=False,
            message="Backend is not configured",
            error=f"{ErrorKind.INPUT_VALIDATION.value}: {e}",
            error_kind=ErrorKind.INPUT_VALIDATION,
            details={"reservation_ip": ip, "server": server},
        )
        emit(result, json_out)
        sys.exit(result.exit_code)


def display_result(result: WorkflowResult):
    """Display a workflow result as a panel."""
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    labels = {
        "reservation_ip": "IP Address",
        "mac_address": "Client ID",
        "scope_id": "Scope",
        "subnet": "Scope",
        "server": "Server",
        "reserved": "Reserved",
    }
    for key, value in result.details.items():
        if value is None:
            continue
        table.add_row(labels.get(key, key), str(value))

    if result.success:
        console.print(Panel(table, title=f"[green]{result.message}[/green]", border_style="green"))
    else:
        table.add_row("Error", f"[red]{result.error}[/red]")
        console.print(Panel(table, title=f"[red]{result.message}[/red]", border_style="red"))


def emit(result: WorkflowResult, json_out: bool):
    if json_out:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        display_result(result)


@dhcpreserve.command("reserve")
@click.option("--server", "-s", required=True, help="DHCP server name or IP")
@click.option("--ip", required=True, help="IP address to reserve")
@click.option("--description", "-d", help="Reservation description")
@backend_option
@json_option
def reserve_cmd(server: str, ip: str, description: str | None, backend: str | None, json_out: bool):
    """Reserve an address for the client currently leasing it.

    Finds the scope containing the address, looks up the client ID of its
    active lease, and creates a reservation for that client.

    \b
    Examples:
        dhcpreserve reserve -s dhcp01 --ip 10.0.0.50
        dhcpreserve reserve -s dhcp01 --ip 10.0.0.50 -d "Lab printer" --json-output
    """
    if not json_out:
        console.print(f"[dim]Reserving {ip} on {server}...[/dim]")

    with open_backend(backend, ip, server, json_out) as dhcp:
        description = description or get_config().description
        result = reserve(dhcp, server, ip, description)

    emit(result, json_out)
    sys.exit(result.exit_code)


@dhcpreserve.command("remove")
@click.option("--server", "-s", required=True, help="DHCP server name or IP")
@click.option("--ip", required=True, help="Reserved IP address to remove")
@click.option("--scope", required=True, help="Scope ID (network address) holding the reservation")
@backend_option
@json_option
def remove_cmd(server: str, ip: str, scope: str, backend: str | None, json_out: bool):
    """Remove an existing reservation.

    The reservation must exist in the given scope; nothing is deleted
    otherwise. Removal does not ask for confirmation.

    \b
    Examples:
        dhcpreserve remove -s dhcp01 --ip 10.0.0.50 --scope 10.0.0.0
    """
    if not json_out:
        console.print(f"[dim]Removing reservation {ip} from scope {scope} on {server}...[/dim]")

    with open_backend(backend, ip, server, json_out) as dhcp:
        result = remove(dhcp, server, ip, scope)

    emit(result, json_out)
    sys.exit(result.exit_code)


@dhcpreserve.command("lookup")
@click.option("--server", "-s", required=True, help="DHCP server name or IP")
@click.option("--ip", required=True, help="IP address to look up")
@backend_option
@json_option
def lookup_cmd(server: str, ip: str, backend: str | None, json_out: bool):
    """Show the scope and client ID for an address without changing anything."""
    with open_backend(backend, ip, server, json_out) as dhcp:
        result = lookup(dhcp, server, ip)

    emit(result, json_out)
    sys.exit(result.exit_code)


@dhcpreserve.command("scopes")
@click.option("--server", "-s", required=True, help="DHCP server name or IP")
@backend_option
@json_option
def scopes_cmd(server: str, backend: str | None, json_out: bool):
    """List the scopes configured on a DHCP server."""
    with open_backend(backend, "", server, json_out) as dhcp:
        try:
            scopes = dhcp.list_scopes(server)
        except DHCPReserveError as e:
            if json_out:
                click.echo(json.dumps({
                    "status": "failure",
                    "message": f"Failed to list scopes on {server}",
                    "error": f"{e.kind.value}: {e.message}",
                    "details": {"server": server},
                }, indent=2))
            else:
                console.print(f"[red]Error: {e.message}[/red]")
                if e.cause:
                    console.print(f"[dim]{e.cause}[/dim]")
            sys.exit(1)

    if json_out:
        click.echo(json.dumps({"server": server, "scopes": [s.to_dict() for s in scopes]}, indent=2))
        return

    if not scopes:
        console.print(f"[yellow]No scopes found on {server}.[/yellow]")
        return

    table = Table(title=f"DHCP Scopes on {server} ({len(scopes)})")
    table.add_column("Scope ID", style="cyan")
    table.add_column("Name")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Mask")
    table.add_column("State")

    for scope in scopes:
        table.add_row(
            scope.scope_id,
            scope.name or "",
            scope.start,
            scope.end,
            scope.subnet_mask or "N/A",
            scope.state or "N/A",
        )

    console.print(table)


def main():
    dhcpreserve()


if __name__ == "__main__":
    main()
