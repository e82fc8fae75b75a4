"""
Discover command: build the compiler registry once and report it.
"""

import json
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from ...core.errors import FleetError, InternalError
from ...discovery.assembler import find_compilers

console = Console()
logger = logging.getLogger("compiler_fleet.discover")


def handle_startup_error(exc: FleetError, as_json: bool = False) -> None:
    """Print a startup failure and exit with its stable code."""
    logger.error(f"Compiler discovery aborted: {exc}")
    if as_json:
        console.print(json.dumps({"status": "error", "error": exc.to_json()}, indent=2))
    else:
        console.print(f"[red]Startup failed:[/red]\n{exc.format()}")
    sys.exit(int(exc.exit_code))


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output results in JSON format")
@click.option("--soft", is_flag=True, help="Do not exit with error code when no compiler was found")
@click.pass_obj
def discover(cli_ctx, as_json: bool, soft: bool):
    """Discover compilers and print the registry."""
    try:
        report = find_compilers(cli_ctx.props)
    except FleetError as e:
        handle_startup_error(e, as_json)
        return
    except Exception as e:
        logger.exception("Unexpected failure during compiler discovery")
        handle_startup_error(InternalError(f"Unexpected error: {e}", stage="discovery"), as_json)
        return

    registry = report.registry

    if as_json:
        console.print(json.dumps(report.to_json(), indent=2))
    else:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="green")
        table.add_column("Name")
        table.add_column("Origin")
        table.add_column("Version")
        table.add_column("Intel asm", justify="center")

        for compiler in registry:
            table.add_row(
                compiler.id,
                compiler.name,
                compiler.origin,
                compiler.version or "",
                "✓" if compiler.capabilities.intel_asm else "",
            )

        console.print(f"\n[bold]Compilers ({len(registry)})[/bold]\n")
        console.print(table)

        if report.failures:
            console.print("\n[bold]Dropped:[/bold]")
            for failure in report.failures:
                console.print(f"  [yellow]⚠️  {failure}[/yellow]")

        for compiler_id in report.duplicates:
            console.print(f"  [yellow]⚠️  duplicate id ignored: {compiler_id}[/yellow]")

    if not registry and not soft:
        sys.exit(1)
