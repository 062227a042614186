"""``toolcage blocklist`` — query the static command blocklist."""

from __future__ import annotations

import sys

import click
from rich.table import Table

from toolcage.cli_commands._output import console


@click.group()
def blocklist() -> None:
    """Inspect the dangerous-command blocklist."""


@blocklist.command("check")
@click.argument("command")
def check(command: str) -> None:
    """Check whether COMMAND would be blocked."""
    from toolcage.runtime.security.blocklist import is_command_blocked

    blocked = is_command_blocked(command)
    if blocked is None:
        console.print("[green]Allowed[/green]")
        return

    console.print(f"[red]Blocked[/red] ({blocked.severity}, {blocked.category})")
    console.print(f"  {blocked.description}: {blocked.reason}")
    sys.exit(1)


@blocklist.command("stats")
def stats() -> None:
    """Summarise blocklist entries by severity and category."""
    from toolcage.runtime.security.blocklist import get_blocked_commands_stats

    summary = get_blocked_commands_stats()
    console.print(f"[bold]Total entries:[/bold] {summary['total']}")

    table = Table(title="By Severity")
    table.add_column("Severity", style="cyan")
    table.add_column("Entries", justify="right")
    for severity, count in summary["by_severity"].items():
        table.add_row(severity, str(count))
    console.print(table)

    table = Table(title="By Category")
    table.add_column("Category", style="cyan")
    table.add_column("Entries", justify="right")
    for category, count in sorted(summary["by_category"].items()):
        table.add_row(category, str(count))
    console.print(table)
