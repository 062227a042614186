"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from toolcage.cli_commands.blocklist import blocklist
    from toolcage.cli_commands.containers import containers
    from toolcage.cli_commands.exec import exec_cmd
    from toolcage.cli_commands.runtime import runtime

    cli.add_command(runtime)
    cli.add_command(containers)
    cli.add_command(exec_cmd)
    cli.add_command(blocklist)
