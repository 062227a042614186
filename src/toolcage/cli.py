"""toolcage CLI entrypoint."""

from __future__ import annotations

import logging

import click

from toolcage import __version__


@click.group()
@click.version_option(version=__version__, prog_name="toolcage")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """toolcage — sandboxed tool execution for AI agents."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# Register subcommands
from toolcage.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
