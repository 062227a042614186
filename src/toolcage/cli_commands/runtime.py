"""``toolcage runtime`` — inspect which container engine this host provides."""

from __future__ import annotations

import asyncio
import sys

import click

from toolcage.cli_commands._output import console, load_settings


@click.group()
def runtime() -> None:
    """Detect and inspect container runtimes."""


@runtime.command("detect")
@click.option("--config", "-c", type=click.Path(exists=True), default=None, help="Settings YAML.")
def detect(config: str | None) -> None:
    """Print the container runtime that would be used."""
    from toolcage.runtime.detector import RuntimeDetector

    settings = load_settings(config)
    detector = RuntimeDetector(probe_timeout=settings.probe_timeout)
    found = asyncio.run(detector.detect())

    if found is None:
        console.print("[yellow]No container runtime found.[/yellow]")
        sys.exit(1)
    console.print(f"[green]{found.value}[/green]")


@runtime.command("info")
@click.option("--config", "-c", type=click.Path(exists=True), default=None, help="Settings YAML.")
def info(config: str | None) -> None:
    """Print version and path of the detected runtime."""
    from toolcage.runtime.detector import RuntimeDetector, RuntimeInfo

    settings = load_settings(config)
    detector = RuntimeDetector(probe_timeout=settings.probe_timeout)

    async def _info() -> RuntimeInfo | None:
        found = await detector.detect()
        if found is None:
            return None
        return await detector.get_runtime_info(found)

    details = asyncio.run(_info())
    if details is None:
        console.print("[yellow]No container runtime found.[/yellow]")
        sys.exit(1)

    console.print(f"[bold]Runtime:[/bold] {details.type.value}")
    console.print(f"  Version: {details.version}")
    console.print(f"  Path:    {details.path or '(unknown)'}")
