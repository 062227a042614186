"""``toolcage containers`` — inspect and tear down managed sandbox containers."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click
from rich.markup import escape

from toolcage.cli_commands._output import (
    console,
    load_settings,
    print_containers_table,
    print_status,
)

if TYPE_CHECKING:
    from toolcage.runtime.orchestrator import ContainerOrchestrator, StopAllReport
    from toolcage.runtime.sandbox.models import ContainerStatus

_config_option = click.option(
    "--config", "-c", type=click.Path(exists=True), default=None, help="Settings YAML."
)


def _orchestrator(config: str | None) -> ContainerOrchestrator:
    from toolcage.runtime.orchestrator import ContainerOrchestrator

    return ContainerOrchestrator(settings=load_settings(config))


def _parse_labels(values: tuple[str, ...]) -> dict[str, str]:
    labels: dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint="--label")
        labels[key] = val
    return labels


@click.group()
def containers() -> None:
    """Inspect and manage sandbox containers."""


@containers.command("list")
@click.option("--label", "-l", multiple=True, help="Extra label filter (KEY=VALUE).")
@_config_option
def list_cmd(label: tuple[str, ...], config: str | None) -> None:
    """List managed containers on this host."""
    labels = _parse_labels(label)
    orchestrator = _orchestrator(config)

    async def _list() -> list[ContainerStatus]:
        await orchestrator.initialize()
        return await orchestrator.list_containers(labels or None)

    try:
        statuses = asyncio.run(_list())
    except Exception as exc:
        console.print(f"[red]List error:[/red] {escape(str(exc))}")
        sys.exit(1)

    if not statuses:
        console.print("[yellow]No managed containers.[/yellow]")
        return
    print_containers_table(statuses)


@containers.command("status")
@click.argument("container_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@_config_option
def status_cmd(container_id: str, as_json: bool, config: str | None) -> None:
    """Show the status of CONTAINER_ID."""
    orchestrator = _orchestrator(config)

    async def _status() -> ContainerStatus:
        await orchestrator.initialize()
        return await orchestrator.get_container_status(container_id)

    try:
        status = asyncio.run(_status())
    except Exception as exc:
        console.print(f"[red]Status error:[/red] {escape(str(exc))}")
        sys.exit(1)
    print_status(status, as_json=as_json)


@containers.command("logs")
@click.argument("container_id")
@click.option("--tail", "-n", type=int, default=100, show_default=True, help="Lines to show.")
@_config_option
def logs_cmd(container_id: str, tail: int, config: str | None) -> None:
    """Print recent output of CONTAINER_ID."""
    orchestrator = _orchestrator(config)

    async def _logs() -> str:
        await orchestrator.initialize()
        return await orchestrator.get_container_logs(container_id, tail)

    try:
        text = asyncio.run(_logs())
    except Exception as exc:
        console.print(f"[red]Logs error:[/red] {escape(str(exc))}")
        sys.exit(1)
    console.print(text, markup=False, highlight=False)


@containers.command("stop-all")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@_config_option
def stop_all_cmd(yes: bool, config: str | None) -> None:
    """Force-stop every managed container on this host."""
    if not yes and not click.confirm("Stop and remove all managed containers?"):
        console.print("Aborted.")
        return

    orchestrator = _orchestrator(config)

    async def _stop_all() -> StopAllReport:
        await orchestrator.initialize()
        return await orchestrator.stop_all()

    try:
        report = asyncio.run(_stop_all())
    except Exception as exc:
        console.print(f"[red]Stop error:[/red] {escape(str(exc))}")
        sys.exit(1)

    console.print(f"Stopped {len(report.stopped)} container(s).")
    for container_id, error in report.failed.items():
        console.print(f"  [red]Failed[/red] {escape(container_id)}: {escape(error)}")
    if not report.ok:
        sys.exit(1)
