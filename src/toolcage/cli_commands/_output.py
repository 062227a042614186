"""Shared CLI helpers and output formatters."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from toolcage.settings import SandboxSettings, SettingsError, SettingsLoader

if TYPE_CHECKING:
    from toolcage.runtime.executor import ValidationReport
    from toolcage.runtime.models import ExecutionResult
    from toolcage.runtime.sandbox.models import ContainerStatus

console = Console(emoji=False)


def load_settings(config: str | None) -> SandboxSettings:
    """Load settings from *config*, or the defaults; exit 1 on a bad file."""
    if config is None:
        return SandboxSettings()
    try:
        return SettingsLoader(Path(config)).load()
    except SettingsError as exc:
        console.print(f"[red]Config error:[/red] {escape(str(exc))}")
        sys.exit(1)


def print_containers_table(statuses: list[ContainerStatus]) -> None:
    """Pretty-print container statuses as a table."""
    table = Table(title="Managed Containers")
    table.add_column("Container", style="cyan")
    table.add_column("Name")
    table.add_column("State")
    table.add_column("Exit")

    for status in statuses:
        table.add_row(
            status.container_id,
            status.name or "-",
            _styled_state(status.state.value),
            "-" if status.exit_code is None else str(status.exit_code),
        )

    console.print(table)


def print_status(status: ContainerStatus, *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(status.model_dump_json(exclude_none=True))
        return
    console.print(f"[bold]{status.container_id}[/bold]: {_styled_state(status.state.value)}")
    if status.started_at:
        console.print(f"  Started:  {status.started_at.isoformat()}")
    if status.finished_at:
        console.print(f"  Finished: {status.finished_at.isoformat()}")
    if status.exit_code is not None:
        console.print(f"  Exit code: {status.exit_code}")
    if status.error:
        console.print(f"  [red]Error:[/red] {escape(status.error)}")


def print_execution_result(result: ExecutionResult, *, as_json: bool = False) -> None:
    """Print an execution result as text or JSON."""
    if as_json:
        console.print_json(result.model_dump_json(by_alias=True, exclude_none=True))
        return

    label = "[green]success[/green]" if result.success else "[red]failed[/red]"
    console.print(f"Result: {label} ({result.execution_time:.0f} ms)")
    if result.output:
        console.print(result.output, markup=False, highlight=False)
    if result.error:
        console.print(f"[red]Error:[/red] {escape(_truncate(result.error, 2000))}")


def print_validation_report(report: ValidationReport, *, as_json: bool = False) -> None:
    """Print the dry-run outcome of a request."""
    data: dict[str, Any] = {
        "valid": report.valid,
        "toolAllowed": report.tool_allowed,
        "command": report.command,
        "blockedCommands": [
            {
                "command": match.command,
                "description": match.blocked.description,
                "reason": match.blocked.reason,
                "severity": match.blocked.severity,
            }
            for match in report.blocked_commands
        ],
    }
    if as_json:
        console.print_json(json.dumps(data))
        return

    verdict = "[green]valid[/green]" if report.valid else "[red]rejected[/red]"
    console.print(f"Request is {verdict}")
    console.print(f"  Command: {report.command}", markup=False)
    console.print(f"  Tool allowed: {'yes' if report.tool_allowed else 'no'}")
    for entry in data["blockedCommands"]:
        console.print(
            f"  [red]Blocked[/red] ({entry['severity']}): {escape(entry['description'])} "
            f"- {escape(entry['reason'])}"
        )


def _styled_state(state: str) -> str:
    colour = {"running": "green", "stopped": "yellow", "error": "red"}.get(state, "white")
    return f"[{colour}]{state}[/{colour}]"


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
