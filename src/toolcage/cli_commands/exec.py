"""``toolcage exec`` — run one execution request from a YAML file."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.markup import escape

from toolcage.cli_commands._output import (
    console,
    load_settings,
    print_execution_result,
    print_validation_report,
)

if TYPE_CHECKING:
    from toolcage.runtime.audit import SecureExecutionAuditEvent
    from toolcage.runtime.models import ExecutionResult


@click.command("exec")
@click.argument("request", type=click.Path(exists=True))
@click.option("--config", "-c", type=click.Path(exists=True), default=None, help="Settings YAML.")
@click.option("--dry-run", is_flag=True, help="Check permissions and blocklist only.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--audit", is_flag=True, help="Print the audit event to stderr.")
@click.option("--telemetry", is_flag=True, help="Enable telemetry.")
def exec_cmd(
    request: str,
    config: str | None,
    dry_run: bool,
    as_json: bool,
    audit: bool,
    telemetry: bool,
) -> None:
    """Execute the tool call described in REQUEST yaml file."""
    from toolcage.runtime.errors import RuntimeSafetyError, UnknownToolError
    from toolcage.runtime.executor import SecureExecutor
    from toolcage.settings import RequestLoader, SettingsError, TelemetrySettings

    settings = load_settings(config)

    try:
        execution_request = RequestLoader(Path(request)).load()
    except SettingsError as exc:
        console.print(f"[red]Validation error:[/red] {escape(str(exc))}")
        sys.exit(1)

    def _print_audit(event: SecureExecutionAuditEvent) -> None:
        click.echo(json.dumps(event.to_wire()), err=True)

    executor = SecureExecutor(
        settings=settings, audit_callback=_print_audit if audit else None
    )

    if dry_run:
        try:
            report = executor.validate(execution_request)
        except UnknownToolError as exc:
            console.print(f"[red]Validation error:[/red] {escape(str(exc))}")
            sys.exit(1)
        print_validation_report(report, as_json=as_json)
        if not report.valid:
            sys.exit(1)
        return

    if telemetry:
        from toolcage.utils.telemetry import configure_telemetry

        configure_telemetry(settings.telemetry or TelemetrySettings(enabled=True))

    async def _execute() -> ExecutionResult:
        try:
            return await executor.execute(execution_request)
        finally:
            await executor.cleanup()

    try:
        result = asyncio.run(_execute())
    except RuntimeSafetyError as exc:
        console.print(f"[red]Execution error:[/red] {escape(str(exc))}")
        sys.exit(1)

    print_execution_result(result, as_json=as_json)
    if not result.success:
        sys.exit(1)
