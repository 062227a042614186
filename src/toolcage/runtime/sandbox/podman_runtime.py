"""PodmanRuntime — sandbox containers through the ``podman`` CLI.

Podman is daemonless and Docker-compatible.  Containers additionally run
with ``--userns=keep-id`` so the sandbox user maps to the invoking user
instead of root, and a failed listing degrades to an empty list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from toolcage.runtime.sandbox.cli_runtime import CLIContainerRuntime, EngineSyntax
from toolcage.runtime.sandbox.models import ContainerState, RuntimeType

if TYPE_CHECKING:
    from toolcage.runtime.process import ProcessRunner

PODMAN_SYNTAX = EngineSyntax(
    runtime_type=RuntimeType.PODMAN,
    binary="podman",
    extra_run_flags=("--userns=keep-id",),
    status_map={
        "running": ContainerState.RUNNING,
        "exited": ContainerState.STOPPED,
        "stopped": ContainerState.STOPPED,
        "dead": ContainerState.ERROR,
    },
    list_failures_are_empty=True,
)


class PodmanRuntime(CLIContainerRuntime):
    """Podman engine runtime."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        *,
        name_prefix: str = "toolcage",
        label_prefix: str = "toolcage",
    ) -> None:
        super().__init__(
            PODMAN_SYNTAX, runner, name_prefix=name_prefix, label_prefix=label_prefix
        )
