"""DockerRuntime — sandbox containers through the ``docker`` CLI.

Uses the ``docker`` binary via subprocess (no docker-py dependency).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from toolcage.runtime.sandbox.cli_runtime import CLIContainerRuntime, EngineSyntax
from toolcage.runtime.sandbox.models import ContainerState, RuntimeType

if TYPE_CHECKING:
    from toolcage.runtime.process import ProcessRunner

DOCKER_SYNTAX = EngineSyntax(
    runtime_type=RuntimeType.DOCKER,
    binary="docker",
    status_map={
        "running": ContainerState.RUNNING,
        "exited": ContainerState.STOPPED,
        "dead": ContainerState.ERROR,
    },
    unset_timestamp="0001-01-01T00:00:00Z",
)


class DockerRuntime(CLIContainerRuntime):
    """Docker engine runtime."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        *,
        name_prefix: str = "toolcage",
        label_prefix: str = "toolcage",
    ) -> None:
        super().__init__(
            DOCKER_SYNTAX, runner, name_prefix=name_prefix, label_prefix=label_prefix
        )
