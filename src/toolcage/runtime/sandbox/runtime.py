"""ContainerRuntime protocol — the common interface for container engines."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from toolcage.runtime.sandbox.models import (
        ContainerConfig,
        ContainerExecutionResult,
        ContainerStatus,
        RuntimeType,
    )


@runtime_checkable
class ContainerRuntime(Protocol):
    """Primitive container operations against one concrete engine.

    ``container_id`` is always the caller-generated id from
    :class:`ContainerConfig`; implementations map it to whatever name or
    handle their engine uses.
    """

    @property
    def type(self) -> RuntimeType:
        """Which engine this runtime drives."""
        ...

    async def create_container(self, config: ContainerConfig) -> ContainerStatus:
        """Start a detached, auto-removing container; raise if the engine refuses."""
        ...

    async def start_container(self, container_id: str) -> None:
        """Start a previously created container."""
        ...

    async def stop_container(self, container_id: str, timeout: float = 30) -> None:
        """Request a graceful stop, killing after *timeout* seconds."""
        ...

    async def remove_container(self, container_id: str, force: bool = False) -> None:
        """Delete the container; a container that is already gone is not an error."""
        ...

    async def exec_in_container(
        self,
        container_id: str,
        command: list[str],
        *,
        timeout: float | None = None,
        working_dir: str | None = None,
    ) -> ContainerExecutionResult:
        """Run *command* in the container; failures come back as ``exit_code=-1``."""
        ...

    async def get_container_status(self, container_id: str) -> ContainerStatus:
        """Inspect the container; unknown containers yield an ``error`` status."""
        ...

    async def get_container_logs(self, container_id: str, tail: int = 100) -> str:
        """Return the last *tail* lines of container output."""
        ...

    async def list_containers(
        self, labels: dict[str, str] | None = None
    ) -> list[ContainerStatus]:
        """List managed containers, optionally narrowed by extra *labels*."""
        ...
