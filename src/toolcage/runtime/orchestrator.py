"""ContainerOrchestrator — owns one container runtime and its live containers.

The runtime is either injected or chosen once by :meth:`initialize` via the
:class:`~toolcage.runtime.detector.RuntimeDetector`.  Every container created
through the orchestrator is tracked until it is destroyed; teardown is a
two-step sequence (graceful stop with a fixed grace period, then removal)
whose failures are logged, never raised, and which always evicts the
registry entry.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toolcage.runtime.detector import RuntimeDetector
from toolcage.runtime.errors import (
    OrchestratorNotInitializedError,
    RuntimeNotImplementedError,
    RuntimeUnavailableError,
)
from toolcage.runtime.sandbox.docker_runtime import DockerRuntime
from toolcage.runtime.sandbox.models import RuntimeType
from toolcage.runtime.sandbox.podman_runtime import PodmanRuntime
from toolcage.settings import SandboxSettings
from toolcage.utils.telemetry import ATTR_CONTAINER_ID, ATTR_IMAGE, ATTR_RUNTIME, get_tracer

if TYPE_CHECKING:
    from toolcage.runtime.process import ProcessRunner
    from toolcage.runtime.sandbox.models import (
        ContainerConfig,
        ContainerExecutionResult,
        ContainerStatus,
    )
    from toolcage.runtime.sandbox.runtime import ContainerRuntime

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


@dataclass
class StopAllReport:
    """Per-container outcome of :meth:`ContainerOrchestrator.stop_all`."""

    stopped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class ContainerOrchestrator:
    """Lifecycle management for sandbox containers on one engine.

    Usage::

        orchestrator = ContainerOrchestrator()
        await orchestrator.initialize()
        status = await orchestrator.create_container(config)
        result = await orchestrator.exec_in_container(config.container_id, ["ls"])
        await orchestrator.destroy_container(config.container_id, force=True)
    """

    def __init__(
        self,
        runtime: ContainerRuntime | None = None,
        *,
        detector: RuntimeDetector | None = None,
        runner: ProcessRunner | None = None,
        settings: SandboxSettings | None = None,
    ) -> None:
        self._settings = settings or SandboxSettings()
        self._runner = runner
        self._detector = detector
        self._runtime = runtime
        self._runtime_type: RuntimeType | None = runtime.type if runtime else None
        self._active: dict[str, ContainerStatus] = {}

    @property
    def settings(self) -> SandboxSettings:
        return self._settings

    @property
    def is_initialized(self) -> bool:
        return self._runtime is not None

    @property
    def runtime_type(self) -> RuntimeType | None:
        return self._runtime_type

    @property
    def runtime(self) -> ContainerRuntime:
        if self._runtime is None:
            raise OrchestratorNotInitializedError
        return self._runtime

    @property
    def active_container_count(self) -> int:
        return len(self._active)

    @property
    def active_containers(self) -> dict[str, ContainerStatus]:
        """Snapshot of the tracked containers, keyed by container id."""
        return dict(self._active)

    async def initialize(self) -> None:
        """Detect the host engine and build its runtime (no-op if already set).

        Raises:
            RuntimeUnavailableError: If no engine is available.
            RuntimeNotImplementedError: If the detected engine has no runtime.
        """
        if self._runtime is not None:
            return

        detector = self._detector or RuntimeDetector(
            self._runner, probe_timeout=self._settings.probe_timeout
        )
        runtime_type = await detector.detect()
        if runtime_type is None:
            raise RuntimeUnavailableError

        self._runtime = self._build_runtime(runtime_type)
        self._runtime_type = runtime_type
        logger.info("Using %s container runtime", runtime_type.value)

    async def create_container(self, config: ContainerConfig) -> ContainerStatus:
        """Create and start a container, tracking it under ``config.container_id``."""
        runtime = self.runtime
        with _tracer.start_as_current_span("orchestrator.create_container") as span:
            span.set_attribute(ATTR_CONTAINER_ID, config.container_id)
            span.set_attribute(ATTR_IMAGE, config.image)
            span.set_attribute(ATTR_RUNTIME, runtime.type.value)
            status = await runtime.create_container(config)
        self._active[config.container_id] = status
        return status

    async def exec_in_container(
        self,
        container_id: str,
        command: list[str],
        *,
        timeout: float | None = None,
        working_dir: str | None = None,
    ) -> ContainerExecutionResult:
        return await self.runtime.exec_in_container(
            container_id, command, timeout=timeout, working_dir=working_dir
        )

    async def destroy_container(self, container_id: str, force: bool = False) -> None:
        """Stop then remove a container; never raises for engine failures.

        The registry entry is evicted whether or not the engine calls
        succeed, so calling this twice for the same id is harmless.
        """
        runtime = self.runtime
        try:
            await self._teardown(runtime, container_id, force=force)
        except Exception:
            logger.warning("Failed to destroy container %s", container_id, exc_info=True)
        finally:
            self._active.pop(container_id, None)

    async def get_container_status(self, container_id: str) -> ContainerStatus:
        status = await self.runtime.get_container_status(container_id)
        if container_id in self._active:
            self._active[container_id] = status
        return status

    async def get_container_logs(self, container_id: str, tail: int = 100) -> str:
        return await self.runtime.get_container_logs(container_id, tail)

    async def list_containers(
        self, labels: dict[str, str] | None = None
    ) -> list[ContainerStatus]:
        """List managed containers on the host (not only the tracked ones)."""
        return await self.runtime.list_containers(labels)

    async def cleanup(self) -> None:
        """Destroy every tracked container concurrently, then clear the registry."""
        if self._runtime is None:
            return

        container_ids = list(self._active)
        results = await asyncio.gather(
            *(self.destroy_container(cid, force=True) for cid in container_ids),
            return_exceptions=True,
        )
        for cid, result in zip(container_ids, results):
            if isinstance(result, BaseException):
                logger.error("Failed to clean up container %s: %s", cid, result)
        self._active.clear()

    async def stop_all(self, force: bool = True) -> StopAllReport:
        """Tear down every managed container on the host, tracked or not.

        Failures are collected per container; one failing teardown never
        prevents the others.
        """
        runtime = self.runtime
        listed = await runtime.list_containers()
        container_ids = list(dict.fromkeys([s.container_id for s in listed] + list(self._active)))

        results = await asyncio.gather(
            *(self._teardown(runtime, cid, force=force) for cid in container_ids),
            return_exceptions=True,
        )

        report = StopAllReport()
        for cid, result in zip(container_ids, results):
            self._active.pop(cid, None)
            if isinstance(result, BaseException):
                logger.warning("Failed to stop container %s: %s", cid, result)
                report.failed[cid] = str(result)
            else:
                report.stopped.append(cid)
        return report

    @staticmethod
    def generate_container_id() -> str:
        """Return a short, unique container id."""
        return f"tc-{uuid.uuid4().hex[:8]}"

    async def _teardown(self, runtime: ContainerRuntime, container_id: str, *, force: bool) -> None:
        try:
            await runtime.stop_container(container_id, self._settings.destroy_grace_period)
        finally:
            await runtime.remove_container(container_id, force)

    def _build_runtime(self, runtime_type: RuntimeType) -> ContainerRuntime:
        prefixes = {
            "name_prefix": self._settings.name_prefix,
            "label_prefix": self._settings.label_prefix,
        }
        if runtime_type == RuntimeType.DOCKER:
            return DockerRuntime(self._runner, **prefixes)
        if runtime_type == RuntimeType.PODMAN:
            return PodmanRuntime(self._runner, **prefixes)
        raise RuntimeNotImplementedError(runtime_type.value)
