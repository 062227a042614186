"""RuntimeDetector — probes the host for an available container engine.

Preference order is fixed per platform:

- macOS: Apple Container, then Docker (incl. Colima), then Podman.
- Linux: Docker, then Podman.
- anything else: no engine.

Probing only runs ``<engine> version``-style commands; it never changes host
state.  Probe failures of any kind count as "not available".
"""

from __future__ import annotations

import logging
import re
import shutil
import sys
import time

from pydantic import BaseModel

from toolcage.runtime.errors import SandboxError
from toolcage.runtime.process import ProcessRunner, SubprocessRunner
from toolcage.runtime.sandbox.models import RuntimeType

logger = logging.getLogger(__name__)

_CACHE_TTL = 60.0
_APPLE_VERSION_PATTERN = re.compile(r"version\s+(\d+\.\d+\.\d+)")


class RuntimeInfo(BaseModel):
    """Version and location of one detected engine."""

    type: RuntimeType
    version: str
    path: str


class RuntimeDetector:
    """Detect which container engine this host can drive."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        *,
        platform: str | None = None,
        probe_timeout: float = 5.0,
    ) -> None:
        self._runner = runner or SubprocessRunner()
        self._platform = platform or sys.platform
        self._probe_timeout = probe_timeout
        self._cache: dict[RuntimeType, RuntimeInfo | None] = {}
        self._cache_timestamp = 0.0

    @property
    def platform(self) -> str:
        return self._platform

    async def detect(self) -> RuntimeType | None:
        """Return the first available engine in preference order, or ``None``."""
        if self._platform == "darwin":
            if await self.check_apple_container():
                return RuntimeType.APPLE_CONTAINER
            if await self.check_docker():
                return RuntimeType.DOCKER
            if await self.check_podman():
                return RuntimeType.PODMAN
        elif self._platform.startswith("linux"):
            if await self.check_docker():
                return RuntimeType.DOCKER
            if await self.check_podman():
                return RuntimeType.PODMAN

        logger.info("No container runtime detected on %s", self._platform)
        return None

    async def check_docker(self) -> bool:
        return await self._probe(["docker", "version"])

    async def check_podman(self) -> bool:
        return await self._probe(["podman", "version"])

    async def check_apple_container(self) -> bool:
        if self._platform != "darwin":
            return False
        return await self._probe(["container", "--version"])

    async def get_runtime_info(self, runtime_type: RuntimeType) -> RuntimeInfo | None:
        """Return version/path details for *runtime_type*, cached for a minute."""
        now = time.monotonic()
        if runtime_type in self._cache and now - self._cache_timestamp < _CACHE_TTL:
            return self._cache[runtime_type]

        if runtime_type == RuntimeType.DOCKER:
            info = await self._version_info(
                runtime_type, ["docker", "version", "--format", "{{.Server.Version}}"]
            )
        elif runtime_type == RuntimeType.PODMAN:
            info = await self._version_info(
                runtime_type, ["podman", "version", "--format", "{{.Version}}"]
            )
        else:
            info = await self._apple_container_info()

        self._cache[runtime_type] = info
        self._cache_timestamp = now
        return info

    def clear_cache(self) -> None:
        self._cache.clear()
        self._cache_timestamp = 0.0

    async def _probe(self, cmd: list[str]) -> bool:
        try:
            output = await self._runner.run(cmd, timeout=self._probe_timeout)
        except SandboxError as exc:
            logger.debug("Probe %s failed: %s", cmd[0], exc)
            return False
        return output.ok

    async def _version_info(
        self, runtime_type: RuntimeType, cmd: list[str]
    ) -> RuntimeInfo | None:
        try:
            output = await self._runner.run(cmd, timeout=self._probe_timeout)
        except SandboxError:
            return None
        if not output.ok:
            return None
        return RuntimeInfo(
            type=runtime_type,
            version=output.stdout.strip() or "unknown",
            path=shutil.which(cmd[0]) or "",
        )

    async def _apple_container_info(self) -> RuntimeInfo | None:
        if self._platform != "darwin":
            return None
        try:
            output = await self._runner.run(["container", "--version"], timeout=self._probe_timeout)
        except SandboxError:
            return None
        if not output.ok:
            return None
        match = _APPLE_VERSION_PATTERN.search(output.stdout)
        return RuntimeInfo(
            type=RuntimeType.APPLE_CONTAINER,
            version=match.group(1) if match else "unknown",
            path=shutil.which("container") or "",
        )
