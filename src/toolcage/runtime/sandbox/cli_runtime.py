"""CLIContainerRuntime — drives a Docker-compatible engine through its CLI.

Docker and Podman accept the same verbs (``run``, ``exec``, ``inspect``,
``logs``, ``stop``, ``rm``, ``ps``) and differ only in a handful of flags and
status strings.  Those differences live in an :class:`EngineSyntax` value;
the command building and output parsing below are shared.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from toolcage.runtime.errors import SandboxError, SandboxTimeoutError
from toolcage.runtime.process import ProcessOutput, ProcessRunner, SubprocessRunner
from toolcage.runtime.sandbox.models import (
    ContainerConfig,
    ContainerExecutionResult,
    ContainerMount,
    ContainerState,
    ContainerStatus,
    RuntimeType,
)

logger = logging.getLogger(__name__)

_INSPECT_FORMAT = (
    "{{.State.Status}}|{{.State.ExitCode}}|{{.State.StartedAt}}|{{.State.FinishedAt}}"
)
_PS_FORMAT = "{{.ID}}|{{.Names}}|{{.State}}|{{.Status}}"

_TIMESTAMP_PATTERN = re.compile(
    r"(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(Z|[+-]\d{2}:?\d{2})?"
)

# stderr fragments meaning "the container no longer exists"
_GONE_MARKERS = ("no such container", "no container with name or id", "already in progress")


@dataclass(frozen=True)
class EngineSyntax:
    """Everything that differs between two Docker-compatible engine CLIs."""

    runtime_type: RuntimeType
    binary: str
    extra_run_flags: tuple[str, ...] = ()
    status_map: dict[str, ContainerState] = field(default_factory=dict)
    unset_timestamp: str | None = None
    list_failures_are_empty: bool = False


class CLIContainerRuntime:
    """Container runtime for one engine CLI.

    Satisfies the :class:`~toolcage.runtime.sandbox.runtime.ContainerRuntime`
    protocol.  The engine-side container name is ``<name_prefix>-<container_id>``
    and every operation addresses the container by that name.  Managed containers
    listed without that prefix keep their engine id as container id and are
    addressed by it.
    """

    def __init__(
        self,
        syntax: EngineSyntax,
        runner: ProcessRunner | None = None,
        *,
        name_prefix: str = "toolcage",
        label_prefix: str = "toolcage",
    ) -> None:
        self._syntax = syntax
        self._runner = runner or SubprocessRunner()
        self._name_prefix = name_prefix
        self._label_prefix = label_prefix
        self._unprefixed: set[str] = set()

    @property
    def type(self) -> RuntimeType:
        return self._syntax.runtime_type

    @property
    def syntax(self) -> EngineSyntax:
        return self._syntax

    @property
    def managed_label(self) -> str:
        return f"{self._label_prefix}.managed"

    def container_name(self, container_id: str) -> str:
        """Return the engine-side name for *container_id*."""
        if container_id in self._unprefixed:
            return container_id
        return f"{self._name_prefix}-{container_id}"

    # -- lifecycle ----------------------------------------------------------

    async def create_container(self, config: ContainerConfig) -> ContainerStatus:
        """``run -d --rm`` a hardened container for *config*."""
        output = await self._run(self.build_run_command(config))
        self._check(output, f"create container {config.container_id}")
        logger.info(
            "Created %s container %s (engine id %s)",
            self._syntax.binary,
            config.container_id,
            output.stdout[:12] or "?",
        )
        return ContainerStatus(
            container_id=config.container_id,
            name=self.container_name(config.container_id),
            state=ContainerState.RUNNING,
            started_at=datetime.now(timezone.utc),
        )

    async def start_container(self, container_id: str) -> None:
        output = await self._run([self._syntax.binary, "start", self.container_name(container_id)])
        self._check(output, f"start container {container_id}")

    async def stop_container(self, container_id: str, timeout: float = 30) -> None:
        output = await self._run([
            self._syntax.binary, "stop",
            "-t", str(int(timeout)),
            self.container_name(container_id),
        ])
        self._check(output, f"stop container {container_id}")

    async def remove_container(self, container_id: str, force: bool = False) -> None:
        cmd = [self._syntax.binary, "rm"]
        if force:
            cmd.append("-f")
        cmd.append(self.container_name(container_id))

        output = await self._run(cmd)
        if not output.ok and _is_gone(output):
            logger.debug("Container %s already removed", container_id)
            return
        self._check(output, f"remove container {container_id}")

    # -- execution ----------------------------------------------------------

    async def exec_in_container(
        self,
        container_id: str,
        command: list[str],
        *,
        timeout: float | None = None,
        working_dir: str | None = None,
    ) -> ContainerExecutionResult:
        """Run *command* inside the container.

        Never raises: a timeout or a failure to reach the engine becomes a
        result with ``exit_code=-1`` and the error text in ``stderr``.
        """
        cmd = [self._syntax.binary, "exec"]
        if working_dir:
            cmd.extend(["-w", working_dir])
        cmd.append(self.container_name(container_id))
        cmd.extend(command)

        start = time.monotonic()
        try:
            output = await self._runner.run(cmd, timeout=timeout)
        except SandboxTimeoutError as exc:
            logger.warning("Exec in %s timed out after %ss", container_id, exc.timeout)
            return ContainerExecutionResult(
                exit_code=-1, stderr=str(exc), execution_time=_elapsed_ms(start)
            )
        except SandboxError as exc:
            logger.warning("Exec in %s failed: %s", container_id, exc)
            return ContainerExecutionResult(
                exit_code=-1, stderr=str(exc), execution_time=_elapsed_ms(start)
            )

        return ContainerExecutionResult(
            exit_code=output.returncode,
            stdout=output.stdout,
            stderr=output.stderr,
            execution_time=_elapsed_ms(start),
        )

    # -- inspection ---------------------------------------------------------

    async def get_container_status(self, container_id: str) -> ContainerStatus:
        cmd = [
            self._syntax.binary, "inspect",
            "-f", _INSPECT_FORMAT,
            self.container_name(container_id),
        ]
        try:
            output = await self._run(cmd)
            self._check(output, f"inspect container {container_id}")
            status, exit_code, started_at, finished_at = (
                output.stdout.splitlines()[0].split("|") + ["", "", "", ""]
            )[:4]
        except (SandboxError, IndexError) as exc:
            logger.debug("Inspect of %s failed: %s", container_id, exc)
            return ContainerStatus(
                container_id=container_id,
                state=ContainerState.ERROR,
                error="Container not found",
            )

        return ContainerStatus(
            container_id=container_id,
            name=self.container_name(container_id),
            state=self.map_state(status),
            started_at=self._parse_timestamp(started_at),
            finished_at=self._parse_timestamp(finished_at),
            exit_code=int(exit_code) if exit_code.strip().lstrip("-").isdigit() else None,
        )

    async def get_container_logs(self, container_id: str, tail: int = 100) -> str:
        output = await self._run([
            self._syntax.binary, "logs",
            "--tail", str(tail),
            self.container_name(container_id),
        ])
        self._check(output, f"fetch logs for {container_id}")
        return output.stdout

    async def list_containers(
        self, labels: dict[str, str] | None = None
    ) -> list[ContainerStatus]:
        """List containers carrying the managed label (plus any extra *labels*)."""
        cmd = [self._syntax.binary, "ps", "-a", "--format", _PS_FORMAT]
        for key, value in (labels or {}).items():
            cmd.extend(["--filter", f"label={key}={value}"])
        cmd.extend(["--filter", f"label={self.managed_label}=true"])

        try:
            output = await self._run(cmd)
            self._check(output, "list containers")
        except SandboxError:
            if self._syntax.list_failures_are_empty:
                logger.warning("Listing %s containers failed", self._syntax.binary, exc_info=True)
                return []
            raise

        containers: list[ContainerStatus] = []
        for line in output.stdout.splitlines():
            if not line.strip():
                continue
            engine_id, name, state = (line.split("|") + ["", ""])[:3]
            container_id = self._id_from_name(name)
            if container_id is None:
                container_id = engine_id
                self._unprefixed.add(engine_id)
            containers.append(
                ContainerStatus(
                    container_id=container_id,
                    name=name or None,
                    state=self.map_state(state),
                )
            )
        return containers

    # -- command building ---------------------------------------------------

    def build_run_command(self, config: ContainerConfig) -> list[str]:
        """Build the full ``<engine> run`` argument vector for *config*."""
        cmd: list[str] = [
            self._syntax.binary, "run",
            "-d",
            "--rm",
            f"--name={self.container_name(config.container_id)}",
            f"--memory={config.resources.memory}",
            f"--cpus={config.resources.cpus}",
            f"--network={config.network}",
        ]

        security = config.security
        if security.read_only_root_filesystem:
            cmd.append("--read-only")
        if security.no_new_privileges:
            cmd.append("--security-opt=no-new-privileges:true")
        if "ALL" in (cap.upper() for cap in security.drop_capabilities):
            cmd.append("--cap-drop=ALL")
        else:
            cmd.extend(f"--cap-drop={cap}" for cap in security.drop_capabilities)
        if security.seccomp_profile:
            cmd.append(f"--security-opt=seccomp={security.seccomp_profile}")
        if security.apparmor_profile:
            cmd.append(f"--security-opt=apparmor={security.apparmor_profile}")

        cmd.extend(self._syntax.extra_run_flags)

        for mount in config.mounts:
            cmd.append(_mount_flag(mount))

        for key, value in config.env.items():
            cmd.append(f"-e={key}={value}")

        cmd.append(f"--label={self._label_prefix}.session={config.session_id}")
        cmd.append(f"--label={self._label_prefix}.agent={config.agent_id}")
        cmd.append(f"--label={self.managed_label}=true")

        cmd.append(config.image)
        if config.command:
            cmd.extend(config.command)
        return cmd

    def map_state(self, status: str) -> ContainerState:
        """Map engine status text to a :class:`ContainerState`."""
        return self._syntax.status_map.get(status.strip().lower(), ContainerState.PENDING)

    # -- helpers ------------------------------------------------------------

    async def _run(self, cmd: list[str]) -> ProcessOutput:
        return await self._runner.run(cmd)

    def _check(self, output: ProcessOutput, action: str) -> None:
        if not output.ok:
            detail = output.stderr or output.stdout or "non-zero exit"
            raise SandboxError(
                f"{self._syntax.binary} failed to {action} (rc={output.returncode}): {detail}"
            )

    def _id_from_name(self, name: str) -> str | None:
        prefix = f"{self._name_prefix}-"
        name = name.split(",")[0].strip().lstrip("/")
        if name.startswith(prefix):
            return name[len(prefix):]
        return None

    def _parse_timestamp(self, text: str) -> datetime | None:
        text = text.strip()
        if not text or text == self._syntax.unset_timestamp or text.startswith("0001-01-01"):
            return None
        match = _TIMESTAMP_PATTERN.match(text)
        if match is None:
            return None
        day, clock, fraction, tz = match.groups()
        micros = (fraction or "0")[:6].ljust(6, "0")
        if not tz or tz == "Z":
            tz = "+00:00"
        elif ":" not in tz:
            tz = f"{tz[:3]}:{tz[3:]}"
        try:
            return datetime.fromisoformat(f"{day}T{clock}.{micros}{tz}")
        except ValueError:
            return None


def _mount_flag(mount: ContainerMount) -> str:
    if mount.type == "bind":
        suffix = ":ro" if mount.read_only else ""
        return f"-v={mount.source}:{mount.target}{suffix}"
    if mount.type == "volume":
        readonly = "true" if mount.read_only else "false"
        return (
            f"--mount=type=volume,source={mount.source},"
            f"target={mount.target},readonly={readonly}"
        )
    suffix = ",readonly" if mount.read_only else ""
    return f"--mount=type=tmpfs,target={mount.target}{suffix}"


def _is_gone(output: ProcessOutput) -> bool:
    text = f"{output.stderr} {output.stdout}".lower()
    return any(marker in text for marker in _GONE_MARKERS)


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 3)
