"""SecureExecutor — runs agent tools inside ephemeral, hardened containers.

Each :meth:`SecureExecutor.execute` call passes through three independent
gates before anything runs:

1. **Permission check** — the tool must be allowed (deny list wins).
2. **Blocklist check** — the rendered shell command must not match the
   static blocklist.
3. **Container hardening** — the command runs in a fresh container with a
   read-only root filesystem, no new privileges, all capabilities dropped
   and every blocked path shadowed by an empty read-only tmpfs.

The container is destroyed afterwards no matter what happened, and exactly
one audit event is emitted per request.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from toolcage.runtime.audit import (
    AuditCallback,
    BlockedCommandInfo,
    SecureExecutionAuditEvent,
    SecureExecutionContext,
    emit_audit_event,
    resolve_outcome,
)
from toolcage.runtime.errors import SandboxTimeoutError
from toolcage.runtime.models import ExecutionResult
from toolcage.runtime.orchestrator import ContainerOrchestrator
from toolcage.runtime.sandbox.models import (
    ContainerConfig,
    ContainerMount,
    ContainerResources,
    ContainerSecurityConfig,
    RuntimeType,
)
from toolcage.runtime.security.blocklist import BlockedMatch, is_command_blocked, validate_commands
from toolcage.runtime.security.permissions import denial_reason, is_tool_allowed
from toolcage.runtime.tools import build_tool_command
from toolcage.utils.telemetry import (
    ATTR_AGENT_ID,
    ATTR_CONTAINER_ID,
    ATTR_EXIT_CODE,
    ATTR_OUTCOME,
    ATTR_REQUEST_ID,
    ATTR_SESSION_ID,
    ATTR_TOOL_NAME,
    get_tracer,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from toolcage.runtime.models import ExecutionRequest
    from toolcage.runtime.security.blocklist import BlockedCommand
    from toolcage.settings import SandboxSettings

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


@dataclass
class ValidationReport:
    """Dry-run outcome of :meth:`SecureExecutor.validate`."""

    tool_allowed: bool
    command: str
    blocked_commands: list[BlockedMatch] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.tool_allowed and not self.blocked_commands


class SecureExecutor:
    """Permission-checked, blocklist-checked, container-isolated tool execution.

    Construct one per process and inject it where needed::

        executor = SecureExecutor(ContainerOrchestrator(), audit_callback=sink)
        result = await executor.execute(request)
    """

    def __init__(
        self,
        orchestrator: ContainerOrchestrator | None = None,
        *,
        audit_callback: AuditCallback | None = None,
        settings: SandboxSettings | None = None,
    ) -> None:
        self._orchestrator = orchestrator or ContainerOrchestrator(settings=settings)
        self._settings = settings or self._orchestrator.settings
        self._audit_callback = audit_callback
        self._initialized = False

    @property
    def orchestrator(self) -> ContainerOrchestrator:
        return self._orchestrator

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the underlying orchestrator (idempotent)."""
        if self._initialized:
            return
        await self._orchestrator.initialize()
        self._initialized = True

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run *request* in a sandbox and return a structured result.

        Denials, blocklist hits and container failures all come back as
        ``success=False`` results.

        Raises:
            UnknownToolError: If the tool has no command mapping and no
                ``command`` argument was supplied.
            RuntimeUnavailableError: If no container engine can be used.
        """
        context = SecureExecutionContext(
            session_id=request.session_id,
            agent_id=request.agent_id,
            request_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
        )

        with _tracer.start_as_current_span("secure_executor.execute") as span:
            span.set_attribute(ATTR_TOOL_NAME, request.tool)
            span.set_attribute(ATTR_SESSION_ID, request.session_id)
            span.set_attribute(ATTR_AGENT_ID, request.agent_id)
            span.set_attribute(ATTR_REQUEST_ID, context.request_id)

            if not is_tool_allowed(request.tool, request.permissions):
                logger.info(
                    "Denied tool %s for session %s", request.tool, request.session_id
                )
                result = ExecutionResult(
                    success=False,
                    error=denial_reason(request.tool, request.permissions),
                    execution_time=0,
                )
                await self._audit(context, request, "", result)
                span.set_attribute(ATTR_OUTCOME, "failure")
                return result

            command = build_tool_command(request.tool, request.args)

            blocked = is_command_blocked(command)
            if blocked is not None:
                logger.warning(
                    "Blocked command for tool %s (session %s): %s",
                    request.tool,
                    request.session_id,
                    blocked.description,
                )
                result = ExecutionResult(
                    success=False,
                    error=f"Command blocked: {blocked.description}. Reason: {blocked.reason}",
                    execution_time=0,
                )
                await self._audit(context, request, command, result, blocked=blocked)
                span.set_attribute(ATTR_OUTCOME, "blocked")
                return result

            await self.initialize()

            container_id = self._orchestrator.generate_container_id()
            span.set_attribute(ATTR_CONTAINER_ID, container_id)
            result = await self._run_sandboxed(request, command, container_id, span)

            await self._audit(context, request, command, result, container_id=container_id)
            span.set_attribute(ATTR_OUTCOME, "success" if result.success else "failure")
            return result

    def validate(self, request: ExecutionRequest) -> ValidationReport:
        """Run the permission and blocklist checks without creating a container.

        Raises:
            UnknownToolError: Same as :meth:`execute`.
        """
        tool_allowed = is_tool_allowed(request.tool, request.permissions)
        command = build_tool_command(request.tool, request.args)
        validation = validate_commands([command])
        return ValidationReport(
            tool_allowed=tool_allowed,
            command=command,
            blocked_commands=validation.blocked,
        )

    def build_container_config(
        self, request: ExecutionRequest, container_id: str
    ) -> ContainerConfig:
        """Translate a request's permissions into a hardened container config."""
        permissions = request.permissions
        prefix = self._settings.workspace_prefix.rstrip("/")

        mounts = [
            ContainerMount(
                type="bind",
                source=path,
                target=f"{prefix}/{path.lstrip('/')}",
                read_only=False,
            )
            for path in permissions.allowed_paths
        ]
        # Blocked paths are shadowed even if the command text never named them.
        mounts.extend(
            ContainerMount(type="tmpfs", source="", target=path, read_only=True)
            for path in permissions.blocked_paths
        )

        return ContainerConfig(
            container_id=container_id,
            session_id=request.session_id,
            agent_id=request.agent_id,
            runtime=self._orchestrator.runtime_type or RuntimeType.DOCKER,
            image=self._settings.image,
            resources=ContainerResources(
                memory=permissions.max_memory or self._settings.default_memory,
                cpus=self._settings.default_cpus,
                timeout=permissions.max_execution_time or self._settings.default_timeout,
            ),
            mounts=mounts,
            env={
                "SESSION_ID": request.session_id,
                "AGENT_ID": request.agent_id,
                "TOOL_NAME": request.tool,
                "REQUEST_ID": container_id,
            },
            network="bridge" if permissions.network_access else "none",
            security=ContainerSecurityConfig(
                read_only_root_filesystem=True,
                no_new_privileges=True,
                drop_capabilities=["ALL"],
            ),
        )

    async def cleanup(self) -> None:
        """Destroy any containers still tracked by the orchestrator."""
        await self._orchestrator.cleanup()
        self._initialized = False

    async def _run_sandboxed(
        self, request: ExecutionRequest, command: str, container_id: str, span: Span
    ) -> ExecutionResult:
        timeout = request.permissions.max_execution_time or self._settings.default_timeout
        try:
            config = self.build_container_config(request, container_id)
            await self._orchestrator.create_container(config)
            try:
                exec_result = await asyncio.wait_for(
                    self._orchestrator.exec_in_container(
                        container_id, ["sh", "-c", command], timeout=timeout
                    ),
                    timeout=timeout,
                )
            except TimeoutError:
                raise SandboxTimeoutError(timeout) from None
        except Exception as exc:
            logger.warning("Sandboxed execution of %s failed: %s", request.tool, exc)
            return ExecutionResult(success=False, error=str(exc), execution_time=0)
        finally:
            try:
                await self._orchestrator.destroy_container(container_id, force=True)
            except Exception:
                logger.warning("Cleanup of container %s failed", container_id, exc_info=True)

        span.set_attribute(ATTR_EXIT_CODE, exec_result.exit_code)
        return ExecutionResult(
            success=exec_result.exit_code == 0,
            output=exec_result.stdout or None,
            error=exec_result.stderr or None,
            execution_time=exec_result.execution_time,
        )

    async def _audit(
        self,
        context: SecureExecutionContext,
        request: ExecutionRequest,
        command: str,
        result: ExecutionResult,
        *,
        blocked: BlockedCommand | None = None,
        container_id: str | None = None,
    ) -> None:
        if self._audit_callback is None:
            return
        event = SecureExecutionAuditEvent(
            timestamp=context.timestamp.isoformat(),
            outcome=resolve_outcome(result, blocked),
            context=context,
            tool=request.tool,
            command=command,
            blocked_command=BlockedCommandInfo.from_blocked(blocked) if blocked else None,
            container_id=container_id,
            result=result,
        )
        await emit_audit_event(self._audit_callback, event)
