"""Audit events for secure execution and their best-effort delivery.

Exactly one :class:`SecureExecutionAuditEvent` is produced per request.  The
sink is an optional callback (sync or async); delivery failures are logged
and never reach the caller.  ``event.model_dump(mode="json", by_alias=True,
exclude_none=True)`` yields the camelCase wire shape consumed by audit sinks.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime  # noqa: TC003
from typing import Literal

from pydantic import BaseModel, Field

from toolcage.runtime.models import ExecutionResult
from toolcage.runtime.security.blocklist import BlockedCommand  # noqa: TC001

logger = logging.getLogger(__name__)

AuditOutcome = Literal["success", "failure", "blocked"]


class SecureExecutionContext(BaseModel):
    """Who asked for the execution, and when."""

    model_config = {"populate_by_name": True}

    session_id: str = Field(..., alias="sessionId")
    agent_id: str = Field(..., alias="agentId")
    request_id: str = Field(..., alias="requestId")
    timestamp: datetime


class BlockedCommandInfo(BaseModel):
    """The blocklist entry that rejected a command."""

    description: str
    reason: str
    severity: str | None = None
    category: str | None = None

    @classmethod
    def from_blocked(cls, blocked: BlockedCommand) -> BlockedCommandInfo:
        return cls(
            description=blocked.description,
            reason=blocked.reason,
            severity=blocked.severity,
            category=blocked.category,
        )


class SecureExecutionAuditEvent(BaseModel):
    """Immutable record of how one execution request was handled."""

    model_config = {"populate_by_name": True, "frozen": True}

    type: Literal["secure-execution"] = "secure-execution"
    timestamp: str = Field(..., description="ISO-8601 time the request was received.")
    outcome: AuditOutcome
    context: SecureExecutionContext
    tool: str
    command: str
    blocked_command: BlockedCommandInfo | None = Field(default=None, alias="blockedCommand")
    container_id: str | None = Field(default=None, alias="containerId")
    result: ExecutionResult

    def to_wire(self) -> dict[str, object]:
        """Serialise to the camelCase JSON shape expected by audit sinks."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


AuditCallback = Callable[[SecureExecutionAuditEvent], Awaitable[None] | None]


def resolve_outcome(result: ExecutionResult, blocked: BlockedCommand | None) -> AuditOutcome:
    if result.success:
        return "success"
    if blocked is not None:
        return "blocked"
    return "failure"


async def emit_audit_event(
    callback: AuditCallback | None, event: SecureExecutionAuditEvent
) -> bool:
    """Deliver *event* to *callback*; return whether delivery succeeded.

    A missing callback is not an error (returns ``False``).  Exceptions raised
    by the callback are logged and swallowed.
    """
    if callback is None:
        return False

    try:
        maybe_awaitable = callback(event)
        if inspect.isawaitable(maybe_awaitable):
            await maybe_awaitable
    except Exception:
        logger.exception(
            "Failed to send audit event for request %s", event.context.request_id
        )
        return False
    return True
