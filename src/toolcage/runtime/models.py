"""Request, permission and result models for secure tool execution."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ExecutionPermissions(BaseModel):
    """Policy scoping a single execution request.

    Supplied by the session/policy layer and treated as immutable for the
    lifetime of the request.
    """

    model_config = {"frozen": True}

    allow_tools: list[str] = Field(
        default_factory=list, description="Tool names allowed; '*' allows every tool."
    )
    deny_tools: list[str] = Field(
        default_factory=list, description="Tool names denied; takes precedence over allow_tools."
    )
    allowed_paths: list[str] = Field(
        default_factory=list, description="Host paths bind-mounted read-write under the workspace."
    )
    blocked_paths: list[str] = Field(
        default_factory=list, description="Container paths shadowed by empty read-only tmpfs."
    )
    network_access: bool = Field(default=False, description="Attach the sandbox to a bridge network.")
    max_execution_time: float = Field(default=30.0, description="Exec deadline in seconds.")
    max_memory: str = Field(default="512m", description="Memory limit (engine format).")


class ExecutionRequest(BaseModel):
    """One tool invocation to run inside a sandbox."""

    tool: str
    args: dict[str, Any] = Field(default_factory=dict)
    session_id: str
    agent_id: str
    permissions: ExecutionPermissions = Field(default_factory=ExecutionPermissions)


class ExecutionResult(BaseModel):
    """Outcome of one request, as returned to the caller."""

    model_config = {"populate_by_name": True}

    success: bool
    output: str | None = None
    error: str | None = None
    execution_time: float = Field(
        default=0.0, alias="executionTime", description="Wall time in milliseconds."
    )
