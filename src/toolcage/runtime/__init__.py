"""Sandboxed execution layer — runtime detection, orchestration and the secure executor.

The orchestrator and executor live in :mod:`toolcage.runtime.orchestrator`
and :mod:`toolcage.runtime.executor`; this package only re-exports the
shared errors and request models.
"""

from toolcage.runtime.errors import (
    OrchestratorNotInitializedError,
    RuntimeNotImplementedError,
    RuntimeSafetyError,
    RuntimeUnavailableError,
    SandboxError,
    SandboxTimeoutError,
    UnknownToolError,
)
from toolcage.runtime.models import ExecutionPermissions, ExecutionRequest, ExecutionResult

__all__ = [
    "ExecutionPermissions",
    "ExecutionRequest",
    "ExecutionResult",
    "OrchestratorNotInitializedError",
    "RuntimeNotImplementedError",
    "RuntimeSafetyError",
    "RuntimeUnavailableError",
    "SandboxError",
    "SandboxTimeoutError",
    "UnknownToolError",
]
