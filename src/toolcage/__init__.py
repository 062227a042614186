"""toolcage — sandboxed, audited tool execution for AI agents."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from toolcage.runtime.executor import SecureExecutor as SecureExecutor
    from toolcage.runtime.orchestrator import ContainerOrchestrator as ContainerOrchestrator

_LAZY_EXPORTS = {
    "SecureExecutor": "toolcage.runtime.executor",
    "ContainerOrchestrator": "toolcage.runtime.orchestrator",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'toolcage' has no attribute {name!r}")
