"""Shared error types for the sandboxed execution layer."""


class RuntimeSafetyError(Exception):
    """Base error for all sandboxed execution failures."""


class SandboxError(RuntimeSafetyError):
    """A container engine operation failed (creation, execution, or cleanup)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Sandbox error" + (f": {detail}" if detail else ""))


class SandboxTimeoutError(SandboxError):
    """An engine call or sandboxed command exceeded its deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Execution timed out after {timeout}s")


class RuntimeUnavailableError(RuntimeSafetyError):
    """No usable container engine was found on this host."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        msg = "No container runtime found. Please install Docker or Podman."
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class RuntimeNotImplementedError(RuntimeSafetyError):
    """A container engine was detected but has no runtime implementation yet."""

    def __init__(self, runtime_type: str) -> None:
        self.runtime_type = runtime_type
        super().__init__(f"{runtime_type} runtime not yet implemented")


class OrchestratorNotInitializedError(RuntimeSafetyError):
    """A lifecycle operation was attempted before ``initialize()``."""

    def __init__(self) -> None:
        super().__init__("Orchestrator not initialized. Call initialize() first.")


class UnknownToolError(RuntimeSafetyError):
    """A request named a tool with no command mapping and no ``command`` argument."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"Unknown tool: {tool}")
