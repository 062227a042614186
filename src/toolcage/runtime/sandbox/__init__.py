"""Sandbox subsystem — container engines behind one runtime interface."""

from toolcage.runtime.sandbox.cli_runtime import CLIContainerRuntime, EngineSyntax
from toolcage.runtime.sandbox.docker_runtime import DockerRuntime
from toolcage.runtime.sandbox.models import (
    ContainerConfig,
    ContainerExecutionResult,
    ContainerMount,
    ContainerResources,
    ContainerSecurityConfig,
    ContainerState,
    ContainerStatus,
    RuntimeType,
)
from toolcage.runtime.sandbox.podman_runtime import PodmanRuntime
from toolcage.runtime.sandbox.runtime import ContainerRuntime

__all__ = [
    "CLIContainerRuntime",
    "ContainerConfig",
    "ContainerExecutionResult",
    "ContainerMount",
    "ContainerResources",
    "ContainerRuntime",
    "ContainerSecurityConfig",
    "ContainerState",
    "ContainerStatus",
    "DockerRuntime",
    "EngineSyntax",
    "PodmanRuntime",
    "RuntimeType",
]
