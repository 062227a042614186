"""Data models for the container sandbox subsystem."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class RuntimeType(str, Enum):
    """Container engines the detector knows about."""

    DOCKER = "docker"
    PODMAN = "podman"
    APPLE_CONTAINER = "apple-container"


class ContainerState(str, Enum):
    """Observed lifecycle state of a sandbox container.

    ``pending -> running -> stopped | error``; both terminal states are final.
    """

    PENDING = "pending"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class ContainerMount(BaseModel):
    """One filesystem mapping into the sandbox."""

    type: Literal["bind", "volume", "tmpfs"]
    source: str = Field(default="", description="Host path or volume name; empty for tmpfs.")
    target: str = Field(..., description="Mount point inside the container.")
    read_only: bool = False


class ContainerSecurityConfig(BaseModel):
    """Hardening options applied when the container is created."""

    read_only_root_filesystem: bool = True
    no_new_privileges: bool = True
    drop_capabilities: list[str] = Field(default_factory=lambda: ["ALL"])
    seccomp_profile: str | None = None
    apparmor_profile: str | None = None


class ContainerResources(BaseModel):
    """Resource caps for one sandbox."""

    memory: str = Field(default="512m", description="Memory limit (engine format, e.g. '512m').")
    cpus: float = Field(default=0.5, description="CPU quota (number of cores).")
    timeout: float = Field(default=30.0, description="Max execution time in seconds.")


class ContainerConfig(BaseModel):
    """Declarative description of exactly one sandbox container."""

    container_id: str
    session_id: str
    agent_id: str
    runtime: RuntimeType = RuntimeType.DOCKER
    image: str
    resources: ContainerResources = Field(default_factory=ContainerResources)
    mounts: list[ContainerMount] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    network: Literal["none", "bridge", "host"] = "none"
    security: ContainerSecurityConfig = Field(default_factory=ContainerSecurityConfig)
    command: list[str] | None = Field(
        default=None, description="Command to run instead of the image default."
    )


class ContainerStatus(BaseModel):
    """Observed state of a running or terminated sandbox."""

    container_id: str
    state: ContainerState
    name: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    exit_code: int | None = None
    error: str | None = None


class ContainerExecutionResult(BaseModel):
    """Result of one ``exec`` inside a container."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    execution_time: float = Field(default=0.0, description="Wall time in milliseconds.")
