"""Configuration models and YAML loaders.

Settings and execution requests can both be read from YAML files.
Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
before parsing.
"""

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003
from typing import Any, Generic, TypeVar

import yaml
from pydantic import BaseModel, Field, ValidationError

from toolcage.runtime.models import ExecutionRequest

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class SettingsError(Exception):
    """Raised when a settings or request file fails parsing or validation."""


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None
    export_to_console: bool = False


class SandboxSettings(BaseModel):
    """Fixed defaults for sandbox provisioning."""

    image: str = Field(default="toolcage/agent-runtime:latest", description="Sandbox image.")
    default_cpus: float = Field(default=0.5, description="CPU quota per sandbox.")
    default_memory: str = Field(default="512m", description="Memory cap when none is given.")
    default_timeout: float = Field(default=30.0, description="Exec deadline when none is given.")
    workspace_prefix: str = Field(
        default="/workspace", description="Container prefix for allowed-path bind mounts."
    )
    name_prefix: str = Field(default="toolcage", description="Container name prefix.")
    label_prefix: str = Field(default="toolcage", description="Namespace for container labels.")
    destroy_grace_period: float = Field(
        default=10.0, description="Seconds a container gets to stop before removal."
    )
    probe_timeout: float = Field(default=5.0, description="Deadline for engine detection probes.")
    telemetry: TelemetrySettings | None = None


class _YamlLoader(Generic[_ModelT]):
    model: type[_ModelT]

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> _ModelT:
        """Read YAML, interpolate env vars, and validate.

        Raises:
            SettingsError: On read errors, YAML parse errors or schema
                validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise SettingsError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SettingsError(f"{self._path.name} must contain a mapping")

        try:
            return self.model.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(str(exc)) from exc


class SettingsLoader(_YamlLoader[SandboxSettings]):
    """Load :class:`SandboxSettings` from a YAML file."""

    model = SandboxSettings


class RequestLoader(_YamlLoader[ExecutionRequest]):
    """Load an :class:`ExecutionRequest` from a YAML (or JSON) file."""

    model = ExecutionRequest
