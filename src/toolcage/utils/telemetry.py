"""OpenTelemetry tracing helpers for toolcage.

Modules obtain a tracer with ``get_tracer(__name__)`` and open spans around
sandbox operations.  Until :func:`configure_telemetry` installs an SDK
tracer provider, the API hands out no-op tracers, so instrumentation costs
nothing when tracing is off.

Usage::

    from toolcage.utils.telemetry import ATTR_TOOL_NAME, get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("secure_executor.execute") as span:
        span.set_attribute(ATTR_TOOL_NAME, "shell")

Exporting spans requires the ``otel`` extra: ``pip install toolcage[otel]``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from toolcage.settings import TelemetrySettings

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_TOOL_NAME = "toolcage.tool.name"
ATTR_SESSION_ID = "toolcage.session.id"
ATTR_AGENT_ID = "toolcage.agent.id"
ATTR_REQUEST_ID = "toolcage.request.id"
ATTR_CONTAINER_ID = "toolcage.container.id"
ATTR_RUNTIME = "toolcage.runtime"
ATTR_IMAGE = "toolcage.image"
ATTR_OUTCOME = "toolcage.outcome"
ATTR_EXIT_CODE = "toolcage.exit_code"

_INSTRUMENTATION_NAME = "toolcage"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer for *name* (no-op until telemetry is configured)."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(settings: TelemetrySettings, *, service_name: str = "toolcage") -> bool:
    """Install an SDK tracer provider according to *settings*.

    Returns ``False`` without touching the global provider when telemetry is
    disabled.

    Raises:
        ImportError: If ``opentelemetry-sdk`` (or, for OTLP export,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    if not settings.enabled:
        return False

    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install toolcage[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]

    if settings.export_to_console:
        _attach_console_exporter(provider)
    if settings.otlp_endpoint:
        _attach_otlp_exporter(provider, settings.otlp_endpoint)

    trace.set_tracer_provider(provider)  # pyright: ignore[reportUnknownArgumentType]
    return True


def _attach_console_exporter(provider: Any) -> None:
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor  # pyright: ignore[reportMissingImports,reportUnknownVariableType]

    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))


def _attach_otlp_exporter(provider: Any, endpoint: str) -> None:
    from opentelemetry.sdk.trace.export import BatchSpanProcessor  # pyright: ignore[reportMissingImports,reportUnknownVariableType]

    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install toolcage[otel]"
        )
        raise ImportError(msg) from exc

    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
