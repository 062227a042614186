"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from opentelemetry import trace

from toolcage.settings import TelemetrySettings
from toolcage.utils import telemetry
from toolcage.utils.telemetry import (
    ATTR_CONTAINER_ID,
    ATTR_TOOL_NAME,
    _INSTRUMENTATION_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        tracer = get_tracer()
        assert isinstance(tracer, trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("test") as span:
            span.set_attribute(ATTR_TOOL_NAME, "shell")


class TestConfigureTelemetry:
    def test_disabled_is_noop(self) -> None:
        with patch.object(telemetry.trace, "set_tracer_provider") as set_provider:
            assert configure_telemetry(TelemetrySettings(enabled=False)) is False
        set_provider.assert_not_called()

    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry(TelemetrySettings(enabled=True))

    def test_configures_with_console(self) -> None:
        try:
            from opentelemetry.sdk.trace import TracerProvider
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        with patch.object(telemetry.trace, "set_tracer_provider") as set_provider:
            assert configure_telemetry(
                TelemetrySettings(enabled=True, export_to_console=True),
                service_name="test-svc",
            )

        provider = set_provider.call_args.args[0]
        assert isinstance(provider, TracerProvider)
        assert provider.resource.attributes["service.name"] == "test-svc"

    def test_otlp_raises_without_exporter(self) -> None:
        try:
            import opentelemetry.sdk.trace  # noqa: F401
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(
                    TelemetrySettings(enabled=True, otlp_endpoint="http://localhost:4317")
                )


class TestAttributeConstants:
    def test_constants_are_namespaced(self) -> None:
        assert ATTR_CONTAINER_ID.startswith("toolcage.")
        assert ATTR_TOOL_NAME.startswith("toolcage.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "toolcage"
