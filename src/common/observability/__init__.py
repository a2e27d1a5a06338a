"""Shared observability helpers."""

from common.observability.exporter import is_otel_exporter_configured, is_tracing_enabled

__all__ = ["is_otel_exporter_configured", "is_tracing_enabled"]
