"""Naming, sidecar, volume, service-port and upgrade logic for OpenTelemetry Collector instances."""

__version__ = "0.1.0"

__all__ = [
    "collector",
    "migrations",
    "model",
    "naming",
    "platform",
    "services",
    "sidecar",
    "upgrade",
]