"""Names for the components created for a collector instance."""

from __future__ import annotations

from otelop.model import CollectorInstance


def config_map(instance: CollectorInstance) -> str:
    """Name of the config map used by the collector containers."""
    return f"{instance.name}-collector"


def config_map_volume() -> str:
    """Name of the config map's volume in the pod."""
    return "otc-internal"


def container() -> str:
    """Name of the collector container in the pod."""
    return "otc-container"


def collector(instance: CollectorInstance) -> str:
    """Name of the collector workload (deployment, daemonset, statefulset)."""
    return f"{instance.name}-collector"


def headless_service(instance: CollectorInstance) -> str:
    """Name of the headless service."""
    return f"{service(instance)}-headless"


def monitoring_service(instance: CollectorInstance) -> str:
    """Name of the monitoring service."""
    return f"{service(instance)}-monitoring"


def service(instance: CollectorInstance) -> str:
    """Name of the main service."""
    return f"{instance.name}-collector"


def service_account(instance: CollectorInstance) -> str:
    """Name of the self-provisioned service account."""
    return f"{instance.name}-collector"