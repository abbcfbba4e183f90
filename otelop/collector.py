"""Builders for the Kubernetes pieces of an OpenTelemetry Collector."""

from __future__ import annotations

import copy
from typing import Any

from otelop import naming
from otelop.model import CollectorInstance, Mode

DEFAULT_CONFIG_MAP_ENTRY = "collector.yaml"


def service_account_name(instance: CollectorInstance) -> str:
    """Name of the existing or self-provisioned service account to use."""
    return instance.spec.service_account or naming.service_account(instance)


def volumes(
    instance: CollectorInstance, config_map_entry: str = DEFAULT_CONFIG_MAP_ENTRY
) -> list[dict[str, Any]]:
    """Volumes for the instance, the config map volume first."""
    config_volume = {
        "name": naming.config_map_volume(),
        "configMap": {
            "name": naming.config_map(instance),
            "items": [{"key": config_map_entry, "path": config_map_entry}],
        },
    }
    return [config_volume, *copy.deepcopy(instance.spec.volumes)]


def volume_claim_templates(instance: CollectorInstance) -> list[dict[str, Any]]:
    """Volume claim templates; only statefulsets get any."""
    if instance.spec.mode != Mode.STATEFULSET:
        return []
    if instance.spec.volume_claim_templates:
        return copy.deepcopy(instance.spec.volume_claim_templates)
    return [
        {
            "metadata": {"name": "default-volume"},
            "spec": {
                "accessModes": ["ReadWriteOnce"],
                "resources": {"requests": {"storage": "50Mi"}},
            },
        }
    ]