"""Sidecar decisions and manipulation on pods.

Pods and namespaces are plain dictionaries in the Kubernetes object shape:
``{"metadata": {"annotations": {...}}, "spec": {"containers": [...]}}``.
"""

from __future__ import annotations

import copy
from typing import Any

from otelop import naming

ANNOTATION = "sidecar.opentelemetry.io/inject"
INJECTED_LABEL = "sidecar.opentelemetry.io/injected"


def _annotation(obj: dict[str, Any]) -> str:
    metadata = obj.get("metadata") or {}
    annotations = metadata.get("annotations") or {}
    return annotations.get(ANNOTATION, "") or ""


def annotation_value(namespace: dict[str, Any], pod: dict[str, Any]) -> str:
    """Return the effective inject annotation, combining pod and namespace."""
    pod_value = _annotation(pod)
    ns_value = _annotation(namespace)

    if not ns_value:
        return pod_value
    if not pod_value:
        return ns_value
    # A pod value naming an instance, or saying false, is the decision.
    if pod_value.casefold() != "true":
        return pod_value
    if ns_value.casefold() == "false":
        return pod_value
    # Pod says true; the namespace says true or names an instance.
    return ns_value


def _containers(pod: dict[str, Any]) -> list[dict[str, Any]]:
    spec = pod.get("spec") or {}
    return spec.get("containers") or []


def exists_in(pod: dict[str, Any]) -> bool:
    """Whether the pod already holds a collector sidecar container."""
    return any(c.get("name") == naming.container() for c in _containers(pod))


def remove(pod: dict[str, Any]) -> dict[str, Any]:
    """Return the pod without any collector sidecar containers."""
    if not exists_in(pod):
        return pod
    result = copy.deepcopy(pod)
    spec = result.setdefault("spec", {})
    spec["containers"] = [
        c for c in spec.get("containers") or [] if c.get("name") != naming.container()
    ]
    return result