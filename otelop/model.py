"""Data model for an OpenTelemetry Collector custom resource."""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Mode(str, Enum):
    """How the collector is deployed."""

    DAEMONSET = "daemonset"
    DEPLOYMENT = "deployment"
    SIDECAR = "sidecar"
    STATEFULSET = "statefulset"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ServicePort:
    """A port exposed by a Kubernetes service."""

    name: str = ""
    port: int = 0
    protocol: str = ""
    target_port: int | str | None = None
    node_port: int = 0


@dataclass
class CollectorSpec:
    """Desired state of a collector instance."""

    mode: Mode = Mode.DEPLOYMENT
    config: str = ""
    args: dict[str, str] = field(default_factory=dict)
    replicas: int | None = None
    service_account: str = ""
    ports: list[ServicePort] = field(default_factory=list)
    volumes: list[dict[str, Any]] = field(default_factory=list)
    volume_claim_templates: list[dict[str, Any]] = field(default_factory=list)
    tolerations: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CollectorStatus:
    """Observed state of a collector instance."""

    version: str = ""
    messages: list[str] = field(default_factory=list)


@dataclass
class CollectorInstance:
    """A collector custom resource: metadata, spec and status."""

    name: str = ""
    namespace: str = ""
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    uid: str = ""
    spec: CollectorSpec = field(default_factory=CollectorSpec)
    status: CollectorStatus = field(default_factory=CollectorStatus)

    def copy(self) -> CollectorInstance:
        """Return a deep, independent copy of this instance."""
        return _copy.deepcopy(self)