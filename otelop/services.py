"""Port selection for the services that expose a collector."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from otelop.model import ServicePort

log = logging.getLogger(__name__)

MONITORING_PORT = 8888


def filter_port(
    candidate: ServicePort, port_numbers: set[int], port_names: set[str]
) -> ServicePort | None:
    """Return the inferred port to keep, renamed if needed, or None to drop it."""
    if candidate.port in port_numbers:
        return None

    if candidate.name in port_names:
        fallback = f"port-{candidate.port}"
        if fallback in port_names:
            log.debug(
                "a declared port name clashes with inferred port name %r, and the "
                "fallback name %r clashes too; skipping this port",
                candidate.name,
                fallback,
            )
            return None
        return dataclasses.replace(candidate, name=fallback)

    return candidate


def extract_port_numbers_and_names(
    ports: Iterable[ServicePort],
) -> tuple[set[int], set[str]]:
    """Return the port numbers and the port names in use."""
    ports = list(ports)
    return {p.port for p in ports}, {p.name for p in ports}


def merge_ports(
    declared: Iterable[ServicePort], inferred: Iterable[ServicePort]
) -> list[ServicePort]:
    """Combine declared ports with those inferred from the configuration.

    Declared ports come first and win: an inferred port whose number is taken
    is dropped, and one whose name is taken is renamed to ``port-<number>``.
    """
    declared = list(declared)
    inferred = list(inferred)
    if not declared:
        return inferred

    numbers, names = extract_port_numbers_and_names(declared)
    kept = (filter_port(p, numbers, names) for p in inferred)
    return declared + [p for p in kept if p is not None]


def monitoring_ports() -> list[ServicePort]:
    """Ports of the monitoring service."""
    return [ServicePort(name="monitoring", port=MONITORING_PORT)]