# otelop

Building blocks for managing OpenTelemetry Collector instances that run on
Kubernetes. The package works on plain Python objects describing a collector
instance and produces the names, volumes, service ports and upgraded
configurations that an operator needs.

## Installation

```
pip install otelop
```

For running the test suite:

```
pip install "otelop[test]"
pytest
```

## What is inside

- `otelop.model`: the data model. `Mode` (`daemonset`, `deployment`,
  `sidecar`, `statefulset`), the frozen `ServicePort`, `CollectorSpec`,
  `CollectorStatus` and `CollectorInstance`, whose `copy()` returns a deep,
  independent copy.
- `otelop.naming`: names derived from an instance: `config_map`,
  `config_map_volume`, `container`, `collector`, `service`,
  `headless_service`, `monitoring_service`, `service_account`.
- `otelop.platform`: the `Platform` enumeration; `str()` gives `Unknown`,
  `OpenShift` or `Kubernetes`.
- `otelop.sidecar`: decisions and edits on pods and namespaces given as
  plain dictionaries in the Kubernetes object shape.
  `annotation_value(namespace, pod)` combines the
  `sidecar.opentelemetry.io/inject` annotation of both into the value that
  decides whether, and which, collector is injected; `exists_in(pod)` tells
  whether the pod holds a collector container; `remove(pod)` returns a copy
  without any collector containers.
- `otelop.collector`: `service_account_name(instance)`,
  `volumes(instance, config_map_entry="collector.yaml")` (the config map
  volume first, then the instance's own volumes) and
  `volume_claim_templates(instance)` (only statefulsets get any; a 50Mi
  `default-volume` claim unless the instance declares its own).
- `otelop.services`: port handling for collector services:
  `extract_port_numbers_and_names`, `filter_port`, `merge_ports` (declared
  ports win; an inferred port whose number is taken is dropped, one whose
  name is taken is renamed to `port-<number>`) and `monitoring_ports`
  (port 8888).
- `otelop.migrations`: configuration parsing (`config_from_string`,
  `config_to_string`, which writes sorted keys in block style) and the step
  upgrades `noop`, `upgrade_0_2_10`, `upgrade_0_9_0`, `upgrade_0_15_0`,
  `upgrade_0_19_0`, `upgrade_0_24_0`, `upgrade_0_31_0`. Each returns an
  upgraded copy, records what it changed in `status.messages`, and raises
  `UpgradeError` when the configuration cannot be migrated.
- `otelop.upgrade`: `CollectorVersion`, the ordered `VERSIONS` and `LATEST`,
  `managed_instance(current_version, instance)` and
  `managed_instances(current_version, client)`.

## Example

```python
from otelop.model import CollectorInstance, CollectorSpec, CollectorStatus
from otelop import naming
from otelop.upgrade import managed_instance

instance = CollectorInstance(
    name="my-instance",
    namespace="default",
    spec=CollectorSpec(config="exporters:\n  opencensus:\n    reconnection_delay: 15\n"),
    status=CollectorStatus(version="0.8.0"),
)

print(naming.service(instance))           # my-instance-collector
print(naming.headless_service(instance))  # my-instance-collector-headless

upgraded = managed_instance("0.31.0", instance)
print(upgraded.status.version)   # 0.31.0
print(upgraded.status.messages)  # what each upgrade step changed
```

`managed_instance` leaves instances without a recorded version, and those
newer than `LATEST`, as they are; an unparseable version raises
`UpgradeError`.

## Upgrading many instances

`managed_instances` takes any client object with three methods:

- `list_instances(labels)` returning the instances carrying those labels,
- `patch(original, updated)` saving an instance,
- `patch_status(original, updated)` saving its status.

It lists the instances labelled as managed by `opentelemetry-operator`,
upgrades each, saves those that changed and returns them. Instances that
fail to upgrade or to be saved are logged and skipped.

## What it does not do

The package provides no command-line tool and does not connect to a
cluster itself: all cluster access in `managed_instances` goes through the
client you pass in. It does not build workloads (deployments, daemonsets,
statefulsets), containers, config maps or complete service objects, does
not add sidecar containers to pods, and does not infer ports from a
collector configuration; `merge_ports` expects the inferred ports to be
supplied.