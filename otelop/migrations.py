"""Step-by-step migrations of a collector instance between collector versions.

Each migration takes a collector instance and returns an upgraded copy. The
instance passed in is never modified. A migration raises ``UpgradeError`` when
the configuration cannot be migrated.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from otelop.model import CollectorInstance


class UpgradeError(Exception):
    """Raised when an instance cannot be brought to a newer version."""


class _Dumper(yaml.SafeDumper):
    """YAML dumper that prefers double quotes, like the configuration format expects."""

    def choose_scalar_style(self) -> str:
        style = super().choose_scalar_style()
        return '"' if style == "'" else style


def _sort_key(key: Any) -> tuple[int, Any, str]:
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        return (0, key, "")
    return (1, 0, str(key))


def _represent_dict(dumper: yaml.SafeDumper, data: dict[Any, Any]) -> yaml.Node:
    items = sorted(data.items(), key=lambda item: _sort_key(item[0]))
    return dumper.represent_mapping("tag:yaml.org,2002:map", items)


_Dumper.add_representer(dict, _represent_dict)


def config_from_string(text: str) -> dict[Any, Any]:
    """Parse a collector configuration; raise ValueError if it is not a YAML mapping."""
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid configuration: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(
            f"invalid configuration: expected a mapping, got {type(parsed).__name__}"
        )
    return parsed


def config_to_string(config: dict[Any, Any]) -> str:
    """Serialise a configuration with sorted keys in block style."""
    return yaml.dump(
        config,
        Dumper=_Dumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def _quote(value: Any) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _load(instance: CollectorInstance, target: str) -> dict[Any, Any]:
    try:
        return config_from_string(instance.spec.config)
    except ValueError as exc:
        raise UpgradeError(
            f"couldn't upgrade to {target}, failed to parse configuration: {exc}"
        ) from exc


def _dump(config: dict[Any, Any], target: str) -> str:
    try:
        return config_to_string(config)
    except yaml.YAMLError as exc:
        raise UpgradeError(
            f"couldn't upgrade to {target}, failed to marshall back configuration: {exc}"
        ) from exc


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def noop(instance: CollectorInstance) -> CollectorInstance:
    """Return the instance as it is."""
    return instance


def upgrade_0_2_10(instance: CollectorInstance) -> CollectorInstance:
    """First version of the collector image; nothing to migrate."""
    return instance


def upgrade_0_9_0(instance: CollectorInstance) -> CollectorInstance:
    """Drop ``reconnection_delay`` from the opencensus exporter."""
    result = instance.copy()
    if not result.spec.config:
        return result

    config = _load(result, "v0.9.0")
    exporters = config.get("exporters")
    if not isinstance(exporters, dict):
        raise UpgradeError(
            "couldn't upgrade to v0.9.0, failed to extract list of exporters "
            f"from the configuration: {exporters!r}"
        )

    for name, exporter in list(exporters.items()):
        # Only exporters whose name is a prefix of "opencensus" are affected.
        if not "opencensus".startswith(str(name)):
            continue
        if isinstance(exporter, dict):
            exporter.pop("reconnection_delay", None)
            result.status.messages.append(
                "upgrade to v0.9.0 removed the property reconnection_delay "
                f"for exporter {_quote(name)}"
            )
            exporters[name] = exporter
        elif isinstance(exporter, str):
            continue
        else:
            raise UpgradeError(
                f"couldn't upgrade to v0.9.0, the exporter {_quote(name)} is invalid "
                "(neither a string nor map)"
            )

    config["exporters"] = exporters
    result.spec.config = _dump(config, "v0.9.0")
    return result


def upgrade_0_15_0(instance: CollectorInstance) -> CollectorInstance:
    """Remove the obsolete metrics type flags from the arguments."""
    result = instance.copy()
    result.spec.args.pop("--new-metrics", None)
    result.spec.args.pop("--legacy-metrics", None)
    return result


def _existing_attributes(processor: dict[Any, Any], name: Any) -> list[Any]:
    if "attributes" not in processor:
        return []
    attrs = processor["attributes"]
    if not isinstance(attrs, list) or not all(isinstance(a, dict) for a in attrs):
        raise UpgradeError(
            "couldn't upgrade to v0.19.0, the attributes list for processors "
            f"{_quote(name)} couldn't be parsed based on the previous value. "
            f"Type: {type(attrs).__name__}, value: {attrs!r}"
        )
    return list(attrs)


def upgrade_0_19_0(instance: CollectorInstance) -> CollectorInstance:
    """Remove queued_retry processors and migrate resource processor type and labels."""
    result = instance.copy()
    if not result.spec.config:
        return result

    config = _load(result, "v0.19.0")
    processors = config.get("processors")
    if not isinstance(processors, dict):
        return result

    for name, processor in list(processors.items()):
        key = str(name)

        if key.startswith("queued_retry"):
            del processors[name]
            result.status.messages.append(
                f"upgrade to v0.19.0 removed the processor {_quote(name)}"
            )
            continue

        if not key.startswith("resource"):
            continue

        if isinstance(processor, dict):
            if "type" in processor:
                attributes = _existing_attributes(processor, name)
                attributes.append(
                    {
                        "key": "opencensus.type",
                        "value": _text(processor["type"]),
                        "action": "upsert",
                    }
                )
                processor["attributes"] = attributes
                del processor["type"]
                result.status.messages.append(
                    "upgrade to v0.19.0 migrated the property 'type' "
                    f"for processor {_quote(name)}"
                )

            if "labels" in processor:
                attributes = _existing_attributes(processor, name)
                labels = processor["labels"]
                if isinstance(labels, dict):
                    attributes.extend(
                        {"key": _text(label), "value": _text(value), "action": "upsert"}
                        for label, value in labels.items()
                    )
                processor["attributes"] = attributes
                del processor["labels"]
                result.status.messages.append(
                    "upgrade to v0.19.0 migrated the property 'labels' "
                    f"for processor {_quote(name)}"
                )

            processors[name] = processor
        elif isinstance(processor, str):
            continue
        else:
            raise UpgradeError(
                f"couldn't upgrade to v0.19.0, the processor {_quote(name)} is invalid "
                "(neither a string nor map)"
            )

    config["processors"] = processors
    result.spec.config = _dump(config, "v0.19.0")
    return result


def upgrade_0_24_0(instance: CollectorInstance) -> CollectorInstance:
    """Turn the health_check extension's ``port`` into an ``endpoint``."""
    result = instance.copy()
    if not result.spec.config:
        return result

    config = _load(result, "v0.24.0")
    extensions = config.get("extensions")
    if not isinstance(extensions, dict):
        return result

    for name, extension in extensions.items():
        if not str(name).startswith("health_check"):
            continue
        if isinstance(extension, dict):
            if "port" in extension:
                port = extension.pop("port")
                extension["endpoint"] = f"0.0.0.0:{port}"
                result.status.messages.append(
                    "upgrade to v0.24.0 migrated the property 'port' to 'endpoint' "
                    f"for extension {_quote(name)}"
                )
        elif extension is None or isinstance(extension, str):
            continue
        else:
            raise UpgradeError(
                f"couldn't upgrade to v0.24.0, the extension {_quote(name)} is invalid "
                f"(expected string or map but was {type(extension).__name__})"
            )

    result.spec.config = _dump(config, "v0.24.0")
    return result


def upgrade_0_31_0(instance: CollectorInstance) -> CollectorInstance:
    """Drop the ``metrics_schema`` field from influxdb receivers."""
    result = instance.copy()
    if not result.spec.config:
        return result

    config = _load(result, "v0.31.0")
    receivers = config.get("receivers")
    if not isinstance(receivers, dict):
        return result

    for name, receiver in receivers.items():
        if not str(name).startswith("influxdb"):
            continue
        if not isinstance(receiver, dict):
            # Nothing to migrate; the configuration is left as it was.
            return result
        for field in list(receiver):
            if str(field).startswith("metrics_schema"):
                del receiver[field]
                result.status.messages.append(
                    "upgrade to v0.31.0 dropped the 'metrics_schema' field "
                    f"from {_quote(name)} receiver"
                )

    config["receivers"] = receivers
    result.spec.config = _dump(config, "v0.31.0")
    return result