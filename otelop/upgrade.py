"""Bring managed collector instances up to the current collector version."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

import semver

from otelop import migrations
from otelop.migrations import UpgradeError
from otelop.model import CollectorInstance

log = logging.getLogger(__name__)

MANAGED_BY_LABELS = {"app.kubernetes.io/managed-by": "opentelemetry-operator"}


class _Client(Protocol):
    def list_instances(self, labels: dict[str, str]) -> Iterable[CollectorInstance]: ...

    def patch(self, original: CollectorInstance, updated: CollectorInstance) -> None: ...

    def patch_status(
        self, original: CollectorInstance, updated: CollectorInstance
    ) -> None: ...


@dataclass(frozen=True)
class CollectorVersion:
    """A collector version together with the migration that reaches it."""

    version: semver.Version
    upgrade: Callable[[CollectorInstance], CollectorInstance]

    def __str__(self) -> str:
        return str(self.version)


def _parse(text: str) -> semver.Version:
    cleaned = text[1:] if text[:1] in ("v", "V") else text
    return semver.Version.parse(cleaned, optional_minor_and_patch=True)


VERSIONS: tuple[CollectorVersion, ...] = (
    CollectorVersion(_parse("0.2.10"), migrations.upgrade_0_2_10),
    CollectorVersion(_parse("0.9.0"), migrations.upgrade_0_9_0),
    CollectorVersion(_parse("0.15.0"), migrations.upgrade_0_15_0),
    CollectorVersion(_parse("0.19.0"), migrations.upgrade_0_19_0),
    CollectorVersion(_parse("0.24.0"), migrations.upgrade_0_24_0),
    CollectorVersion(_parse("0.31.0"), migrations.upgrade_0_31_0),
)

# The latest version that needs a migration, not necessarily the latest known one.
LATEST = VERSIONS[-1]


def managed_instance(current_version: str, instance: CollectorInstance) -> CollectorInstance:
    """Return the instance migrated up to ``current_version``.

    Raises ``UpgradeError`` when the instance's version cannot be parsed or a
    migration step fails. The instance passed in is not modified.
    """
    if not instance.status.version:
        # Likely a new instance: assume it is already up to date.
        return instance

    try:
        instance_version = _parse(instance.status.version)
    except ValueError as exc:
        log.error(
            "failed to parse version for collector instance %s/%s: %r",
            instance.namespace,
            instance.name,
            instance.status.version,
        )
        raise UpgradeError(
            f"failed to parse version {instance.status.version!r}: {exc}"
        ) from exc

    if instance_version > LATEST.version:
        log.info(
            "skipping upgrade for collector instance %s/%s, as version %s is newer "
            "than our latest version %s",
            instance.namespace,
            instance.name,
            instance.status.version,
            LATEST,
        )
        return instance

    result = instance.copy()
    for available in VERSIONS:
        if not available.version > instance_version:
            continue
        try:
            upgraded = available.upgrade(result)
        except UpgradeError:
            log.error(
                "failed to upgrade managed collector instance %s/%s",
                instance.namespace,
                instance.name,
            )
            raise
        log.debug(
            "step upgrade of %s/%s to %s", instance.namespace, instance.name, available
        )
        upgraded.status.version = str(available)
        result = upgraded

    result.status.version = current_version
    log.debug(
        "final version of %s/%s is %s",
        instance.namespace,
        instance.name,
        result.status.version,
    )
    return result


def managed_instances(current_version: str, client: _Client) -> list[CollectorInstance]:
    """Upgrade every instance managed by the operator and return those that changed.

    ``client`` lists instances by label and applies changes to an instance and
    to its status. Instances that fail to upgrade or to be saved are skipped.
    """
    log.info("looking for managed instances to upgrade")

    try:
        instances = list(client.list_instances(dict(MANAGED_BY_LABELS)))
    except Exception as exc:
        raise UpgradeError(f"failed to list: {exc}") from exc

    applied: list[CollectorInstance] = []
    for original in instances:
        try:
            upgraded = managed_instance(current_version, original)
        except UpgradeError:
            continue

        if upgraded == original:
            continue

        try:
            client.patch(original, upgraded)
        except Exception:
            log.exception(
                "failed to apply changes to instance %s/%s",
                upgraded.namespace,
                upgraded.name,
            )
            continue

        try:
            client.patch_status(original, upgraded)
        except Exception:
            log.exception(
                "failed to apply changes to the status of instance %s/%s",
                upgraded.namespace,
                upgraded.name,
            )
            continue

        log.info(
            "instance %s/%s upgraded to %s",
            upgraded.namespace,
            upgraded.name,
            upgraded.status.version,
        )
        applied.append(upgraded)

    if not instances:
        log.info("no instances to upgrade")

    return applied