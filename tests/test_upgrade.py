import pytest

from otelop import upgrade
from otelop.migrations import UpgradeError
from otelop.model import CollectorInstance, CollectorSpec

MANAGED = {"app.kubernetes.io/managed-by": "opentelemetry-operator"}


class FakeClient:
    def __init__(self, instances, fail_patch=False):
        self.store = {(i.namespace, i.name): i.copy() for i in instances}
        self.fail_patch = fail_patch

    def list_instances(self, labels):
        return [
            i.copy()
            for i in self.store.values()
            if all(i.labels.get(k) == v for k, v in labels.items())
        ]

    def patch(self, original, updated):
        if self.fail_patch:
            raise RuntimeError("patch refused")
        key = (original.namespace, original.name)
        stored = updated.copy()
        # A resource patch leaves the status untouched.
        stored.status = self.store[key].status
        self.store[key] = stored

    def patch_status(self, original, updated):
        key = (original.namespace, original.name)
        self.store[key].status = updated.copy().status


def make_instance(version, **spec):
    inst = CollectorInstance(
        name="my-instance",
        namespace="default",
        labels=dict(MANAGED),
        spec=CollectorSpec(**spec),
    )
    inst.status.version = version
    return inst


def test_latest_is_last_version():
    result = upgrade.managed_instance(str(upgrade.LATEST), make_instance("0.0.1"))
    assert result.status.version == "0.31.0"
    versions = [v.version for v in upgrade.VERSIONS]
    assert versions == sorted(versions)


def test_should_upgrade_all_to_latest():
    client = FakeClient([make_instance("0.0.1")])
    assert client.store[("default", "my-instance")].status.version == "0.0.1"

    applied = upgrade.managed_instances(str(upgrade.LATEST), client)

    assert len(applied) == 1
    assert client.store[("default", "my-instance")].status.version == str(upgrade.LATEST)


def test_upgrade_up_to_latest_known_version():
    existing = make_instance("0.8.0")
    result = upgrade.managed_instance("0.10.0", existing)
    assert result.status.version == "0.10.0"
    assert existing.status.version == "0.8.0"


@pytest.mark.parametrize(
    "version, expected",
    [("", ""), ("100.0.0", "100.0.0")],
    ids=["new-instance", "newer-than-our-newest"],
)
def test_versions_should_not_be_changed(version, expected):
    result = upgrade.managed_instance(str(upgrade.LATEST), make_instance(version))
    assert result.status.version == expected


def test_unparseable_version_raises():
    existing = make_instance("unparseable")
    with pytest.raises(UpgradeError):
        upgrade.managed_instance(str(upgrade.LATEST), existing)
    assert existing.status.version == "unparseable"


def test_managed_instance_applies_migrations():
    existing = make_instance(
        "0.9.0", args={"--new-metrics": "true", "--legacy-metrics": "true", "--x": "1"}
    )
    result = upgrade.managed_instance("0.40.0", existing)
    assert result.spec.args == {"--x": "1"}
    assert result.status.version == "0.40.0"


def test_migration_failure_raises():
    existing = make_instance("0.8.0", config="receivers: {}\n")
    with pytest.raises(UpgradeError):
        upgrade.managed_instance("0.40.0", existing)


def test_managed_instances_skips_failed_migration():
    client = FakeClient([make_instance("0.8.0", config="receivers: {}\n")])
    applied = upgrade.managed_instances("0.40.0", client)
    assert applied == []
    assert client.store[("default", "my-instance")].status.version == "0.8.0"


def test_managed_instances_ignores_unmanaged():
    inst = make_instance("0.0.1")
    inst.labels = {"app.kubernetes.io/managed-by": "helm"}
    client = FakeClient([inst])
    applied = upgrade.managed_instances("0.40.0", client)
    assert applied == []
    assert client.store[("default", "my-instance")].status.version == "0.0.1"


def test_managed_instances_continues_when_patch_fails():
    client = FakeClient([make_instance("0.0.1")], fail_patch=True)
    applied = upgrade.managed_instances("0.40.0", client)
    assert applied == []
    assert client.store[("default", "my-instance")].status.version == "0.0.1"


def test_managed_instances_with_nothing_listed():
    assert upgrade.managed_instances("0.40.0", FakeClient([])) == []


def test_list_failure_raises():
    class Broken:
        def list_instances(self, labels):
            raise RuntimeError("down")

    with pytest.raises(UpgradeError, match="failed to list"):
        upgrade.managed_instances("0.40.0", Broken())