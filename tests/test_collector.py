from otelop import naming
from otelop.collector import service_account_name, volume_claim_templates, volumes
from otelop.model import CollectorInstance, CollectorSpec, Mode


def _added_claim():
    return {
        "metadata": {"name": "added-volume"},
        "spec": {
            "accessModes": ["ReadWriteOnce"],
            "resources": {"requests": {"storage": "1Gi"}},
        },
    }


def test_service_account_new_default():
    instance = CollectorInstance(name="my-instance")
    assert service_account_name(instance) == "my-instance-collector"


def test_service_account_override():
    instance = CollectorInstance(
        name="my-instance", spec=CollectorSpec(service_account="my-special-sa")
    )
    assert service_account_name(instance) == "my-special-sa"


def test_volume_new_default():
    result = volumes(CollectorInstance())
    assert len(result) == 1
    assert result[0]["name"] == naming.config_map_volume()


def test_volume_references_config_map():
    instance = CollectorInstance(name="test")
    volume = volumes(instance, "collector.yaml")[0]
    assert volume["configMap"]["name"] == naming.config_map(instance)
    assert volume["configMap"]["items"] == [{"key": "collector.yaml", "path": "collector.yaml"}]


def test_volume_allows_more_to_be_added():
    instance = CollectorInstance(spec=CollectorSpec(volumes=[{"name": "my-volume"}]))
    result = volumes(instance)
    assert len(result) == 2
    assert result[1]["name"] == "my-volume"


def test_volume_claim_new_default():
    instance = CollectorInstance(spec=CollectorSpec(mode=Mode.STATEFULSET))
    claims = volume_claim_templates(instance)
    assert len(claims) == 1
    assert claims[0]["metadata"]["name"] == "default-volume"
    assert claims[0]["spec"]["accessModes"][0] == "ReadWriteOnce"
    assert claims[0]["spec"]["resources"]["requests"]["storage"] == "50Mi"


def test_volume_claim_allows_user_to_add():
    instance = CollectorInstance(
        spec=CollectorSpec(mode=Mode.STATEFULSET, volume_claim_templates=[_added_claim()])
    )
    claims = volume_claim_templates(instance)
    assert len(claims) == 1
    assert claims[0]["metadata"]["name"] == "added-volume"
    assert claims[0]["spec"]["accessModes"][0] == "ReadWriteOnce"
    assert claims[0]["spec"]["resources"]["requests"]["storage"] == "1Gi"


def test_volume_claim_checks_for_statefulset():
    instance = CollectorInstance(
        spec=CollectorSpec(mode=Mode.DAEMONSET, volume_claim_templates=[_added_claim()])
    )
    assert volume_claim_templates(instance) == []