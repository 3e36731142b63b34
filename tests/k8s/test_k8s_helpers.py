"""
Unit tests for Kubernetes manifest helpers.

Tests the workload Deployment, the TLS ConfigMap and the provisioning
mutation applied after the TLS upload.
"""

import pytest

pytest.importorskip("kubernetes")

from kubernetes import client
from peitho.services.orchestration.kubernetes import helpers
from peitho.services.orchestration.modes import ProvisioningVariant


class TestWorkloadDeployment:
    """Test create_workload_deployment function."""

    def test_creates_zero_replica_deployment(self):
        deployment = helpers.create_workload_deployment(
            name="dev-peer0-mycc",
            image="registry.example.com:5000/fabric/mycc:1.0",
            env=["CORE_CHAINCODE_ID_NAME=mycc:1.0", "CORE_PEER_TLS_ENABLED=true"],
            cmd=["chaincode", "-peer.address=peer0:7052"]
        )

        assert isinstance(deployment, client.V1Deployment)
        assert deployment.metadata.name == "dev-peer0-mycc"
        assert deployment.metadata.labels["app.kubernetes.io/managed-by"] == "peitho"
        assert deployment.spec.replicas == 0
        assert deployment.spec.strategy.type == "Recreate"
        assert deployment.spec.selector.match_labels == {"app": "dev-peer0-mycc"}

        pod_spec = deployment.spec.template.spec
        assert len(pod_spec.containers) == 1
        container = pod_spec.containers[0]
        assert container.name == "dev-peer0-mycc"
        assert container.image_pull_policy == "IfNotPresent"
        assert container.command == ["chaincode", "-peer.address=peer0:7052"]
        assert pod_spec.init_containers is None
        assert pod_spec.host_aliases is None

    def test_tls_disabled_starts_with_one_replica(self):
        deployment = helpers.create_workload_deployment(
            name="dev-peer0-mycc",
            image="mycc",
            env=["CORE_PEER_TLS_ENABLED=false"],
            cmd=[]
        )
        assert deployment.spec.replicas == 1

    def test_env_split_on_first_equals(self):
        env_vars = helpers.parse_env(["A=b=c", "EMPTY=", "FLAG"])

        assert [(e.name, e.value) for e in env_vars] == [("A", "b=c"), ("EMPTY", ""), ("FLAG", "")]

    def test_host_aliases(self):
        aliases = helpers.parse_host_aliases(["10.0.0.5:peer0.org1.example.com", "10.0.0.6:orderer.example.com"])

        assert aliases[0].ip == "10.0.0.5"
        assert aliases[0].hostnames == ["peer0.org1.example.com"]
        assert aliases[1].hostnames == ["orderer.example.com"]
        assert helpers.parse_host_aliases([]) is None

    def test_puller_init_container(self):
        init_container = helpers.create_puller_init_container(
            puller_image="peitho/puller:latest",
            image="mycc-1.0",
            pull_address="http://peitho:8080"
        )
        deployment = helpers.create_workload_deployment(
            name="dev-peer0-mycc",
            image="mycc-1.0",
            env=[],
            cmd=[],
            init_container=init_container
        )

        pod_spec = deployment.spec.template.spec
        assert pod_spec.init_containers[0].name == "image-puller"
        assert "--image=mycc-1.0" in pod_spec.init_containers[0].args
        assert "--pullAddress=http://peitho:8080" in pod_spec.init_containers[0].args
        assert pod_spec.volumes[0].host_path.path == "/var/run/docker.sock"


class TestProvisioning:
    """Test apply_provisioning and the TLS manifests."""

    def _deployment(self):
        deployment = helpers.create_workload_deployment(
            name="dev-peer0-mycc", image="mycc", env=[], cmd=[]
        )
        deployment.metadata.resource_version = "12345"
        return deployment

    def test_config_map(self):
        config_map = helpers.create_tls_config_map("dev-peer0-mycc", {"client.key": "k"})

        assert config_map.metadata.name == "dev-peer0-mycc-configmap"
        assert config_map.data == {"client.key": "k"}

    def test_baseline_provisioning(self):
        deployment = helpers.apply_provisioning(self._deployment(), "dev-peer0-mycc", ProvisioningVariant.BASELINE)

        assert deployment.spec.replicas == 1
        assert deployment.metadata.resource_version is None

        volume = deployment.spec.template.spec.volumes[-1]
        assert volume.name == "dev-peer0-mycc-config"
        assert volume.config_map.name == "dev-peer0-mycc-configmap"
        assert [item.key for item in volume.config_map.items] == ["client.key", "client.crt", "peer.crt"]

        mounts = deployment.spec.template.spec.containers[0].volume_mounts
        assert {m.mount_path: m.sub_path for m in mounts} == {
            "/etc/hyperledger/fabric/client.key": "client.key",
            "/etc/hyperledger/fabric/client.crt": "client.crt",
            "/etc/hyperledger/fabric/peer.crt": "peer.crt",
        }

    def test_extended_provisioning(self):
        deployment = helpers.apply_provisioning(self._deployment(), "dev-peer0-mycc", ProvisioningVariant.EXTENDED)

        volume = deployment.spec.template.spec.volumes[-1]
        assert len(volume.config_map.items) == 5

        mounts = deployment.spec.template.spec.containers[0].volume_mounts
        assert len(mounts) == 5
        assert "/etc/hyperledger/fabric/client_pem.crt" in [m.mount_path for m in mounts]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
