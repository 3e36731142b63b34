"""
Kubernetes Manifest Helpers

Builders for the objects a workload is made of:
- Deployment: single container, Recreate strategy, replicas 0 until TLS arrives
- ConfigMap: TLS material extracted from the uploaded archive
- Volume + mounts: projection of the ConfigMap keys at fixed paths

Everything here is pure manifest construction; API calls live in client.py.
"""

from typing import Dict, List, Optional, Sequence

from kubernetes import client

from ...naming import config_volume_name, configmap_name
from ..modes import ProvisioningVariant

MANAGED_BY = "peitho"

# A workload that runs with mutual TLS disabled needs no TLS upload,
# so it starts with one replica right away.
TLS_ENABLED_ENV = "CORE_PEER_TLS_ENABLED"

DOCKER_SOCKET_PATH = "/var/run/docker.sock"


# =============================================================================
# Labels
# =============================================================================

def get_standard_labels(name: str) -> Dict[str, str]:
    """
    Get standard labels for workload resources.

    Args:
        name: Workload name

    Returns:
        Dict of labels
    """
    return {
        "app": name,
        "app.kubernetes.io/managed-by": MANAGED_BY,
    }


# =============================================================================
# Container configuration
# =============================================================================

def parse_env(env: Optional[Sequence[str]]) -> List[client.V1EnvVar]:
    """Convert KEY=VALUE strings into V1EnvVar objects (split on the first '=')."""
    env_vars = []
    for entry in env or []:
        key, _, value = entry.partition("=")
        env_vars.append(client.V1EnvVar(name=key, value=value))
    return env_vars


def is_mutual_tls_disabled(env: Optional[Sequence[str]]) -> bool:
    for entry in env or []:
        key, _, value = entry.partition("=")
        if key == TLS_ENABLED_ENV and value == "false":
            return True
    return False


def initial_replicas(env: Optional[Sequence[str]]) -> int:
    """Workloads wait at zero replicas for their TLS material unless TLS is off."""
    return 1 if is_mutual_tls_disabled(env) else 0


def parse_host_aliases(dns_entries: Sequence[str]) -> Optional[List[client.V1HostAlias]]:
    """
    Convert ip:hostname entries into host aliases.

    Args:
        dns_entries: Entries like "10.0.0.5:peer0.org1.example.com"

    Returns:
        List of V1HostAlias, or None when no entries are configured
    """
    if not dns_entries:
        return None

    aliases = []
    for entry in dns_entries:
        ip, _, hostname = entry.partition(":")
        aliases.append(client.V1HostAlias(ip=ip, hostnames=[hostname]))
    return aliases


def create_puller_init_container(
    puller_image: str,
    image: str,
    pull_address: str
) -> client.V1Container:
    """
    Create the init container that loads a delivered image onto the node.

    The puller downloads <image>.tar from peitho and loads it into the node's
    Docker daemon through the mounted socket, so the workload container can
    start with IfNotPresent.

    Args:
        puller_image: Image of the puller utility
        image: Workload image to fetch
        pull_address: Base URL peitho serves tarballs under
    """
    return client.V1Container(
        name="image-puller",
        image=puller_image,
        image_pull_policy="IfNotPresent",
        args=[
            f"--docker.endpoint=unix://{DOCKER_SOCKET_PATH}",
            f"--image={image}",
            f"--pullAddress={pull_address}",
        ],
        volume_mounts=[
            client.V1VolumeMount(
                name="docker-socket",
                mount_path=DOCKER_SOCKET_PATH
            )
        ]
    )


# =============================================================================
# Deployment
# =============================================================================

def create_workload_deployment(
    name: str,
    image: str,
    env: Optional[Sequence[str]],
    cmd: Optional[Sequence[str]],
    host_aliases: Optional[List[client.V1HostAlias]] = None,
    init_container: Optional[client.V1Container] = None
) -> client.V1Deployment:
    """
    Create the deployment manifest for a workload.

    Args:
        name: Workload name (deployment, pod and container share it)
        image: Image reference the container runs
        env: Environment as KEY=VALUE strings
        cmd: Container command
        host_aliases: Optional host aliases for peer name resolution
        init_container: Optional puller init container (delivery mode)

    Returns:
        V1Deployment manifest
    """
    labels = get_standard_labels(name)

    container = client.V1Container(
        name=name,
        image=image,
        image_pull_policy="IfNotPresent",
        env=parse_env(env),
        command=list(cmd) if cmd else None
    )

    volumes = None
    init_containers = None
    if init_container is not None:
        init_containers = [init_container]
        volumes = [
            client.V1Volume(
                name="docker-socket",
                host_path=client.V1HostPathVolumeSource(path=DOCKER_SOCKET_PATH)
            )
        ]

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=client.V1ObjectMeta(
            name=name,
            labels=labels
        ),
        spec=client.V1DeploymentSpec(
            replicas=initial_replicas(env),
            strategy=client.V1DeploymentStrategy(type="Recreate"),
            selector=client.V1LabelSelector(
                match_labels={"app": name}
            ),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(
                    name=name,
                    labels=labels
                ),
                spec=client.V1PodSpec(
                    containers=[container],
                    init_containers=init_containers,
                    host_aliases=host_aliases,
                    volumes=volumes
                )
            )
        )
    )


# =============================================================================
# TLS ConfigMap and mounts
# =============================================================================

def create_tls_config_map(name: str, data: Dict[str, str]) -> client.V1ConfigMap:
    """Create the ConfigMap manifest holding a workload's TLS material."""
    return client.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=client.V1ObjectMeta(
            name=configmap_name(name),
            labels=get_standard_labels(name)
        ),
        data=data
    )


def create_tls_volume(name: str, variant: ProvisioningVariant) -> client.V1Volume:
    """ConfigMap-backed volume exposing the keys of the given variant."""
    return client.V1Volume(
        name=config_volume_name(name),
        config_map=client.V1ConfigMapVolumeSource(
            name=configmap_name(name),
            items=[client.V1KeyToPath(key=key, path=key) for key in variant.keys]
        )
    )


def create_tls_volume_mounts(name: str, variant: ProvisioningVariant) -> List[client.V1VolumeMount]:
    """One subPath mount per key, at the fixed in-container TLS paths."""
    return [
        client.V1VolumeMount(
            name=config_volume_name(name),
            mount_path=mount_path,
            sub_path=key
        )
        for key, mount_path in variant.mounts
    ]


def apply_provisioning(
    deployment: client.V1Deployment,
    name: str,
    variant: ProvisioningVariant
) -> client.V1Deployment:
    """
    Turn a zero-replica workload deployment into an active one.

    Scales to one replica, appends the TLS volume and mounts, and clears the
    resource version so the update overwrites whatever is on the server.
    """
    deployment.spec.replicas = 1

    pod_spec = deployment.spec.template.spec
    pod_spec.volumes = (pod_spec.volumes or []) + [create_tls_volume(name, variant)]

    container = pod_spec.containers[0]
    container.volume_mounts = (container.volume_mounts or []) + create_tls_volume_mounts(name, variant)

    deployment.metadata.resource_version = None

    return deployment
