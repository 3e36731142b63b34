"""
Kubernetes Orchestrator Backend

Implements OrchestratorBackend against the Kubernetes API. Every workload
is one Deployment plus one ConfigMap in a single configured namespace.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ...errors import BackendFailureError, ConfigurationError
from ...naming import configmap_name
from ..base import OrchestratorBackend
from ..modes import ProvisioningVariant
from . import helpers

logger = logging.getLogger(__name__)


class KubernetesOrchestrator(OrchestratorBackend):
    """
    Manages workload Deployments and their TLS ConfigMaps.

    Workload lifecycle:
    1. create_workload_deployment: deployment at 0 replicas
    2. create_config_map + provision_deployment: TLS mounted, 1 replica
    3. query_available: readiness polling
    4. delete_deployment + delete_config_map: removal and sweeping
    """

    def __init__(
        self,
        settings,
        apps_v1: Optional[client.AppsV1Api] = None,
        core_v1: Optional[client.CoreV1Api] = None
    ):
        self.settings = settings
        self.namespace = settings.k8s_namespace

        if apps_v1 is None or core_v1 is None:
            self._load_config()
            apps_v1 = apps_v1 or client.AppsV1Api()
            core_v1 = core_v1 or client.CoreV1Api()

        self.apps_v1 = apps_v1
        self.core_v1 = core_v1

        logger.info(f"[K8S] Kubernetes backend initialized - namespace: {self.namespace}")

    def _load_config(self) -> None:
        """Load kubeconfig from the configured path, or in-cluster config without one."""
        try:
            if self.settings.kubeconfig:
                config.load_kube_config(config_file=self.settings.kubeconfig)
                logger.info(f"[K8S] Loaded kubeconfig from {self.settings.kubeconfig}")
            else:
                config.load_incluster_config()
                logger.info("[K8S] Loaded in-cluster Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"[K8S] Failed to load Kubernetes config: {e}")
            raise ConfigurationError("Cannot load Kubernetes configuration") from e

    # =========================================================================
    # DEPLOYMENT LIFECYCLE
    # =========================================================================

    async def create_workload_deployment(
        self,
        name: str,
        image: str,
        env: Sequence[str],
        cmd: Sequence[str]
    ) -> None:
        init_container = None
        if self.settings.is_delivery_mode:
            init_container = helpers.create_puller_init_container(
                puller_image=self.settings.puller_image,
                image=image,
                pull_address=self.settings.puller_access_address
            )

        deployment = helpers.create_workload_deployment(
            name=name,
            image=image,
            env=env,
            cmd=cmd,
            host_aliases=helpers.parse_host_aliases(self.settings.dns_entries),
            init_container=init_container
        )

        try:
            await asyncio.to_thread(
                self.apps_v1.create_namespaced_deployment,
                namespace=self.namespace,
                body=deployment
            )
        except ApiException as e:
            logger.error(f"[K8S] Create deployment {name} failed: {e.reason}")
            raise BackendFailureError(f"create deployment {name}: {e.reason}") from e

        logger.info(f"[K8S] ✅ Created deployment: {name} (replicas: {deployment.spec.replicas})")

    async def provision_deployment(self, name: str, variant: ProvisioningVariant) -> None:
        try:
            deployment = await asyncio.to_thread(
                self.apps_v1.read_namespaced_deployment,
                name=name,
                namespace=self.namespace
            )
        except ApiException as e:
            logger.error(f"[K8S] Query deployment {name} failed: {e.reason}")
            raise BackendFailureError(f"query deployment {name}: {e.reason}") from e

        helpers.apply_provisioning(deployment, name, variant)

        # resource_version is cleared: last writer wins
        try:
            await asyncio.to_thread(
                self.apps_v1.replace_namespaced_deployment,
                name=name,
                namespace=self.namespace,
                body=deployment
            )
        except ApiException as e:
            logger.error(f"[K8S] Update deployment {name} failed: {e.reason}")
            raise BackendFailureError(f"update deployment {name}: {e.reason}") from e

        logger.info(f"[K8S] ✅ Provisioned deployment: {name} ({variant} TLS mounts)")

    async def delete_deployment(self, name: str) -> None:
        try:
            await asyncio.to_thread(
                self.apps_v1.delete_namespaced_deployment,
                name=name,
                namespace=self.namespace
            )
            logger.info(f"[K8S] Deleted deployment: {name}")
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"[K8S] Deployment {name} already gone")
                return
            logger.error(f"[K8S] Delete deployment {name} failed: {e.reason}")
            raise BackendFailureError(f"delete deployment {name}: {e.reason}") from e

    async def query_available(self, name: str) -> bool:
        try:
            deployment = await asyncio.to_thread(
                self.apps_v1.read_namespaced_deployment_status,
                name=name,
                namespace=self.namespace
            )
        except ApiException as e:
            logger.error(f"[K8S] Get deployment {name} failed: {e.reason}")
            raise BackendFailureError(f"get deployment {name}: {e.reason}") from e

        available = (deployment.status.available_replicas or 0) if deployment.status else 0
        return available > 0

    async def list_deployments_by_prefix(self, prefixes: Sequence[str]) -> List[client.V1Deployment]:
        try:
            deployments = await asyncio.to_thread(
                self.apps_v1.list_namespaced_deployment,
                namespace=self.namespace
            )
        except ApiException as e:
            logger.error(f"[K8S] List deployments failed: {e.reason}")
            raise BackendFailureError(f"list deployments: {e.reason}") from e

        prefixes = tuple(prefixes)
        return [
            deployment for deployment in deployments.items
            if deployment.metadata.name.startswith(prefixes)
        ]

    # =========================================================================
    # CONFIGMAP MANAGEMENT
    # =========================================================================

    async def create_config_map(self, name: str, data: Dict[str, str]) -> None:
        config_map = helpers.create_tls_config_map(name, data)
        try:
            await asyncio.to_thread(
                self.core_v1.create_namespaced_config_map,
                namespace=self.namespace,
                body=config_map
            )
        except ApiException as e:
            logger.error(f"[K8S] Create TLS configmap for {name} failed: {e.reason}")
            raise BackendFailureError(f"create configmap {configmap_name(name)}: {e.reason}") from e

        logger.info(f"[K8S] ✅ Created configmap: {configmap_name(name)}")

    async def delete_config_map(self, name: str) -> None:
        try:
            await asyncio.to_thread(
                self.core_v1.delete_namespaced_config_map,
                name=configmap_name(name),
                namespace=self.namespace
            )
            logger.info(f"[K8S] Deleted configmap: {configmap_name(name)}")
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"[K8S] Configmap {configmap_name(name)} already gone")
                return
            logger.error(f"[K8S] Delete TLS configmap for {name} failed: {e.reason}")
            raise BackendFailureError(f"delete configmap {configmap_name(name)}: {e.reason}") from e
