"""
Abstract Backends

Defines the two capability interfaces the container router dispatches to:
- EngineBackend: the Docker engine (build/utility containers, images)
- OrchestratorBackend: the Kubernetes cluster (workload deployments)

Each has exactly one concrete implementation, selected once at startup by
the factory.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .modes import ProvisioningVariant


class EngineBackend(ABC):
    """
    Abstract interface over the local container engine.

    This interface provides:
    - Container lifecycle (create, start, stop, kill, remove, wait)
    - Archive copy in and out of containers
    - Image build, pull, push, tag, inspect, export and import
    - Registry credentials and addressing
    """

    # =========================================================================
    # REGISTRY
    # =========================================================================

    @property
    @abstractmethod
    def server_address(self) -> str:
        """Registry host (and port) workload images live under."""
        pass

    @property
    @abstractmethod
    def project_name(self) -> str:
        """Registry project workload images live under."""
        pass

    @abstractmethod
    def registry_auth(self) -> Dict[str, str]:
        """Credentials sent with pull and push requests."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the engine answers. Never raises."""
        pass

    def qualify(self, image: str) -> str:
        """Prefix an image name with the registry host and project."""
        return f"{self.server_address}/{self.project_name}/{image}"

    # =========================================================================
    # CONTAINER LIFECYCLE
    # =========================================================================

    @abstractmethod
    async def create_container(self, spec) -> Dict[str, Any]:
        """
        Create a container from a ContainerSpec.

        Returns:
            Dictionary with:
                - Id: engine-assigned container ID
                - Warnings: list of engine warnings
        """
        pass

    @abstractmethod
    async def start(self, container_id: str) -> None:
        pass

    @abstractmethod
    async def stop(self, container_id: str, timeout: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def kill(self, container_id: str, signal: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def remove(self, container_id: str) -> None:
        pass

    @abstractmethod
    async def wait(self, container_id: str) -> int:
        """Block until the container stops. Returns its exit status code."""
        pass

    @abstractmethod
    async def copy_into(self, container_id: str, path: str, data: bytes) -> None:
        """Extract a tar archive into the container at path."""
        pass

    @abstractmethod
    async def copy_from(self, container_id: str, path: str) -> Iterator[bytes]:
        """Return a tar stream of path inside the container."""
        pass

    # =========================================================================
    # IMAGES
    # =========================================================================

    @abstractmethod
    async def build(self, context: bytes, dockerfile: str, tags: Sequence[str]) -> List[Dict[str, Any]]:
        """
        Build an image and wait for the build output stream to finish.

        Returns:
            Decoded build output messages
        """
        pass

    @abstractmethod
    async def pull(self, ref: str, auth: Optional[Dict[str, str]] = None) -> Iterator[Dict[str, Any]]:
        """Start a pull and return its progress stream."""
        pass

    @abstractmethod
    async def push(self, ref: str, auth: Optional[Dict[str, str]] = None) -> Iterator[Dict[str, Any]]:
        """Start a push and return its progress stream."""
        pass

    @abstractmethod
    async def tag(self, image: str, ref: str) -> None:
        pass

    @abstractmethod
    async def inspect_image(self, image: str) -> Dict[str, Any]:
        """
        Inspect a local image.

        Raises:
            ImageNotFoundError: If the image is not present locally
        """
        pass

    @abstractmethod
    async def save_image(self, image: str, destination: str) -> None:
        """Export an image to a tar file at destination."""
        pass

    @abstractmethod
    async def load_image(self, data: bytes) -> List[Dict[str, Any]]:
        """Import images from a tar archive produced by save_image."""
        pass


class OrchestratorBackend(ABC):
    """
    Abstract interface over the cluster orchestrator.

    All names passed in are WorkloadNames (see naming.derive_workload_name).
    """

    @abstractmethod
    async def create_workload_deployment(
        self,
        name: str,
        image: str,
        env: Sequence[str],
        cmd: Sequence[str]
    ) -> None:
        """
        Create the deployment for a workload.

        Args:
            name: Workload name, used for the deployment, pod and container
            image: Image reference the container runs
            env: Environment as KEY=VALUE strings
            cmd: Container command
        """
        pass

    @abstractmethod
    async def provision_deployment(self, name: str, variant: ProvisioningVariant) -> None:
        """Scale a workload to one replica and mount its TLS ConfigMap."""
        pass

    @abstractmethod
    async def create_config_map(self, name: str, data: Dict[str, str]) -> None:
        """Create the <name>-configmap object holding TLS material."""
        pass

    @abstractmethod
    async def delete_deployment(self, name: str) -> None:
        pass

    @abstractmethod
    async def delete_config_map(self, name: str) -> None:
        """Delete the <name>-configmap object."""
        pass

    @abstractmethod
    async def query_available(self, name: str) -> bool:
        """Check whether the deployment reports at least one available replica."""
        pass

    @abstractmethod
    async def list_deployments_by_prefix(self, prefixes: Sequence[str]) -> List[Any]:
        """List deployments whose name starts with any of the prefixes."""
        pass
