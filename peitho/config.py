import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


IMAGE_MODE_REGISTRY = "registry"
IMAGE_MODE_DELIVERY = "delivery"


class Settings(BaseSettings):
    # Docker engine used for build/utility containers and image handling
    docker_endpoint: str = ""
    docker_api_version: str = "auto"

    # Private registry that holds workload images
    # Images are addressed as {registry_server_address}/{registry_project}/{name}
    registry_server_address: str = ""
    registry_project: str = ""
    registry_username: str = ""
    registry_password: str = ""

    # Kubernetes cluster that runs workload deployments
    # Empty kubeconfig falls back to in-cluster configuration
    kubeconfig: str = ""
    k8s_namespace: str = ""

    # Host aliases injected into workload pods so they can resolve peers
    # Comma-separated list of ip:hostname pairs, e.g. "10.0.0.5:peer0.org1.example.com"
    k8s_dns: str = ""

    # How workload images reach the cluster nodes
    # "registry": push to the private registry after build
    # "delivery": save a tarball locally, an init container pulls it from peitho
    image_mode: str = IMAGE_MODE_REGISTRY
    puller_access_address: str = ""
    puller_image: str = ""
    image_dir: str = "."

    # Sweeper: deletes workload deployments stuck with unavailable replicas
    sweeper_enable: bool = True
    sweeper_interval: int = 60  # seconds between sweeps
    sweeper_delete_delay: float = 1.0  # seconds between deletions
    sweeper_prefixes: str = "dev-,chaincode-"

    # Polling bounds
    readiness_poll_attempts: int = 100
    readiness_poll_interval: float = 1.0
    build_inspect_attempts: int = 300
    build_inspect_interval: float = 1.0

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080

    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    @property
    def is_delivery_mode(self) -> bool:
        """Check if images are delivered as tarballs instead of via the registry."""
        return self.image_mode.lower() == IMAGE_MODE_DELIVERY

    @property
    def dns_entries(self) -> List[str]:
        return [entry.strip() for entry in self.k8s_dns.split(",") if entry.strip()]

    @property
    def sweeper_prefix_list(self) -> List[str]:
        return [prefix.strip() for prefix in self.sweeper_prefixes.split(",") if prefix.strip()]

    def validate_options(self) -> List[str]:
        """
        Check option values that pydantic cannot validate on its own.

        Returns:
            List of problems found, empty when the configuration is usable
        """
        errors = []

        if not self.docker_endpoint:
            errors.append("docker endpoint can not be empty")
        if not self.registry_project:
            errors.append("registry project can not be empty")

        if self.kubeconfig and not os.path.exists(self.kubeconfig):
            errors.append(f"kubeconfig file not exists: {self.kubeconfig}")
        if not self.k8s_namespace:
            errors.append("namespace can not be empty")

        if self.image_mode.lower() not in (IMAGE_MODE_REGISTRY, IMAGE_MODE_DELIVERY):
            errors.append(f"image mode must be {IMAGE_MODE_REGISTRY} or {IMAGE_MODE_DELIVERY}")
        if self.is_delivery_mode and not self.puller_access_address:
            errors.append("puller access address must not be empty in delivery mode")
        if self.is_delivery_mode and not self.puller_image:
            errors.append("puller image must not be empty in delivery mode")

        if self.sweeper_interval <= 0:
            errors.append("sweeper interval must be greater than zero")

        for entry in self.dns_entries:
            if ":" not in entry:
                errors.append(f"dns entry must look like ip:hostname, got '{entry}'")

        return errors

    class Config:
        # Environment variables are passed directly in containers
        # For native development: looks for .env in the working directory
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings():
    return Settings()
