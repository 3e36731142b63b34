"""
Test configuration and fixtures for pytest.

Backends are replaced with mocks; nothing here talks to a real Docker
engine or Kubernetes cluster.
"""

import sys
import os
from pathlib import Path
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock

from kubernetes import client

# Add the project root to sys.path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))


def pytest_configure(config):
    """
    Pytest hook called before test collection.
    Sets up test environment variables and registers custom markers.
    """
    # Set test environment variables BEFORE any peitho imports
    os.environ["DOCKER_ENDPOINT"] = "unix:///var/run/docker.sock"
    os.environ["REGISTRY_SERVER_ADDRESS"] = "registry.example.com:5000"
    os.environ["REGISTRY_PROJECT"] = "fabric"
    os.environ["REGISTRY_USERNAME"] = "admin"
    os.environ["REGISTRY_PASSWORD"] = "secret"
    os.environ["K8S_NAMESPACE"] = "peitho-test"
    os.environ["SWEEPER_ENABLE"] = "false"

    # Import and clear settings cache after env vars are set
    from peitho.config import get_settings
    get_settings.cache_clear()

    # Register custom markers
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "docker: mark test as requiring Docker")
    config.addinivalue_line("markers", "kubernetes: mark test as requiring Kubernetes")


@pytest.fixture
def mock_settings():
    """Settings-like object with test defaults."""
    settings = Mock()
    settings.docker_endpoint = "unix:///var/run/docker.sock"
    settings.docker_api_version = "auto"
    settings.registry_server_address = "registry.example.com:5000"
    settings.registry_project = "fabric"
    settings.registry_username = "admin"
    settings.registry_password = "secret"
    settings.kubeconfig = ""
    settings.k8s_namespace = "peitho-test"
    settings.image_mode = "registry"
    settings.is_delivery_mode = False
    settings.puller_access_address = ""
    settings.puller_image = ""
    settings.dns_entries = []
    settings.image_dir = "."
    settings.sweeper_enable = False
    settings.sweeper_interval = 60
    settings.sweeper_delete_delay = 0
    settings.sweeper_prefix_list = ["dev-", "chaincode-"]
    settings.readiness_poll_attempts = 3
    settings.readiness_poll_interval = 0
    settings.build_inspect_attempts = 3
    settings.build_inspect_interval = 0
    return settings


@pytest.fixture
def mock_engine():
    """EngineBackend double with async operations."""
    engine = MagicMock()
    engine.server_address = "registry.example.com:5000"
    engine.project_name = "fabric"
    engine.qualify = Mock(side_effect=lambda image: f"registry.example.com:5000/fabric/{image}")
    engine.registry_auth = Mock(return_value={"username": "admin", "password": "secret"})

    for name in (
        "create_container", "start", "stop", "kill", "remove", "wait",
        "copy_into", "copy_from", "build", "pull", "push", "tag",
        "inspect_image", "save_image", "load_image", "ping",
    ):
        setattr(engine, name, AsyncMock())

    engine.pull.return_value = iter([{"status": "Pulling"}, {"status": "Downloaded"}])
    engine.push.return_value = iter([{"status": "Pushed"}])
    engine.inspect_image.return_value = {"Id": "sha256:abc"}
    engine.wait.return_value = 0
    return engine


@pytest.fixture
def mock_orchestrator():
    """OrchestratorBackend double with async operations."""
    orchestrator = MagicMock()
    for name in (
        "create_workload_deployment", "provision_deployment", "create_config_map",
        "delete_deployment", "delete_config_map", "query_available",
        "list_deployments_by_prefix",
    ):
        setattr(orchestrator, name, AsyncMock())

    orchestrator.query_available.return_value = True
    orchestrator.list_deployments_by_prefix.return_value = []
    return orchestrator


def make_deployment(name, unavailable=0, available=0):
    """Build a V1Deployment with the given replica status."""
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name),
        status=client.V1DeploymentStatus(
            unavailable_replicas=unavailable,
            available_replicas=available
        )
    )


@pytest.fixture
def deployment_factory():
    return make_deployment
