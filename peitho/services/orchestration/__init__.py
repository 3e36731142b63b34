"""
Orchestration Module - Engine and Cluster Backends

Architecture:
- EngineBackend: Docker engine for build/utility containers and images
- OrchestratorBackend: Kubernetes cluster for workload deployments
- BackendFactory: Creates both from settings
- ImageMode / ProvisioningVariant: enums shared by the services

Usage:
    from peitho.services.orchestration import BackendFactory

    engine = BackendFactory.create_engine(settings)
    orchestrator = BackendFactory.create_orchestrator(settings)
"""

from .base import EngineBackend, OrchestratorBackend
from .factory import BackendFactory
from .modes import ImageMode, ProvisioningVariant

__all__ = [
    # Enums
    "ImageMode",
    "ProvisioningVariant",
    # Base classes
    "EngineBackend",
    "OrchestratorBackend",
    # Factory
    "BackendFactory",
]
