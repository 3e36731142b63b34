"""
Backend Factory

Builds the engine and orchestrator backends from settings. Each interface
has a single implementation; the choice is made here once at startup.
"""

import logging

from .base import EngineBackend, OrchestratorBackend
from .modes import ImageMode

logger = logging.getLogger(__name__)


class BackendFactory:
    """Creates backend instances from a Settings object."""

    @staticmethod
    def get_image_mode(settings) -> ImageMode:
        return ImageMode.from_string(settings.image_mode)

    @staticmethod
    def create_engine(settings) -> EngineBackend:
        from .docker import DockerEngine
        engine = DockerEngine(settings)
        logger.info("[FACTORY] Created Docker engine backend")
        return engine

    @staticmethod
    def create_orchestrator(settings) -> OrchestratorBackend:
        from .kubernetes import KubernetesOrchestrator
        orchestrator = KubernetesOrchestrator(settings)
        logger.info("[FACTORY] Created Kubernetes orchestrator backend")
        return orchestrator
