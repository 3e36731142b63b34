"""
Service handle wiring the container router, image pipeline and sweeper
to one pair of backends.
"""

import logging

from .container_router import ContainerRouter
from .image_pipeline import ImagePipeline
from .orchestration.base import EngineBackend, OrchestratorBackend
from .orchestration.factory import BackendFactory
from .sweeper import Sweeper

logger = logging.getLogger(__name__)


class PeithoService:
    """Everything a request handler needs, constructed once at startup."""

    def __init__(self, containers: ContainerRouter, images: ImagePipeline, sweeper: Sweeper):
        self.containers = containers
        self.images = images
        self.sweeper = sweeper

    @classmethod
    def from_backends(cls, settings, engine: EngineBackend, orchestrator: OrchestratorBackend) -> "PeithoService":
        image_mode = BackendFactory.get_image_mode(settings)

        containers = ContainerRouter(
            engine,
            orchestrator,
            image_mode=image_mode,
            readiness_attempts=settings.readiness_poll_attempts,
            readiness_interval=settings.readiness_poll_interval
        )
        images = ImagePipeline(
            engine,
            image_mode=image_mode,
            image_dir=settings.image_dir,
            inspect_attempts=settings.build_inspect_attempts,
            inspect_interval=settings.build_inspect_interval
        )
        sweeper = Sweeper(
            orchestrator,
            enable=settings.sweeper_enable,
            interval=settings.sweeper_interval,
            delete_delay=settings.sweeper_delete_delay,
            prefixes=settings.sweeper_prefix_list
        )

        logger.info(f"[SERVICE] Peitho service ready (image mode: {image_mode})")
        return cls(containers, images, sweeper)


def create_service(settings) -> PeithoService:
    """Build the backends described by settings and wire them into a service."""
    engine = BackendFactory.create_engine(settings)
    orchestrator = BackendFactory.create_orchestrator(settings)
    return PeithoService.from_backends(settings, engine, orchestrator)
