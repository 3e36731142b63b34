"""
Container Router

Single container lifecycle API over two backends. Every call is routed by
the shape of its identifier:
- Engine handle (64 hex chars): short-lived build/utility container on Docker
- Workload reference (dotted name): long-running Deployment on Kubernetes

Workload flow:
1. create: check the image, create a zero-replica Deployment
2. upload: TLS archive -> ConfigMap -> Deployment scaled to 1 with mounts
3. start: poll until the Deployment has an available replica
4. remove: best-effort delete of Deployment and ConfigMap
"""

import logging
from typing import Iterator, Optional

from tenacity import AsyncRetrying, RetryError, before_sleep_log, retry_if_result, stop_after_attempt, wait_fixed

from ..schemas import ContainerResult, ContainerSpec
from ..utils.streams import drain_stream
from .archive import ArchiveSource, extract_tls_material, provisioning_variant
from .errors import BackendFailureError, ImageNotFoundError, ReadinessTimeoutError
from .naming import IdentifierKind, classify, derive_workload_name, is_engine_handle
from .orchestration.base import EngineBackend, OrchestratorBackend
from .orchestration.modes import ImageMode

logger = logging.getLogger(__name__)

DEFAULT_READINESS_ATTEMPTS = 100
DEFAULT_READINESS_INTERVAL = 1.0


class ContainerRouter:
    """
    Dispatches container lifecycle verbs to the engine or the orchestrator.

    The router holds no per-identifier state; workload names are re-derived
    on every call. Concurrent calls for the same identifier are not
    serialized.
    """

    def __init__(
        self,
        engine: EngineBackend,
        orchestrator: OrchestratorBackend,
        image_mode: ImageMode = ImageMode.REGISTRY,
        readiness_attempts: int = DEFAULT_READINESS_ATTEMPTS,
        readiness_interval: float = DEFAULT_READINESS_INTERVAL
    ):
        self.engine = engine
        self.orchestrator = orchestrator
        self.image_mode = image_mode
        self.readiness_attempts = readiness_attempts
        self.readiness_interval = readiness_interval

    def classify(self, container_id: str) -> IdentifierKind:
        return classify(container_id)

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(self, container_id: str, spec: ContainerSpec) -> ContainerResult:
        """
        Create a utility container or a workload deployment.

        An empty ID comes from the build phase and creates a plain engine
        container. Any other ID names a workload.

        Raises:
            ImageNotFoundError: If the workload image is not available
        """
        if not container_id:
            result = await self.engine.create_container(spec)
            return ContainerResult(Id=result["Id"], Warnings=result.get("Warnings") or [])

        image = await self._ensure_workload_image(spec.Image)

        name = derive_workload_name(container_id)
        logger.info(f"[ROUTER] Creating workload deployment {name} for {container_id}")

        await self.orchestrator.create_workload_deployment(name, image, spec.Env, spec.Cmd)

        return ContainerResult(Id=name, Warnings=[])

    async def _ensure_workload_image(self, image: str) -> str:
        """
        Make sure the workload image exists where the cluster will look for it.

        Returns:
            Image reference the Deployment should run
        """
        if self.image_mode.is_delivery:
            # Delivered images are served as tarballs from this host
            await self.engine.inspect_image(image)
            return image

        image_tag = self.engine.qualify(image)
        try:
            stream = await self.engine.pull(image_tag, self.engine.registry_auth())
            await drain_stream(stream, f"pull {image_tag}")
        except BackendFailureError as e:
            logger.error(f"[ROUTER] Image {image_tag} not found in registry: {e}")
            raise ImageNotFoundError(f"no such image: {image_tag}") from e

        logger.debug(f"[ROUTER] Image {image_tag} exists")
        return image_tag

    # =========================================================================
    # ARCHIVES
    # =========================================================================

    async def upload(self, container_id: str, path: str, content: Optional[ArchiveSource]) -> None:
        """
        Copy an archive into a container, or provision a workload's TLS material.

        Raises:
            EmptyContentError: If a workload upload has no content
            ArchiveCorruptError: If a workload upload is not a tar.gz
        """
        if is_engine_handle(container_id):
            await self.engine.copy_into(container_id, path, content)
            return

        files = extract_tls_material(content)
        variant = provisioning_variant(files)

        name = derive_workload_name(container_id)
        await self.orchestrator.create_config_map(name, files)
        await self.orchestrator.provision_deployment(name, variant)

    async def fetch(self, container_id: str, path: str) -> Iterator[bytes]:
        """Stream a tar archive of path out of an engine container."""
        return await self.engine.copy_from(container_id, path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self, container_id: str) -> None:
        """
        Start an engine container, or wait for a workload to become available.

        Raises:
            ReadinessTimeoutError: If the workload never reports an available replica
        """
        if is_engine_handle(container_id):
            await self.engine.start(container_id)
            return

        name = derive_workload_name(container_id)
        logger.info(f"[ROUTER] Checking workload deployment {name} status...")
        await self._wait_until_available(name)
        logger.info(f"[ROUTER] Workload deployment {name} is available")

    async def _query_available(self, name: str) -> bool:
        try:
            return await self.orchestrator.query_available(name)
        except Exception as e:
            # transport errors (refused connection, retries exhausted) count as not ready
            logger.warning(f"[ROUTER] Status query for {name} failed: {e}")
            return False

    async def _wait_until_available(self, name: str) -> None:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.readiness_attempts),
            wait=wait_fixed(self.readiness_interval),
            retry=retry_if_result(lambda available: not available),
            before_sleep=before_sleep_log(logger, logging.DEBUG)
        )
        try:
            await retrying(self._query_available, name)
        except RetryError as e:
            raise ReadinessTimeoutError(
                f"deployment {name} not available after {self.readiness_attempts} checks"
            ) from e

    async def stop(self, container_id: str, timeout: Optional[int] = None) -> None:
        if is_engine_handle(container_id):
            await self.engine.stop(container_id, timeout)

    async def kill(self, container_id: str, signal: Optional[str] = None) -> None:
        if is_engine_handle(container_id):
            await self.engine.kill(container_id, signal)

    async def remove(self, container_id: str) -> None:
        """
        Remove an engine container, or delete a workload's objects.

        Workload removal never fails: each delete error is logged and ignored.
        """
        if is_engine_handle(container_id):
            await self.engine.remove(container_id)
            return

        name = derive_workload_name(container_id)

        try:
            await self.orchestrator.delete_deployment(name)
        except Exception as e:
            logger.error(f"[ROUTER] Delete deployment {name} failed: {e}")

        try:
            await self.orchestrator.delete_config_map(name)
        except Exception as e:
            logger.error(f"[ROUTER] Delete configmap for {name} failed: {e}")

    async def wait(self, container_id: str) -> int:
        """Block until an engine container exits. Workloads return 0 at once."""
        if is_engine_handle(container_id):
            return await self.engine.wait(container_id)
        return 0

    async def attach(self, container_id: str) -> None:
        # Docker clients attach before start; output is not streamed back
        logger.debug(f"[ROUTER] Attach to {container_id} ignored")
