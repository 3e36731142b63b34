"""
Image Pipeline

Builds, pulls, tags, pushes and exports workload images.

Builds are serialized through a single lock held for the whole
build + inspect-poll window. Once the image is visible locally it is either
pushed to the private registry (registry mode) or saved as a tarball that
workload pods download through peitho (delivery mode).
"""

import asyncio
import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Sequence

from tenacity import AsyncRetrying, RetryError, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..utils.streams import drain_stream
from .errors import BackendFailureError, EmptyContentError, ImageNotFoundError
from .orchestration.base import EngineBackend
from .orchestration.modes import ImageMode

logger = logging.getLogger(__name__)

DEFAULT_INSPECT_ATTEMPTS = 300
DEFAULT_INSPECT_INTERVAL = 1.0


def tarball_filename(image: str) -> str:
    """File name an exported image is stored under in the image directory."""
    return f"{image.replace('/', '_')}.tar"


class ImagePipeline:
    """
    Image operations on top of the engine backend.

    Only build is serialized; pull, tag, push and inspect may run
    concurrently with a build in progress.
    """

    def __init__(
        self,
        engine: EngineBackend,
        image_mode: ImageMode = ImageMode.REGISTRY,
        image_dir: str = ".",
        inspect_attempts: int = DEFAULT_INSPECT_ATTEMPTS,
        inspect_interval: float = DEFAULT_INSPECT_INTERVAL
    ):
        self.engine = engine
        self.image_mode = image_mode
        self.image_dir = image_dir
        self.inspect_attempts = inspect_attempts
        self.inspect_interval = inspect_interval
        self._build_lock = asyncio.Lock()

    # =========================================================================
    # BUILD
    # =========================================================================

    async def build(
        self,
        dockerfile: str,
        tags: Sequence[str],
        context: Optional[bytes]
    ) -> List[Dict[str, Any]]:
        """
        Build an image, wait until it is inspectable, then publish it.

        Args:
            dockerfile: Dockerfile path inside the build context
            tags: Image tags; the first one is the canonical tag
            context: Tar archive holding the build context

        Returns:
            Decoded build output messages

        Raises:
            EmptyContentError: If no build context was sent
            BackendFailureError: If the build, tag, push or export fails
        """
        if context is None:
            logger.error("[IMAGE] Build context is empty")
            raise EmptyContentError()
        if not tags:
            raise BackendFailureError("build requires at least one tag")

        image = tags[0]

        async with self._build_lock:
            logger.info(f"[IMAGE] Building image {image}")
            output = await self.engine.build(context, dockerfile, tags)
            await self._wait_until_inspectable(image)
            logger.info(f"[IMAGE] ✅ Built image {image}")

        if self.image_mode.is_delivery:
            await self.engine.save_image(image, os.path.join(self.image_dir, tarball_filename(image)))
        else:
            await self._publish(image)

        return output

    async def _wait_until_inspectable(self, image: str) -> None:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.inspect_attempts),
            wait=wait_fixed(self.inspect_interval),
            retry=retry_if_exception_type(ImageNotFoundError),
            before_sleep=before_sleep_log(logger, logging.DEBUG)
        )
        try:
            await retrying(self.engine.inspect_image, image)
        except RetryError as e:
            logger.error(f"[IMAGE] Image {image} still missing after {self.inspect_attempts} inspects")
            raise BackendFailureError(f"image {image} not found after build") from e

    async def _publish(self, image: str) -> None:
        remote_tag = self.engine.qualify(image)
        await self.engine.tag(image, remote_tag)
        logger.debug(f"[IMAGE] Tagged {image} as {remote_tag}")

        stream = await self.engine.push(remote_tag, self.engine.registry_auth())
        await drain_stream(stream, f"push {remote_tag}")
        logger.info(f"[IMAGE] ✅ Pushed {remote_tag}")

    # =========================================================================
    # REGISTRY
    # =========================================================================

    async def create(self, from_image: str, tag: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Pull an image and return its progress stream."""
        ref = f"{from_image}:{tag}" if tag else from_image
        logger.info(f"[IMAGE] Pulling {ref}")
        return await self.engine.pull(ref)

    async def inspect(self, image_id: str) -> Dict[str, Any]:
        """
        Inspect an image, pulling it from the private registry first when the
        ID is not already qualified with the registry host.

        Raises:
            ImageNotFoundError: If the pull fails or the image is missing
        """
        if not image_id.startswith(self.engine.server_address):
            image_id = self.engine.qualify(image_id)
            try:
                stream = await self.engine.pull(image_id, self.engine.registry_auth())
                await drain_stream(stream, f"pull {image_id}")
            except BackendFailureError as e:
                logger.error(f"[IMAGE] Pull {image_id} failed: {e}")
                raise ImageNotFoundError(f"no such image: {image_id}") from e

        return await self.engine.inspect_image(image_id)

    async def add_tag(self, image: str, new_tag: str) -> None:
        await self.engine.tag(image, new_tag)

    async def push(self, image_tag: str) -> Iterator[Dict[str, Any]]:
        return await self.engine.push(image_tag, self.engine.registry_auth())

    # =========================================================================
    # DELIVERY
    # =========================================================================

    def tarball_path(self, name: str) -> str:
        """
        Resolve the exported tarball for an image.

        Raises:
            ImageNotFoundError: If no tarball was saved for the image
        """
        path = os.path.join(self.image_dir, tarball_filename(name))
        if not os.path.isfile(path):
            raise ImageNotFoundError(f"no tarball for image: {name}")
        return path

    async def load(self, data: Optional[bytes]) -> List[Dict[str, Any]]:
        """Import images from an uploaded tar archive."""
        if not data:
            raise EmptyContentError()
        return await self.engine.load_image(data)
