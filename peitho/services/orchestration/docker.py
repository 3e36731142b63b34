"""
Docker Engine Backend

Implements EngineBackend on top of the docker-py low-level APIClient.
All SDK calls are blocking, so each one runs in a worker thread.

Errors from the SDK (including connection errors) are re-raised as
BackendFailureError carrying the SDK message; a missing image on
inspect is reported as ImageNotFoundError.
"""

import asyncio
import io
import logging
import os
import tempfile
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

import docker
from docker.errors import DockerException, ImageNotFound
from docker.utils import parse_repository_tag

from ..errors import BackendFailureError, ImageNotFoundError
from .base import EngineBackend

logger = logging.getLogger(__name__)

# Chunk size used when exporting images to disk
SAVE_CHUNK_SIZE = 2 * 1024 * 1024


class DockerEngine(EngineBackend):
    """
    Docker engine used for build/utility containers and image handling.

    Features:
    - Lazy APIClient creation against a configurable endpoint
    - Registry credentials injected into pull and push
    - Image export for delivery mode
    """

    def __init__(self, settings, api_client: Optional[docker.APIClient] = None):
        self.settings = settings
        self._api = api_client

        logger.info(f"[DOCKER] Docker engine backend initialized")
        logger.info(f"[DOCKER] Endpoint: {settings.docker_endpoint}")
        logger.info(f"[DOCKER] Registry: {settings.registry_server_address}/{settings.registry_project}")

    @property
    def api(self) -> docker.APIClient:
        """
        Lazy-initialize the low-level Docker client.

        With version "auto" the constructor queries the daemon, so this is
        only read from worker threads.
        """
        if self._api is None:
            self._api = docker.APIClient(
                base_url=self.settings.docker_endpoint,
                version=self.settings.docker_api_version
            )
        return self._api

    async def _call(self, description: str, method: Union[str, Callable], *args, **kwargs) -> Any:
        """
        Run a blocking call in a worker thread and translate its errors.

        Args:
            description: Label used in logs
            method: APIClient method name, or a blocking helper of this class
        """
        def run():
            func = getattr(self.api, method) if isinstance(method, str) else method
            return func(*args, **kwargs)

        try:
            return await asyncio.to_thread(run)
        except (DockerException, OSError) as e:
            logger.error(f"[DOCKER] {description} failed: {e}")
            raise BackendFailureError(str(e)) from e

    # =========================================================================
    # REGISTRY
    # =========================================================================

    @property
    def server_address(self) -> str:
        return self.settings.registry_server_address

    @property
    def project_name(self) -> str:
        return self.settings.registry_project

    def registry_auth(self) -> Dict[str, str]:
        """
        Registry credentials for pull and push.

        docker-py sends these base64-encoded JSON in the X-Registry-Auth header.
        """
        return {
            "username": self.settings.registry_username,
            "password": self.settings.registry_password,
            "email": "",
            "serveraddress": self.settings.registry_server_address,
        }

    async def ping(self) -> bool:
        try:
            return await asyncio.to_thread(lambda: self.api.ping())
        except (DockerException, OSError) as e:
            logger.error(f"[DOCKER] Ping docker server failed: {e}")
            return False

    # =========================================================================
    # CONTAINER LIFECYCLE
    # =========================================================================

    def _create_blocking(self, spec) -> Dict[str, Any]:
        host_config_kwargs = {}
        if spec.HostConfig.NetworkMode:
            host_config_kwargs["network_mode"] = spec.HostConfig.NetworkMode
        if spec.HostConfig.Memory:
            host_config_kwargs["mem_limit"] = spec.HostConfig.Memory

        return self.api.create_container(
            image=spec.Image,
            command=spec.Cmd or None,
            environment=spec.Env or None,
            entrypoint=spec.Entrypoint or None,
            host_config=self.api.create_host_config(**host_config_kwargs)
        )

    async def create_container(self, spec) -> Dict[str, Any]:
        response = await self._call("Create container", self._create_blocking, spec)
        logger.info(f"[DOCKER] Created container {response.get('Id')}")
        return {"Id": response.get("Id"), "Warnings": response.get("Warnings") or []}

    async def start(self, container_id: str) -> None:
        await self._call("Start container", "start", container_id)

    async def stop(self, container_id: str, timeout: Optional[int] = None) -> None:
        await self._call("Stop container", "stop", container_id, timeout=timeout)

    async def kill(self, container_id: str, signal: Optional[str] = None) -> None:
        await self._call("Kill container", "kill", container_id, signal=signal or None)

    async def remove(self, container_id: str) -> None:
        await self._call("Remove container", "remove_container", container_id)

    async def wait(self, container_id: str) -> int:
        result = await self._call("Wait container", "wait", container_id, condition="not-running")
        return int(result.get("StatusCode", 0))

    async def copy_into(self, container_id: str, path: str, data: bytes) -> None:
        await self._call("Copy archive to container", "put_archive", container_id, path, data)

    async def copy_from(self, container_id: str, path: str) -> Iterator[bytes]:
        stream, stat = await self._call("Copy archive from container", "get_archive", container_id, path)
        logger.debug(f"[DOCKER] Fetching {path} from {container_id}: {stat}")
        return stream

    # =========================================================================
    # IMAGES
    # =========================================================================

    def _build_blocking(self, context: bytes, dockerfile: str, tags: Sequence[str]) -> List[Dict[str, Any]]:
        output = []
        stream = self.api.build(
            fileobj=io.BytesIO(context),
            custom_context=True,
            dockerfile=dockerfile or None,
            tag=tags[0] if tags else None,
            rm=True,
            decode=True
        )
        for message in stream:
            output.append(message)
            if "stream" in message:
                logger.debug(f"[DOCKER] {message['stream'].rstrip()}")
            if "error" in message:
                raise BackendFailureError(message["error"])

        for extra_tag in tags[1:]:
            repository, tag = parse_repository_tag(extra_tag)
            self.api.tag(tags[0], repository, tag)

        return output

    async def build(self, context: bytes, dockerfile: str, tags: Sequence[str]) -> List[Dict[str, Any]]:
        return await self._call("Build image", self._build_blocking, context, dockerfile, tags)

    async def pull(self, ref: str, auth: Optional[Dict[str, str]] = None) -> Iterator[Dict[str, Any]]:
        repository, tag = parse_repository_tag(ref)
        return await self._call(
            f"Pull {ref}",
            "pull",
            repository,
            tag=tag,
            stream=True,
            decode=True,
            auth_config=auth
        )

    async def push(self, ref: str, auth: Optional[Dict[str, str]] = None) -> Iterator[Dict[str, Any]]:
        repository, tag = parse_repository_tag(ref)
        return await self._call(
            f"Push {ref}",
            "push",
            repository,
            tag=tag,
            stream=True,
            decode=True,
            auth_config=auth
        )

    async def tag(self, image: str, ref: str) -> None:
        repository, tag = parse_repository_tag(ref)
        await self._call(f"Tag {image} as {ref}", "tag", image, repository, tag)

    async def inspect_image(self, image: str) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(lambda: self.api.inspect_image(image))
        except ImageNotFound as e:
            logger.debug(f"[DOCKER] Image {image} not found locally")
            raise ImageNotFoundError(f"no such image: {image}") from e
        except (DockerException, OSError) as e:
            logger.error(f"[DOCKER] Inspect image {image} failed: {e}")
            raise BackendFailureError(str(e)) from e

    def _save_blocking(self, image: str, destination: str) -> None:
        # Replace any tarball left from a previous build of the same tag
        if os.path.exists(destination):
            logger.debug(f"[DOCKER] {destination} already exists, removing it")
            os.remove(destination)

        # Export to a temporary file so a failed export never leaves a
        # truncated tarball under the served name
        fd, partial = tempfile.mkstemp(dir=os.path.dirname(destination) or ".", suffix=".partial")
        try:
            with os.fdopen(fd, "wb") as f:
                for chunk in self.api.get_image(image, chunk_size=SAVE_CHUNK_SIZE):
                    f.write(chunk)
            os.replace(partial, destination)
        except BaseException:
            os.remove(partial)
            raise

    async def save_image(self, image: str, destination: str) -> None:
        await self._call(f"Save {image}", self._save_blocking, image, destination)
        logger.info(f"[DOCKER] Saved {image} to {destination}")

    async def load_image(self, data: bytes) -> List[Dict[str, Any]]:
        result = await self._call("Load image", lambda: list(self.api.load_image(data)))
        for message in result:
            if isinstance(message, dict) and message.get("error"):
                raise BackendFailureError(message["error"])
        logger.info(f"[DOCKER] Loaded image archive ({len(data)} bytes)")
        return result
