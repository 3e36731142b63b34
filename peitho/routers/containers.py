"""
Containers API Router.

Docker Engine compatible container endpoints. Identifiers are passed
through unchanged; the container router decides which backend handles them.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from ..schemas import ContainerResult, ContainerSpec, WaitResult
from ..services.service import PeithoService
from .dependencies import get_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["containers"])


@router.api_route("/_ping", methods=["GET", "HEAD"])
async def ping():
    return {"message": "OK"}


@router.post("/containers/create", response_model=ContainerResult, status_code=status.HTTP_201_CREATED)
async def create_container(
    spec: ContainerSpec,
    name: str = Query(""),
    service: PeithoService = Depends(get_service)
):
    logger.info(f"[API] Create container called (name: {name or '<none>'}, image: {spec.Image})")
    return await service.containers.create(name, spec)


@router.put("/containers/{container_id}/archive")
async def upload_archive(
    container_id: str,
    request: Request,
    path: str = Query(""),
    service: PeithoService = Depends(get_service)
):
    logger.debug(f"[API] Upload archive, id: {container_id}, path: {path}")
    content = await request.body()
    await service.containers.upload(container_id, path, content or None)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/containers/{container_id}/archive")
async def fetch_archive(
    container_id: str,
    path: str = Query(""),
    service: PeithoService = Depends(get_service)
):
    logger.debug(f"[API] Fetch archive, id: {container_id}, path: {path}")
    stream = await service.containers.fetch(container_id, path)
    return StreamingResponse(stream, media_type="application/x-tar")


@router.post("/containers/{container_id}/attach")
async def attach_container(container_id: str, service: PeithoService = Depends(get_service)):
    await service.containers.attach(container_id)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/containers/{container_id}/start", status_code=status.HTTP_204_NO_CONTENT)
async def start_container(container_id: str, service: PeithoService = Depends(get_service)):
    logger.info(f"[API] Start container {container_id}")
    await service.containers.start(container_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/containers/{container_id}/stop", status_code=status.HTTP_204_NO_CONTENT)
async def stop_container(
    container_id: str,
    t: Optional[int] = Query(None),
    service: PeithoService = Depends(get_service)
):
    try:
        await service.containers.stop(container_id, t)
    except Exception as e:
        logger.error(f"[API] Stop container {container_id} failed: {e}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/containers/{container_id}/kill", status_code=status.HTTP_204_NO_CONTENT)
async def kill_container(
    container_id: str,
    signal: Optional[str] = Query(None),
    service: PeithoService = Depends(get_service)
):
    await service.containers.kill(container_id, signal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/containers/{container_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_container(container_id: str, service: PeithoService = Depends(get_service)):
    logger.info(f"[API] Remove container {container_id}")
    try:
        await service.containers.remove(container_id)
    except Exception as e:
        logger.error(f"[API] Remove container {container_id} failed: {e}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/containers/{container_id}/wait", response_model=WaitResult)
async def wait_container(container_id: str, service: PeithoService = Depends(get_service)):
    status_code = await service.containers.wait(container_id)
    return WaitResult(StatusCode=status_code)
