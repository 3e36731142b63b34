"""
Images API Router.

Docker Engine compatible image endpoints plus the tarball download used by
the image puller in delivery mode.
"""

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse, StreamingResponse

from ..services.image_pipeline import tarball_filename
from ..services.service import PeithoService
from .dependencies import get_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])


def _json_lines(messages: Iterable[Dict[str, Any]]) -> Iterator[bytes]:
    for message in messages:
        yield (json.dumps(message) + "\n").encode("utf-8")


@router.post("/images/create")
async def create_image(
    fromImage: str = Query(...),
    tag: str = Query(""),
    service: PeithoService = Depends(get_service)
):
    logger.info(f"[API] Create image {fromImage}")
    stream = await service.images.create(fromImage, tag or None)
    return StreamingResponse(_json_lines(stream), media_type="application/json")


@router.post("/images/load")
async def load_image(request: Request, service: PeithoService = Depends(get_service)):
    output = await service.images.load(await request.body())
    return StreamingResponse(_json_lines(output), media_type="application/json")


@router.get("/images/{name:path}/json")
async def inspect_image(name: str, service: PeithoService = Depends(get_service)):
    return await service.images.inspect(name)


@router.post("/build")
async def build_image(
    request: Request,
    dockerfile: str = Query(""),
    t: List[str] = Query(default=[]),
    service: PeithoService = Depends(get_service)
):
    logger.info(f"[API] Build image {t}")
    context = await request.body()
    output = await service.images.build(dockerfile, t, context or None)
    return StreamingResponse(_json_lines(output), media_type="application/json")


@router.get("/tar/{name}")
async def download_tarball(name: str, service: PeithoService = Depends(get_service)):
    path = service.images.tarball_path(name)
    logger.info(f"[API] Sending image tarball {path}")
    return FileResponse(path, media_type="application/octet-stream", filename=tarball_filename(name))
