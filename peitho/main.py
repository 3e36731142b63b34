from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from .config import get_settings
from .routers import containers, images
from .services.errors import ConfigurationError, ImageNotFoundError, PeithoError
from .services.service import create_service

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Peitho")


@app.exception_handler(ImageNotFoundError)
async def image_not_found_handler(request: Request, exc: ImageNotFoundError):
    return JSONResponse(status_code=404, content={"message": str(exc)})


@app.exception_handler(PeithoError)
async def peitho_error_handler(request: Request, exc: PeithoError):
    logger.error(f"[API] {request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"message": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Docker clients ping constantly
    if request.url.path == "/_ping":
        return await call_next(request)

    logger.info(f"[API] Incoming request: {request.method} {request.url.path}")
    try:
        response = await call_next(request)
        logger.info(f"[API] Response status: {response.status_code}")
        return response
    except Exception as e:
        logger.error(f"[API] Request failed: {str(e)}")
        raise


@app.on_event("startup")
async def startup():
    problems = settings.validate_options()
    if problems:
        for problem in problems:
            logger.error(f"Invalid configuration: {problem}")
        raise ConfigurationError("; ".join(problems))

    service = create_service(settings)
    app.state.service = service

    if not await service.containers.engine.ping():
        logger.warning(f"Docker engine at {settings.docker_endpoint} is not reachable yet")

    service.sweeper.start()
    logger.info("Peitho started")


@app.on_event("shutdown")
async def shutdown():
    service = getattr(app.state, "service", None)
    if service is not None:
        await service.sweeper.stop()
    logger.info("Peitho stopped")


app.include_router(containers.router)
app.include_router(images.router)
