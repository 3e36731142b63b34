from fastapi import Request

from ..services.service import PeithoService


def get_service(request: Request) -> PeithoService:
    """Service handle created at startup and stored on app.state."""
    return request.app.state.service
