"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from places_api.api.middleware import SecurityHeadersMiddleware, setup_cors
from places_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from places_api.api.v1.places import places_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(places_router)

    @root_router.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
