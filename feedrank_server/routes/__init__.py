"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .algorithm import router as algorithm_router
from .feed import router as feed_router
from .interactions import router as interactions_router
from .root import router as root_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(feed_router, prefix="/api/feed", tags=["feed"])
    app.include_router(interactions_router, prefix="/api/interactions", tags=["interactions"])
    app.include_router(algorithm_router, prefix="/api/algorithm", tags=["algorithm"])
