"""
Feedrank API: FastAPI app factory.

Use: uvicorn feedrank_server.app:app
Or:  from feedrank_server import app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedrank import __version__
from feedrank.cache.tiers import RedisFastTier

from .config import get_config
from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup/shutdown hooks."""
    app = FastAPI(
        title="Feedrank API",
        description="Personalized feed ranking with cold start, collaborative filtering and diversity",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    async def _startup():
        config = get_config()
        logging.basicConfig(
            level=config.log_level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        ok, errors = config.validate()
        for error in errors:
            logger.warning("[startup] CONFIG %s", error)
        state = get_state()
        if isinstance(state.engine.fast_tier, RedisFastTier) and not await state.engine.fast_tier.ping():
            logger.warning("[startup] Redis unreachable at %s; fast tier will report misses", config.redis_url)
        logger.info(
            "[startup] Feedrank API ready: dataset=%s datasets_dir=%s",
            state.current_dataset.folder_name if state.current_dataset else None,
            config.datasets_dir,
        )

    @app.on_event("shutdown")
    async def _shutdown():
        await get_state().engine.refresher.shutdown()

    return app


app = create_app()
