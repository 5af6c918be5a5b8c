"""HealthTrack API: FastAPI application factory.

The app factory creates a FastAPI instance with:
- CORS middleware (configurable origins)
- Lifespan handler for startup/shutdown of the DB pool and telemetry
- Health endpoint at GET /api/health
- Auth and health-data routers
- Optional static file serving for the built frontend
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from healthtrack import __version__
from healthtrack.api.deps import get_config, init_config, init_database, shutdown_database
from healthtrack.api.middleware import register_error_handlers
from healthtrack.api.routers.auth import router as auth_router
from healthtrack.api.routers.health_data import router as health_data_router
from healthtrack.config import AppConfig, load_config
from healthtrack.core.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle for the DB pool.

    A database that cannot be reached at startup leaves the API running;
    data endpoints answer 503 until it is restarted.
    """
    init_telemetry()

    try:
        await init_database(get_config())
    except Exception:
        logger.warning(
            "Failed to initialize database; data endpoints will be unavailable", exc_info=True
        )

    yield

    await shutdown_database()


def create_app(
    config: AppConfig | None = None,
    cors_origins: list[str] | None = None,
    static_dir: str | Path | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    config:
        Application configuration.  Loaded with :func:`load_config` when
        omitted.
    cors_origins:
        Allowed CORS origins.  Defaults to ``config.server.cors_origins``.
    static_dir:
        Path to the built frontend directory.  When set, mounts a
        ``StaticFiles`` handler at ``/`` with ``html=True`` for SPA fallback.
        Falls back to ``config.server.static_dir`` and then the
        ``HEALTHTRACK_STATIC_DIR`` environment variable.
    """
    config = init_config(config or load_config())
    if cors_origins is None:
        cors_origins = config.server.cors_origins

    app = FastAPI(
        title="HealthTrack API",
        version=__version__,
        lifespan=lifespan,
    )
    app.router.redirect_slashes = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(health_data_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    # Mount AFTER all API routes so /api/* always takes precedence.
    resolved_static = (
        static_dir or config.server.static_dir or os.environ.get("HEALTHTRACK_STATIC_DIR")
    )
    if resolved_static is not None:
        dist_path = Path(resolved_static)
        if dist_path.is_dir():
            app.mount(
                "/",
                StaticFiles(directory=str(dist_path), html=True),
                name="frontend",
            )
            logger.info("Mounted frontend static files from %s", dist_path)
        else:
            logger.warning("static_dir %s does not exist; skipping static mount", dist_path)

    return app
