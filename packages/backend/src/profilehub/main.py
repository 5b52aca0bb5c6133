"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Settings are built once here (or passed in by tests) and
everything that needs configuration gets it from this call: the engine
and session factory, the image store, and — via app.state — the token
signing in the auth layer.

Run with: uvicorn profilehub.main:create_app --factory
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from profilehub import __version__
from profilehub.api import api_router
from profilehub.config import Settings
from profilehub.db.engine import build_engine, build_session_factory
from profilehub.db.models import Base
from profilehub.errors import register_exception_handlers
from profilehub.logging import configure_logging
from profilehub.middleware.request_id import RequestIdMiddleware
from profilehub.middleware.security import SecurityHeadersMiddleware
from profilehub.services.image_store import URL_PREFIX, ImageStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "profilehub.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.create_schema:
        async with app.state.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("profilehub.schema_created")

    yield

    logger.info("profilehub.shutdown")
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="ProfileHub",
        description="Account, session and profile backend for the mobile app",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.image_store = ImageStore(Path(settings.upload_dir))
    app.state.image_store.ensure_root()

    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → Security → handler
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    # Uploaded profile images
    app.mount(
        URL_PREFIX,
        StaticFiles(directory=str(app.state.image_store.root)),
        name="uploads",
    )

    return app
