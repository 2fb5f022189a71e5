import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, settings as default_settings
from app.core.database import build_engine, build_sessionmaker, create_tables
from app.core.errors import ConfigurationError
from app.core.logging import setup_logging
from app.core.security import AccessGuard
from app.routers import health, stats, track
from app.services.ingestion import VisitRecorder

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its storage, blocklist and secret injected."""
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.CREATE_TABLES:
            await create_tables(engine)
        yield
        await engine.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_sessionmaker(engine)
    app.state.visit_recorder = VisitRecorder(settings.BLOCKED_SITE_IDS)
    app.state.access_guard = AccessGuard(settings.ADMIN_PASSWORD)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Errors
    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": f"Server configuration error: {exc}"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Storage error"},
        )

    # Routers
    app.include_router(health.router)
    app.include_router(track.router, prefix=settings.API_PREFIX)
    app.include_router(stats.router, prefix=settings.API_PREFIX)

    return app


app = create_app()


def run() -> None:
    """Serve ``app.main:app`` with uvicorn on the configured host and port."""
    uvicorn.run("app.main:app", host=default_settings.HOST, port=default_settings.PORT)
