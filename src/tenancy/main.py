from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.api.middleware import CorrelationIdMiddleware
from shared.config import Settings, get_settings
from shared.exceptions import register_exception_handlers
from shared.infrastructure.observability.logger import configure_logging, get_logger
from tenancy.api.routes import router as tenancy_router
from tenancy.container import TenancyContainer

logger = get_logger(__name__)


def create_app(
    container: Optional[TenancyContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or (container.settings if container is not None else get_settings())
    configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON, service=settings.PROJECT_NAME)
    container = container or TenancyContainer.build(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Tenancy API starting", env=settings.ENVIRONMENT, database=container.database.engine.url.render_as_string(hide_password=True))
        yield
        await container.close()
        logger.info("Tenancy API stopped")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )
    app.state.tenancy = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(tenancy_router)

    # {code, message, details?} for every DomainError
    register_exception_handlers(app)

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": settings.PROJECT_NAME, "docs": "/docs", "health": "/api/v1/tenancy/_health/db"}

    return app
