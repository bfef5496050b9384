# hospitalms/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hospitalms import __version__
from hospitalms.core.config import Settings, settings as default_settings
from hospitalms.core.errors import AppError
from hospitalms.core.middleware import LoggingMiddleware, configure_logging
from hospitalms.db.session import Database
from hospitalms.routers import appointments, auth, departments, doctors, health, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the database (creating tables if they don't exist) before serving,
    and release the connection pool on shutdown.
    """
    db: Database = app.state.db
    await db.open()
    logger.info("Hospital Management API started (env=%s)", app.state.settings.APP_ENV)
    try:
        yield
    finally:
        await db.close()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Internal server error"},
    )


def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings
    configure_logging(cfg.LOG_LEVEL)

    app = FastAPI(
        title="Hospital Management API",
        version=__version__,
        debug=cfg.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.db = Database(cfg)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routing
    app.include_router(health.router, prefix=cfg.API_PREFIX)
    app.include_router(auth.router, prefix=cfg.API_PREFIX)
    app.include_router(users.router, prefix=cfg.API_PREFIX)
    app.include_router(doctors.router, prefix=cfg.API_PREFIX)
    app.include_router(departments.router, prefix=cfg.API_PREFIX)
    app.include_router(appointments.router, prefix=cfg.API_PREFIX)

    @app.get("/")
    def root():
        return {"message": "Hospital Management API running successfully"}

    return app


app = create_app()
