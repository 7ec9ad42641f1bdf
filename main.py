"""
main.py
-------
Visa dashboard API.

create_application() wires, in order:
  middleware   CORS for the console origin, then a request-context layer
               that tags every log line of a request with its request id
  handlers     ApplicationNotFound → 404, anything unexpected → 500
  routers      signup, auth, applications, analytics, settings, /health

Run with:
    uvicorn main:app --reload              # development
    uvicorn main:app --workers 4           # production (no --reload)

The operator console is a separate process:
    streamlit run visa_dashboard/ui/console.py
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from visa_dashboard.api.routes import analytics, applications, auth, tenants
from visa_dashboard.api.routes import settings as settings_routes
from visa_dashboard.core.config import settings
from visa_dashboard.core.logging import configure_logging, get_logger
from visa_dashboard.db.session import engine
from visa_dashboard.services.application_service import ApplicationNotFound

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging()
    logger.info(
        "API starting",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        timezone=settings.TIMEZONE,
        origins=settings.ALLOWED_ORIGINS,
    )
    yield
    logger.info("API stopping, draining connection pool")
    await engine.dispose()


def _add_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        # the console reads export filenames from this header
        expose_headers=["Content-Disposition", settings.REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(settings.REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        response = await call_next(request)
        response.headers[settings.REQUEST_ID_HEADER] = request_id
        return response


def _add_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ApplicationNotFound)
    async def application_not_found_handler(
        request: Request, exc: ApplicationNotFound
    ) -> JSONResponse:
        # ids of other tenants land here too, indistinguishable from missing ones
        logger.info("Application not found", application_id=exc.application_id)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error("Unhandled exception", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def _add_routes(app: FastAPI) -> None:
    app.include_router(tenants.router)
    app.include_router(auth.router)
    app.include_router(applications.router)
    app.include_router(analytics.router)
    app.include_router(settings_routes.router)

    @app.get("/health", tags=["Health"], summary="Service and database health")
    async def health() -> dict:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError as exc:
            logger.warning("Database unreachable", error=str(exc))
            database = "unreachable"
        return {
            "status": "ok" if database == "ok" else "degraded",
            "database": database,
            "app": settings.APP_NAME,
            "env": settings.APP_ENV,
        }


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Multi-tenant visa application dashboard: tenant-scoped application "
            "records, agency branding, analytics and CSV export."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    _add_middleware(app)
    _add_exception_handlers(app)
    _add_routes(app)
    return app


app = create_application()
