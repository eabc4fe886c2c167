import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashboard.api.router import build_api_router
from dashboard.api.routes.health import router as health_router
from dashboard.config import Settings, settings as default_settings
from dashboard.core import database
from dashboard.core.logging_config import configure_logging
from dashboard.middleware.request_id import RequestIDMiddleware
from dashboard.services.changedetection import (
    ChangeDetectionAPIError,
    ChangeDetectionClient,
    ChangeDetectionTimeoutError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(
        f"Starting {settings.APP_NAME} v{settings.APP_VERSION} in {settings.DATA_MODE} mode"
    )

    if not settings.password_auth_enabled and not settings.basic_auth_enabled:
        logger.warning(
            "No dashboard authentication configured. Set DASHBOARD_PASSWORD or "
            "AUTH_USERNAME/AUTH_PASSWORD to protect the dashboard."
        )

    if settings.DATA_MODE == "local":
        await database.configure_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        await database.init_db()
        logger.info("Database initialized")
    else:
        app.state.changedetection_client = ChangeDetectionClient.from_settings(settings)

    yield

    # Shutdown
    logger.info("Shutting down...")
    client = getattr(app.state, "changedetection_client", None)
    if client is not None:
        await client.close()
    if settings.DATA_MODE == "local":
        await database.engine.dispose()


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse({"error": f"Invalid request: {problems}"}, status_code=422)


async def _upstream_exception_handler(request: Request, exc: ChangeDetectionAPIError):
    logger.error(f"changedetection.io request failed for {request.url.path}: {exc.message}")
    if isinstance(exc, ChangeDetectionTimeoutError):
        status_code = 504
    elif exc.status_code == 404:
        status_code = 404
    else:
        status_code = 502
    return JSONResponse({"error": exc.message}, status_code=status_code)


async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"error": str(exc)}, status_code=500)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    # Configure structured logging (must happen before any logger is used)
    configure_logging(log_format=settings.LOG_FORMAT, log_level=settings.LOG_LEVEL)

    # Initialize Sentry error tracking
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            environment=settings.SENTRY_ENVIRONMENT,
            release=f"changedetection-dashboard@{settings.APP_VERSION}",
        )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Dashboard for website changes detected by changedetection.io.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Request ID middleware (must be added before other middleware)
    app.add_middleware(RequestIDMiddleware)

    # Snapshots and diffs are large HTML bodies
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(ChangeDetectionAPIError, _upstream_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(build_api_router(settings))

    # Health & metrics routes (no /api prefix)
    app.include_router(health_router)

    static_root = settings.static_root
    if static_root is not None:
        if static_root.is_dir():
            # Mounted last so /api and /health win
            app.mount("/", StaticFiles(directory=static_root, html=True), name="ui")
            logger.info(f"Serving dashboard UI from {static_root}")
        else:
            logger.warning(f"STATIC_DIR {static_root} does not exist, UI not served")
    else:

        @app.get("/", include_in_schema=False)
        async def root():
            return {
                "app": settings.APP_NAME,
                "version": settings.APP_VERSION,
                "mode": settings.DATA_MODE,
                "docs": "/docs",
                "status": "running",
            }

    return app


app = create_app()
