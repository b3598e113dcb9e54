"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse

from catstyle import __version__
from catstyle.api.routes import health, metrics, suggest
from catstyle.core.config import Settings, get_settings
from catstyle.core.logging_config import LoggingConfig
from catstyle.core.middleware import LoggingContextMiddleware
from catstyle.core.middleware_metrics import MetricsMiddleware

LoggingConfig.configure()
logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings: Settings = app.state.settings
    logger.info(
        f"Starting {settings.app_name} in {settings.app_env} mode "
        f"(provider configured: {settings.provider_configured})"
    )

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    gateway = app.dependency_overrides.get(suggest.get_gateway, suggest.get_gateway)()
    await gateway.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the gateway application"""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Icon and color suggestions for task categories",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingContextMiddleware)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log unhandled errors and answer with the gateway error shape"""
        if isinstance(exc, FastAPIHTTPException):
            raise exc
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": str(exc) or type(exc).__name__},
        )

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(suggest.router, prefix=settings.suggest_path)

    return app


app = create_app()
