"""
FastAPI application factory
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from llamanator import __version__
from llamanator.api.routes import health, metrics, templates
from llamanator.core.config import Settings, get_settings
from llamanator.core.exceptions import AuthFailure, GatewayError
from llamanator.core.logging_config import LoggingConfig
from llamanator.core.middleware import LoggingContextMiddleware
from llamanator.core.middleware_metrics import MetricsMiddleware
from llamanator.core.templates import TemplateRegistry
from llamanator.services.gateway_service import TemplateGatewayService
from llamanator.services.ollama_client import OllamaClient

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings: Settings = app.state.settings
    service: TemplateGatewayService = app.state.gateway_service

    logger.info(f"Starting {settings.app_name} on {settings.server_address}")
    for name in service.registry.names():
        logger.info(f"-  /template/{name}")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await service.client.close()


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Turn gateway errors into JSON responses with their status code"""
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.message}",
            extra={"error_type": type(exc).__name__, "path": request.url.path}
        )
    else:
        logger.warning(
            f"{type(exc).__name__}: {exc.message}",
            extra={"error_type": type(exc).__name__, "path": request.url.path}
        )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthFailure) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": type(exc).__name__},
        headers=headers,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and answer 500 without crashing the server"""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={"error_type": type(exc).__name__, "path": request.url.path}
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__},
    )


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[TemplateRegistry] = None,
    client: Optional[OllamaClient] = None,
) -> FastAPI:
    """
    Build the gateway application

    Args:
        settings: Gateway settings (loaded from config.json when omitted)
        registry: Template registry (loaded from settings.templates_dir when omitted)
        client: Backend client (built from settings when omitted)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    LoggingConfig.configure(settings)

    if registry is None:
        registry = TemplateRegistry.from_directory(settings.templates_dir, settings.template_extension)
    if client is None:
        client = OllamaClient.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Authenticated prompt-template gateway for Ollama-style backends",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gateway_service = TemplateGatewayService(settings, registry, client)

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingContextMiddleware)

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(templates.router)
    app.include_router(health.router)
    app.include_router(metrics.router)

    return app
