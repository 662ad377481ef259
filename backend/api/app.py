"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import get_settings
from shared.logging import configure_logging
from modules.auth.routes import router as auth_router
from modules.auth.admin_routes import router as admin_auth_router
from modules.chat.routes import router as chat_router

from .dependencies import get_container
from .error_handlers import register_exception_handlers
from .routes import health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logger.info("Starting %s on %s:%s", settings.app_name, settings.host, settings.port)
    if settings.uses_default_secrets():
        logger.warning(
            "Token secrets are using built-in defaults. "
            "Set JWT_SECRET and JWT_REFRESH_SECRET before deploying."
        )
    if not settings.admin_jwt_secret:
        logger.info("ADMIN_JWT_SECRET not set; admin tokens use JWT_SECRET")
    yield
    # Shutdown: let in-flight chat persistence settle.
    container = get_container()
    if container.has_chat:
        await container.chat.drain()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Church community API: accounts, authentication and realtime chat",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(admin_auth_router, prefix="/api/admin/auth", tags=["admin"])
    app.include_router(chat_router, prefix="/api/chat", tags=["chat"])

    return app


# Application instance for uvicorn
app = create_app()
