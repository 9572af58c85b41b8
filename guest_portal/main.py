"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from guest_portal.api import auth_router, guests_router
from guest_portal.config import Settings, get_settings
from guest_portal.core.email_service import EmailService
from guest_portal.core.errors import ProvisioningError
from guest_portal.core.provisioning import CredentialNotifier, ProvisioningEngine
from guest_portal.db.database import Database

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    notifier: CredentialNotifier | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (defaults to the environment)
        database: Database handle (defaults to one built from ``database_url``)
        notifier: Credential delivery channel (defaults to SMTP)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    database = database or Database(settings.database_url, echo=settings.sql_echo)
    notifier = notifier or EmailService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan context manager."""
        logger.info("Starting guest provisioning service...")

        database.connect()
        database.verify()
        database.create_schema()

        app.state.database = database
        app.state.provisioning = ProvisioningEngine(
            database,
            notifier,
            blocked_group=settings.radius_blocked_group,
            password_length=settings.guest_password_length,
        )
        logger.info(f"RADIUS blocked group: {settings.radius_blocked_group}")

        yield

        logger.info("Shutting down guest provisioning service...")
        app.state.provisioning = None
        database.dispose()

    app = FastAPI(
        title="RADIUS Guest Portal",
        description="Guest Wi-Fi account provisioning for FreeRADIUS",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, tags=["Authentication"])
    app.include_router(guests_router, tags=["Guests"])

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "service": "guest-portal"}

    @app.exception_handler(ProvisioningError)
    async def provisioning_exception_handler(request: Request, exc: ProvisioningError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report malformed input as 400 rather than FastAPI's 422."""
        errors = [
            {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
            for error in exc.errors()
        ]
        logger.debug(f"Validation failed on {request.url.path}: {errors}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Validation failed", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal error occurred. Please try again later."},
        )

    return app
