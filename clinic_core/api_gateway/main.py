"""
Main FastAPI Application

Clinic agents API with:
- Clinic data endpoints
- Agent execution and command center endpoints
- Daily agent scheduler
- CORS configuration
- Health checks
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from structlog import get_logger

from .. import __version__
from ..agent_execution.api_router import router as agent_router
from ..agent_execution.scheduler import AgentScheduler
from ..agent_orchestration.audit import AgentAuditService
from ..clinic_data.api_router import router as clinic_router
from ..clinic_data.db_service import MongoClinicRepository
from ..config import ClinicPlatformConfig, get_config
from ..exceptions import ClinicPlatformError
from ..logging_config import configure_logging

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    config: ClinicPlatformConfig = app.state.config

    # Startup
    configure_logging(config.log_level, json_logs=config.log_json)
    logger.info("starting_clinic_agents", environment=config.environment.value)

    # Initialize MongoDB connection
    app.state.mongo_client = AsyncIOMotorClient(config.mongo_db_url, tz_aware=True)
    db = app.state.mongo_client[config.mongo_db_name]

    repository = MongoClinicRepository(db)
    await repository.wait_until_available(config.repository_connect_attempts)
    await repository.ensure_indexes()
    app.state.repository = repository

    audit_service = AgentAuditService(db)
    await audit_service.ensure_indexes()
    app.state.audit_service = audit_service

    app.state.scheduler = None
    if config.enable_scheduler:
        app.state.scheduler = AgentScheduler(repository, audit_service=audit_service, config=config)
        app.state.scheduler.start()

    logger.info("platform_initialized")

    yield

    # Shutdown
    logger.info("shutting_down_platform")
    if app.state.scheduler is not None:
        app.state.scheduler.shutdown()
    app.state.mongo_client.close()
    logger.info("platform_shutdown_complete")


def create_app(config: Optional[ClinicPlatformConfig] = None) -> FastAPI:
    """Build the FastAPI application."""
    config = config or get_config()

    app = FastAPI(
        title="Clinic Agents",
        description="Clinic operations agents: appointments, revenue, cases, inventory and a command center",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if not config.is_production else None,
        redoc_url="/redoc" if not config.is_production else None,
        openapi_url="/openapi.json" if not config.is_production else None,
    )
    app.state.config = config

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoints
    @app.get("/health", tags=["Platform"], summary="Health check")
    async def health_check():
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "environment": config.environment.value,
            "version": __version__,
        }

    @app.get("/ping", tags=["Platform"], summary="Ping endpoint")
    async def ping():
        """Simple ping endpoint."""
        return {"message": "pong"}

    @app.get("/", tags=["Platform"], summary="Root endpoint")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Clinic Agents",
            "version": __version__,
            "environment": config.environment.value,
            "docs_url": "/docs" if not config.is_production else None,
        }

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Missing or malformed fields are client errors."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(ClinicPlatformError)
    async def platform_error_handler(request: Request, exc: ClinicPlatformError):
        if exc.status_code >= 500:
            logger.error("platform_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def server_error_handler(request: Request, exc: Exception):
        """Custom 500 handler."""
        logger.error("internal_server_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )

    # Include routers
    app.include_router(clinic_router)
    app.include_router(agent_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _config = get_config()
    uvicorn.run(
        "clinic_core.api_gateway.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_config.is_local,
        log_level=_config.log_level.lower(),
    )
