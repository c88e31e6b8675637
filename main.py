import logging
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.database import init_db
from app.core.deps import ip_rate_limit
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import setup_logging
from app.core.settings_cache import settings_cache
from app.api.endpoints import admin, alerts, feedback, health, map_proxy, push, reports, verification

# Configure logging
setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
logger = logging.getLogger(__name__)


def log_settings_change(new_settings) -> None:
    logger.info(
        f"Runtime settings changed: cooldown={new_settings.report_cooldown_minutes}m, "
        f"quota={new_settings.alert_limit_count}, retention={new_settings.data_retention_days}d, "
        f"email={new_settings.email_notifications_enabled}, push={new_settings.push_notifications_enabled}"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up Where Are They API...")
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully")
    settings_cache.add_listener(log_settings_change)

    yield

    # Shutdown
    settings_cache.remove_listener(log_settings_change)
    logger.info("Shutting down Where Are They API...")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Anonymous geolocated reports with geofenced email and push alerts",
    lifespan=lifespan,
    dependencies=[Depends(ip_rate_limit)]
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Submission rejected by the anti-spam gate: show every message to the submitter."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "errors": exc.messages}
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


# Include routers
app.include_router(reports.router, prefix=settings.API_V1_STR)
app.include_router(alerts.router, prefix=settings.API_V1_STR)
app.include_router(verification.router, prefix=settings.API_V1_STR)
app.include_router(push.router, prefix=settings.API_V1_STR)
app.include_router(feedback.router, prefix=settings.API_V1_STR)
app.include_router(map_proxy.router, prefix=settings.API_V1_STR)
app.include_router(admin.router, prefix=settings.API_V1_STR)
app.include_router(health.router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    """Root endpoint - API health check"""
    return {
        "message": "Where Are They API",
        "version": "1.0.0",
        "status": "healthy"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Enable auto-reload during development
        log_level="info"
    )
