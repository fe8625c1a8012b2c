# Import necessary FastAPI components
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
from datetime import datetime

# Import application routes and custom error handlers
from src.routers import analytics_routes, public_routes
from src.utils.exception_handlers import (
    http_exception_handler,
    pydantic_validation_error_handler,
    sqlalchemy_exception_handler,
    validation_exception_handler
)

# Import middleware
from src.middleware.logging_middleware import LoggingMiddleware, RequestIDMiddleware

# Import configuration
from src.core.config import settings

# Import database
from src.database import init_db, close_db, get_session_factory, SessionFactory

# Import services
from src.services.geoip_service import GeoIPService

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Initialize application state
    app.state.settings = settings
    app.state.session_factory = SessionFactory

    # Initialize database connection
    logger.info("Initializing database connection...")
    await init_db()
    logger.info("Database connection initialized successfully")

    # Open the GeoIP database once; lookups are read-only afterwards
    app.state.geoip = GeoIPService(settings.geoip_db_path)
    if app.state.geoip.is_available:
        logger.info("GeoIP lookups enabled")
    else:
        logger.warning("GeoIP database unavailable; page views will be stored without location")

    yield

    # Shutdown: Clean up resources
    app.state.geoip.close()
    logger.info("Closing database connection...")
    await close_db()
    logger.info("Database connection closed successfully")

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Newsroom API - published articles and reader analytics",
    version=settings.app_version,
    default_response_class=ORJSONResponse,
    lifespan=lifespan
)

# CORS Configuration
logger.info(f"Effective CORS Origins: {settings.cors_origins}")

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Request IDs are assigned before logging runs
app.add_middleware(RequestIDMiddleware)

# Register custom exception handlers
# These ensure consistent error responses across the API
app.add_exception_handler(
    HTTPException,  # Handle general HTTP exceptions
    http_exception_handler
)
app.add_exception_handler(
    RequestValidationError,  # Handle request validation errors
    validation_exception_handler
)
app.add_exception_handler(
    ValidationError,  # Handle Pydantic validation errors
    pydantic_validation_error_handler
)
app.add_exception_handler(
    SQLAlchemyError,  # Handle database-related errors
    sqlalchemy_exception_handler
)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint for monitoring system status

    Returns a status response indicating the API is operational and the status of its dependencies.
    """
    health_status = {
        "status": "healthy",
        "timestamp": str(datetime.now()),
        "version": settings.app_version,
        "dependencies": {
            "database": "unknown",
            "geoip": "unknown"
        }
    }

    # Check database health
    try:
        async with get_session_factory(request)() as session:
            await session.execute(text("SELECT 1"))
        health_status["dependencies"]["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check error: {str(e)}")
        health_status["dependencies"]["database"] = "unhealthy"

    # GeoIP is optional; a missing database only disables location enrichment
    geoip = getattr(request.app.state, "geoip", None)
    health_status["dependencies"]["geoip"] = "healthy" if geoip and geoip.is_available else "not_configured"

    # Update overall status if any dependency is unhealthy
    if any(status == "unhealthy" for status in health_status["dependencies"].values()):
        health_status["status"] = "unhealthy"

    return JSONResponse(content=health_status)

# Include all routers with appropriate prefixes
api_prefix = settings.api_prefix

# Analytics routes
app.include_router(
    analytics_routes.router,
    prefix=api_prefix,
    tags=["Analytics"]
)

# Public article routes
app.include_router(
    public_routes.router,
    prefix=api_prefix,
    tags=["Public"]
)
