"""
Venue Tax API - Main Application
Tax configuration and order tax calculation for food-service venues
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from venue_api.core.config import settings
from venue_api.core.exceptions import VenueAPIError, TaxValidationError
from venue_api.api.v1.router import api_router

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Per-organization tax configuration and order tax calculation",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.on_event("startup")
async def startup_event():
    """Run on application startup - with graceful error handling"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}")
    logger.info(f"Version: {settings.VERSION} ({settings.ENVIRONMENT})")

    try:
        from venue_api.core.database import init_db, test_connection

        if test_connection():
            logger.info("Database connection successful")
            try:
                init_db()
                logger.info("Database initialized successfully")
            except Exception as e:
                logger.error(f"Database initialization failed: {str(e)}")
                logger.warning("App will continue but database operations may fail")
        else:
            logger.error("Database connection failed")
            logger.warning("APP STARTED IN DEGRADED MODE: check DATABASE_URL in .env")

    except Exception as e:
        logger.error(f"Startup error: {str(e)}")
        logger.warning("App will continue but some features may not work")

    logger.info("Application ready")
    logger.info("=" * 60)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint with database status"""
    try:
        from venue_api.core.database import test_connection
        db_status = "connected" if test_connection() else "disconnected"
    except Exception:
        db_status = "error"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": settings.VERSION,
        "database": db_status,
        "message": "API is running" if db_status == "connected" else "API running but database unavailable"
    }


@app.exception_handler(VenueAPIError)
async def venue_api_exception_handler(request, exc: VenueAPIError):
    """Service errors that escaped an endpoint"""
    status_code = 400 if isinstance(exc, TaxValidationError) else 404
    return JSONResponse(status_code=status_code, content={"detail": exc.to_detail()})


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
