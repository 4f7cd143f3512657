"""
FastAPI application entry point.
Policy Assembly & Risk-Scoring Engine
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings, __version__
from app.core.database import init_db
from app.core.exceptions import EngineError, MissingRequiredCoverage
from app.api.routes import router
from app.api.schemas import ErrorResponse


# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Creates missing tables on startup.
    """
    logger.info("Starting Policy Engine API...")
    logger.info(f"API Version: {__version__}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        init_db()
    except SQLAlchemyError as e:
        logger.warning(f"Database initialization failed: {e}")
        logger.warning("API will start but database operations will fail")

    yield

    logger.info("Shutting down Policy Engine API...")


# Create FastAPI application
app = FastAPI(
    title="Policy Engine API",
    description="""
    Policy Assembly & Risk-Scoring Engine

    - Issue, quote and bind policies with premium, fees and jurisdiction taxes
    - Deterministic underwriting score, tier and binding authority
    - Claim intake with adjuster assignment and fraud signals
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(router)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    """Map the engine's error taxonomy onto HTTP responses"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.error} - {exc.message}")

    body = ErrorResponse(
        error=exc.error,
        detail=exc.message,
        retryable=exc.retryable,
        missing_coverages=exc.missing_codes if isinstance(exc, MissingRequiredCoverage) else None,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Policy Engine API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
