import logging
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text

from app.config import settings
from app.api.v1.router import api_router
from app.db.session import init_db, close_db, async_session_maker
from app.db.redis import init_redis, close_redis, get_redis
from app.core.exceptions import SparkError
from app.core.firebase import init_firebase, firebase_service
from app.agents.config import ai_enabled
from app.core.middleware import (
    SecurityHeadersMiddleware,
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
)
import app.models  # Register models for create_all


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    await init_redis()
    init_firebase()
    logger.info("%s started in %s mode", settings.APP_NAME, settings.ENVIRONMENT)

    yield

    # Shutdown
    await close_db()
    await close_redis()
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Dating app backend: profiles, mutual-like matching, chat and events",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS middleware - Restricted to allowed origins only
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "Accept", "Origin"],
    expose_headers=["X-Request-ID"],
    max_age=600,  # Cache preflight requests for 10 minutes
)

# Security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Request size limit middleware (room for one photo upload)
app.add_middleware(RequestSizeLimitMiddleware)

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.exception_handler(SparkError)
async def spark_error_handler(request: Request, exc: SparkError):
    """Render domain errors as {"detail": ...} with their status code."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.get("/")
async def root():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health_check():
    """
    Detailed health check that actually verifies connectivity.
    Returns status of all critical services.
    """
    health_status = {
        "status": "healthy",
        "services": {
            "database": {"status": "unknown", "latency_ms": None},
            "redis": {"status": "unknown", "latency_ms": None},
            "firebase": {"status": "unknown"},
            "ai_coach": {"status": "unknown"},
        },
    }

    # Check Database
    try:
        start = time.time()
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        latency = round((time.time() - start) * 1000, 2)
        health_status["services"]["database"] = {
            "status": "healthy",
            "latency_ms": latency,
        }
    except Exception as e:
        health_status["services"]["database"] = {
            "status": "unhealthy",
            "error": str(e)[:100],
        }
        health_status["status"] = "degraded"

    # Check Redis
    redis = get_redis()
    if redis is None:
        health_status["services"]["redis"] = {"status": "not_configured"}
    else:
        try:
            start = time.time()
            redis.ping()
            latency = round((time.time() - start) * 1000, 2)
            health_status["services"]["redis"] = {
                "status": "healthy",
                "latency_ms": latency,
            }
        except Exception as e:
            health_status["services"]["redis"] = {
                "status": "unhealthy",
                "error": str(e)[:100],
            }
            health_status["status"] = "degraded"

    # Check Firebase (just check if initialized)
    health_status["services"]["firebase"] = {
        "status": "initialized" if firebase_service.enabled else "not_configured"
    }

    health_status["services"]["ai_coach"] = {
        "status": "configured" if ai_enabled() else "not_configured"
    }

    return health_status
