"""
ALIGNIFY Backend API
Guided pose-matching workouts

FastAPI application entry point. Pose estimation runs on the client; this
service scores streamed landmark frames against reference poses.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

# ============================================
# Configure Root Logger First
# ============================================
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)]
)

# Service routers
from workout_service.router import router as workout_router
from workout_service.models import get_session_handler

# Core utilities
from core.config import settings
from shared.utils import setup_logger

# Setup logging
logger = setup_logger("alignify.main", level=logging.DEBUG)
request_logger = setup_logger("alignify.requests", level=logging.DEBUG)


# ============================================
# Request Logging Middleware
# ============================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests and responses with timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        query_string = f"?{request.url.query}" if request.url.query else ""

        request_logger.info(f"➡️  {request.method} {request.url.path}{query_string}")
        request_logger.debug(f"    Client: {client_ip}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            if response.status_code < 300:
                status_emoji = "✅"
            elif response.status_code < 400:
                status_emoji = "↪️"
            elif response.status_code < 500:
                status_emoji = "⚠️"
            else:
                status_emoji = "❌"

            request_logger.info(
                f"{status_emoji} {request.method} {request.url.path} → {response.status_code} ({process_time:.1f}ms)"
            )

            return response
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            request_logger.exception(
                f"💥 {request.method} {request.url.path} → ERROR: {type(e).__name__}: {e} ({process_time:.1f}ms)"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown."""
    logger.info(f"🚀 {settings.APP_NAME} API starting up...")
    logger.info(
        f"🎯 Matching defaults: mode={settings.BODY_FOCUS_MODE}, tolerance={settings.TOLERANCE_DEGREES}°, "
        f"threshold={settings.MATCH_THRESHOLD}, hold={settings.REQUIRED_HOLD_SECONDS}s"
    )

    yield  # Application runs here

    logger.info(f"👋 {settings.APP_NAME} API shutting down...")
    handler = get_session_handler()
    for session_id in list(handler.active_sessions):
        handler.cleanup_session(session_id)
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="ALIGNIFY API",
    description="Guided pose-matching workouts - Backend Services",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "alignify-api",
        "active_sessions": len(get_session_handler().active_sessions),
    }


# Include service routers
app.include_router(workout_router, prefix="/api/workout", tags=["Workout Service"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
