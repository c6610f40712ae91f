from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import logging
import time

from quizguard.core.config import settings
from quizguard.core.database import SessionLocal, create_db_and_tables
from quizguard.api.v1.api import api_router
from quizguard.middleware.timezone import TimezoneMiddleware
from quizguard.services.monitor_registry import registry

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="QuizGuard API",
    description="Tab-switch and focus-loss proctoring for timed quizzes",
    version="1.0.0",
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None
)

app.add_middleware(TimezoneMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
            "path": request.url.path
        }
    )


@app.on_event("startup")
async def startup_event():
    logger.info("Starting QuizGuard API...")
    create_db_and_tables()
    logger.info("Database initialized")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down QuizGuard API...")
    # No listener may outlive the process's attempts
    registry.close_all()
    logger.info("All proctoring monitors stopped")


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check with database probe"""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "version": "1.0.0",
        "services": {},
        "active_monitors": registry.active_count()
    }

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health_status["services"]["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["services"]["database"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"

    return health_status


@app.get("/")
async def read_root():
    return {
        "message": "Welcome to the QuizGuard API!",
        "version": "1.0.0"
    }
