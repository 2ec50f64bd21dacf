"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repcoach.config import get_settings
from repcoach.api import api_router
from repcoach.sessions import SessionRegistry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}")
    app.state.sessions = SessionRegistry(settings)
    yield
    app.state.sessions.clear()
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
    Exercise Rep Counter API

    Counts bodyweight exercise repetitions from streamed pose landmarks
    (33-joint MediaPipe Pose output) and grades the form of each rep.

    ## Key Features

    - **Debounced Counting**: Reps count only after stable Down -> Up transitions
    - **Refractory Guard**: Rapid oscillation cannot double-count
    - **Form Scoring**: Exercise-specific metrics and coaching cues per rep
    - **Session Statistics**: Quality distribution, best/worst rep, average tempo

    Sessions live in memory only.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0"
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health"
    }
