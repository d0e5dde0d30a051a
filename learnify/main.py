"""
Learnify - Main Application

FastAPI backend with:
- PostgreSQL (any SQLAlchemy URL) for students, activity, quizzes and lessons
- MongoDB GridFS for uploaded submission files
- x-student-id header or JWT bearer token for identity

Run: uvicorn learnify.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnify import __version__
from learnify.api import api_router
from learnify.core.config import get_settings
from learnify.core.errors import register_exception_handlers
from learnify.core.logging_config import setup_logging
from learnify.db.database import engine, test_db_connection
from learnify.db.mongodb import init_mongo_indexes, test_mongo_connection
from learnify.db.tables import init_db

settings = get_settings()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Learnify API",
    description="""
    Backend for the Learnify classroom app.

    ## Features
    - **Check-ins**: daily check-ins with a cooldown
    - **Reviews & Reflections**: short texts about mobile apps
    - **Submissions**: screenshots, GitHub links and projects with file uploads
    - **Voting**: one vote per project type for public peer projects
    - **Quiz**: smart question selection and first-correct-only scoring
    - **Lessons**: schedule, plan items and class-wide progress
    - **Leaderboard**: points breakdown and ranking
    - **Feedback & Admin**: semester feedback, student management
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """Configure logging, create tables and MongoDB indexes."""
    setup_logging(settings.log_level)
    init_db(engine)
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    logger.info("Learnify API %s started", __version__)


@app.get("/", tags=["Health"])
async def root():
    return {"success": True, "app": "Learnify API", "version": __version__, "docs": "/docs"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if test_db_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
    }
