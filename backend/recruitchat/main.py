"""
Recruitment Chat API - Main Application Entry Point

This module initializes the FastAPI application with:
- Logging configuration from settings
- Database schema initialization
- CORS middleware for frontend communication
- Prometheus metrics middleware and /metrics endpoint
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup)
    ├── CORS Middleware
    ├── Prometheus Middleware
    └── API Router (/api)
        ├── /chat - Chat messages and response cache
        ├── /jobs - Recent job postings
        ├── /stats - Recruitment statistics
        └── /embeddings - Embedding pipeline and semantic search
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recruitchat.api import api_router
from recruitchat.config import get_settings
from recruitchat.database import init_db
from recruitchat.middleware.metrics import setup_metrics

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Initialize database tables

    Yields:
        Control to the application during its runtime
    """
    await init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Recruitment Chat API",
    description="Natural-language assistant over jobs, candidates and clients",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
