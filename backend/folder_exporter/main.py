"""Folder Exporter API - Main application entry point."""
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from folder_exporter.api import api_router
from folder_exporter.api.health import router as health_router
from folder_exporter import __version__
from folder_exporter.database import init_db
from folder_exporter.logging_config import setup_logging

# Initialize logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    init_db()
    yield
    # Shutdown (nothing needed)


app = FastAPI(
    title="Folder Exporter",
    description="Export media library folders as zip archives",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
# In production, set CORS_ORIGINS env var to your domain(s)
cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")

# Include health routes (not under /api prefix)
app.include_router(health_router)


@app.get("/")
def root():
    """Root endpoint - API info."""
    return {
        "name": "Folder Exporter",
        "version": __version__,
        "docs": "/docs",
    }
