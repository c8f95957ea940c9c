"""FastAPI application entry point."""

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before importing runtime config/services.
load_dotenv()

from .config import settings
from .logging_config import setup_logging

setup_logging(settings.log_level, settings.log_dir)

import logging

from .routers import group_chat

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Group Chat API",
    description="Web API for a group chat between one human and several AI personas",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(group_chat.router)

logger.info("=" * 80)
logger.info("FastAPI Application Started")
logger.info("CORS Origins: %s", settings.cors_origins)
logger.info("Group Chat Config: %s", settings.group_chat_config_path)
logger.info("=" * 80)


@app.on_event("startup")
async def startup_event():
    """Build the group chat service so config errors surface at startup."""
    logger.info("=== Application startup initialization ===")
    group_chat.get_group_chat_service()


@app.on_event("shutdown")
async def shutdown_event():
    """Cancel in-flight turns and wait for them to wind down."""
    await group_chat.shutdown_group_chat_service()


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Group Chat API",
        "docs": "/docs",
        "health": "/api/health",
    }
