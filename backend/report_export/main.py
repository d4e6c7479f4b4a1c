from contextlib import asynccontextmanager

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.export import router as export_router
from .api.health import router as health_router
from .config import settings
from .services.export_service import register_default_exporters
from .services.playwright_manager import playwright_manager
from .utils.logger import configure_logging

# Load environment variables
load_dotenv()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    logger.info("Starting Report Export API")
    register_default_exporters()
    await playwright_manager.initialize()

    yield

    # Shutdown
    logger.info("Shutting down Report Export API")
    await playwright_manager.shutdown()


app = FastAPI(
    title="Report Export API",
    description="Turn rendered dashboard widgets into PDF, HTML, slide-deck and PNG documents",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["health"])
app.include_router(export_router, tags=["export"])


@app.get("/")
async def root():
    return {
        "message": "Report Export API",
        "status": "ready",
        "version": "1.0.0",
        "docs": "/docs",
    }
