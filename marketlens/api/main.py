"""
FastAPI Application

Main entry point for the MarketLens API.
Handles application lifecycle, error mapping and router mounting.
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from marketlens import __version__
from marketlens.config import get_settings
from marketlens.api.routes import documents_router, focus_groups_router, health_router, projects_router
from marketlens.core.generation_pipeline import (
    GenerationPipeline,
    ParseProducedNothing,
    ProjectNotFoundError,
    SegmentNotFoundError,
)
from marketlens.repositories import PersistenceFailed, db_manager
from marketlens.services.document_processor import UploadTooLarge
from marketlens.services.text_extractor import UnsupportedType
from marketlens.utils.llm_client import GenerationUnavailable
from marketlens.utils.observability import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging, connect MongoDB, create indexes and wire
    the pipeline onto app.state.
    Shutdown: disconnect MongoDB.
    """
    configure_logging()
    logger.info("Starting MarketLens API server...")

    await db_manager.connect()
    await db_manager.create_indexes()
    database = db_manager.database

    pipeline = GenerationPipeline.from_database(database)

    # Store in app state for access in routes
    app.state.pipeline = pipeline
    app.state.processor = pipeline.processor
    app.state.projects = pipeline.projects
    app.state.documents = pipeline.processor.documents

    logger.info("API server ready")

    yield

    logger.info("Shutting down API server...")
    await db_manager.disconnect()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="MarketLens API",
    description="Market segmentation and simulated focus groups from business context and research documents",
    version=__version__,
    lifespan=lifespan
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.exception_handler(ProjectNotFoundError)
@app.exception_handler(SegmentNotFoundError)
async def not_found_handler(request: Request, exc: Exception):
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(UnsupportedType)
async def unsupported_type_handler(request: Request, exc: UnsupportedType):
    return _error(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, str(exc))


@app.exception_handler(UploadTooLarge)
async def upload_too_large_handler(request: Request, exc: UploadTooLarge):
    return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))


@app.exception_handler(GenerationUnavailable)
async def generation_unavailable_handler(request: Request, exc: GenerationUnavailable):
    logger.error(f"Generation unavailable for {request.url.path}: {exc}")
    return _error(status.HTTP_502_BAD_GATEWAY, str(exc))


@app.exception_handler(ParseProducedNothing)
@app.exception_handler(PersistenceFailed)
async def internal_failure_handler(request: Request, exc: Exception):
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


# Mount routers
app.include_router(health_router)
app.include_router(projects_router)
app.include_router(documents_router)
app.include_router(focus_groups_router)


def run():
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
