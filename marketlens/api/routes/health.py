"""
Health and Readiness Endpoints

Probes for load balancers and orchestration.
"""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger

from marketlens import __version__
from marketlens.repositories import db_manager

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Returns 200 while the process is up."""
    return {
        "status": "healthy",
        "service": "marketlens",
        "version": __version__
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """
    Readiness probe.

    Verifies the pipeline is wired and MongoDB answers a ping.
    Returns 200 if ready, 503 if not.
    """
    if getattr(request.app.state, "pipeline", None) is None:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "reason": "Pipeline not initialized"
            }
        )

    if not await db_manager.ping():
        logger.error("Readiness check failed: MongoDB unreachable")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "reason": "MongoDB unreachable"
            }
        )

    return {
        "status": "ready",
        "mongodb": "connected",
        "pipeline": "initialized"
    }


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "MarketLens API",
        "version": __version__,
        "endpoints": {
            "health": "/health",
            "ready": "/ready",
            "projects": "/projects",
            "documents": "/projects/{project_id}/documents",
            "segmentations": "/projects/{project_id}/segmentations",
            "focus_groups": "/projects/{project_id}/focus-groups"
        }
    }
