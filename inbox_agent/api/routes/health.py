"""
Health check endpoint.
"""
from __future__ import annotations

from fastapi import APIRouter

from inbox_agent.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check that needs neither Gmail nor the model."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
    }
