"""
API routes package.
"""
from __future__ import annotations

from fastapi import APIRouter

from inbox_agent.api.routes import agent, draft_reply, health, narrative

# Create main API router
api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(agent.router, tags=["agent"])
api_router.include_router(narrative.router, tags=["narrative"])
api_router.include_router(draft_reply.router, tags=["draft-reply"])
