"""
Shared request helpers for API routes and handlers.
"""
from __future__ import annotations

import json
import uuid
from typing import Any

from fastapi import Request

from inbox_agent.config import get_settings


def get_cors_headers(request: Request) -> dict[str, str]:
    """Get CORS headers for the given request."""
    origin = request.headers.get("origin")
    headers: dict[str, str] = {}
    allowed = get_settings().CORS_ALLOW_ORIGINS
    if origin and (origin in allowed or "*" in allowed):
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers


def new_request_id() -> str:
    return str(uuid.uuid4())


async def read_json_body(request: Request) -> tuple[Any, bool]:
    """Decode the request body as JSON.

    Returns (value, True) on success and ({}, False) when the body is empty
    or not valid JSON.
    """
    raw = await request.body()
    if not raw.strip():
        return {}, False
    try:
        return json.loads(raw), True
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}, False
