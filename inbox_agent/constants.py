"""
Application constants and configuration.

Secrets Reference
=================

- GOOGLE_API_KEY: Gemini API key used by the chat model
- GMAIL_CLIENT_ID: Google OAuth client ID for the Gmail API
- GMAIL_CLIENT_SECRET: Google OAuth client secret for the Gmail API
- GMAIL_REFRESH_TOKEN: Offline refresh token for the mailbox owner
"""

from __future__ import annotations

import os
from typing import Any, Literal

ENVIRONMENT: Literal["dev", "stg", "prd"] = os.getenv("ENVIRONMENT", "dev")

# Defaults
CONSTANTS: dict[str, Any] = {
    "APP_NAME": "Inbox Agent API",
    "APP_VERSION": "0.1.0",
    "SERVICE_NAME": "inbox-agent-api",
    "LOG_LEVEL": "INFO",
    "LOG_FORMAT": "json",
    "CORS_ALLOW_ORIGINS": [],
    "CORS_ALLOW_CREDENTIALS": True,
    "LLM_MODEL_NAME": "gemini-2.0-flash-lite-001",
    "LLM_TEMPERATURE": 0.2,
    "LLM_MAX_RETRIES": 2,
    "GMAIL_MAX_RESULTS": 20,
    "GMAIL_FETCH_CONCURRENCY": 5,
    "GMAIL_MAX_CONTEXT_MESSAGES": 6,
    "NARRATIVE_LOOKBACK_HOURS": 48,
    "HOST": "0.0.0.0",
    "PORT": 8080,
}

# dev
if ENVIRONMENT == "dev":
    CONSTANTS.update({
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "console",
        "CORS_ALLOW_ORIGINS": [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        "GMAIL_FETCH_CONCURRENCY": 2,
    })

# stg
if ENVIRONMENT == "stg":
    CONSTANTS.update({
        "LOG_LEVEL": "DEBUG",
    })

# prd
if ENVIRONMENT == "prd":
    CONSTANTS.update({
        "LLM_MAX_RETRIES": 4,
    })
