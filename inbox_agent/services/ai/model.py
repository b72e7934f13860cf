"""
Chat model construction.
"""
from __future__ import annotations

import threading
from typing import Any

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI

from inbox_agent.config import get_settings

logger = structlog.get_logger(__name__)

_model: BaseChatModel | None = None
_model_lock = threading.Lock()


def create_chat_model(model_name: str | None = None) -> BaseChatModel:
    """Build a Gemini chat model from settings."""
    settings = get_settings()
    if not settings.GOOGLE_API_KEY:
        raise ValueError("GOOGLE_API_KEY is required to call the chat model")

    model_kwargs: dict[str, Any] = {
        "model": model_name or settings.LLM_MODEL_NAME,
        "google_api_key": settings.GOOGLE_API_KEY,
        "max_retries": settings.LLM_MAX_RETRIES,
    }
    if settings.LLM_TEMPERATURE is not None:
        model_kwargs["temperature"] = settings.LLM_TEMPERATURE

    model = ChatGoogleGenerativeAI(**model_kwargs)
    logger.info(
        "chat_model_initialized",
        model=model_kwargs["model"],
        max_retries=settings.LLM_MAX_RETRIES,
    )
    return model


def get_chat_model() -> BaseChatModel:
    """Get or create the cached chat model."""
    global _model
    if _model is None:
        with _model_lock:
            if _model is None:
                _model = create_chat_model()
    return _model
