"""
Application entrypoint.
"""
from __future__ import annotations

import uvicorn

from inbox_agent.logging import configure_structlog, setup_logging

# Initialize structlog before other imports that might log
configure_structlog()
setup_logging()

from inbox_agent.api import create_app  # noqa: E402
from inbox_agent.config import get_settings  # noqa: E402

app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
