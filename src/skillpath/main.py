"""FastAPI application entrypoint for SkillPath."""

from fastapi import FastAPI

from .api.v1.router import api_router
from .core.config import get_settings
from .core.logging import configure_logging
from .jobs import register_scheduler


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="SkillPath API", version="0.1.0")
    app.include_router(api_router, prefix="/api/v1")
    if settings.scheduler_enabled:
        register_scheduler(app)
    return app


app = create_app()
