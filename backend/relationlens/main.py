"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relationlens.config import Settings, settings as default_settings

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.DEBUG),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the API. Handlers read ``app.state.settings``, so tests can pass their own."""
    app_settings = app_settings or default_settings
    configure_logging(app_settings.relationlens_log_level)

    app = FastAPI(
        title="RelationLens",
        description="Design relationship detection, layout constraints and layout validation",
        version="0.1.0",
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from relationlens.engine.pipeline import load_transforms

    count = load_transforms()
    logger.debug(
        "RelationLens (%s): %d detectors, reference frame %.0fx%.0f",
        app_settings.relationlens_env,
        count,
        app_settings.reference_width,
        app_settings.reference_height,
    )

    from relationlens.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
