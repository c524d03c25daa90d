"""FastAPI dependency providers."""

from __future__ import annotations

from fastapi import Request

from relationlens.config import Settings, settings


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with, falling back to the environment."""
    return getattr(request.app.state, "settings", settings)
