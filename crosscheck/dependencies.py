"""FastAPI dependency factories."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, HTTPException

from crosscheck.config import Settings, SettingsError, get_settings
from crosscheck.logger import get_logger
from crosscheck.services.review_service import CrossCheckReviewer, create_reviewer

logger = get_logger()


def settings_dependency() -> Settings:
    """Resolve application settings, surfacing configuration errors via HTTPException."""

    try:
        return get_settings()
    except SettingsError as exc:
        logger.error(f"Failed to load settings: {exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


async def reviewer_dependency(settings: Settings = Depends(settings_dependency)) -> AsyncIterator[CrossCheckReviewer]:
    """Provide a reviewer with fresh HTTP clients, closed once the request finishes."""

    try:
        reviewer = create_reviewer(settings)
    except SettingsError as exc:
        logger.error(f"Failed to configure reviewer: {exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    try:
        yield reviewer
    finally:
        await reviewer.aclose()
