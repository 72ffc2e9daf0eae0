"""API router for v1 endpoints."""

from fastapi import APIRouter

from habit_lens.api import analysis, entries, settings, templates

router = APIRouter()

# Template catalog
router.include_router(templates.router, tags=["templates"])

# Entry store
router.include_router(entries.router, tags=["entries"])

# Analysis sessions and saved analyses
router.include_router(analysis.router, tags=["analysis"])

# User settings (OpenAI key and model)
router.include_router(settings.router, tags=["settings"])
