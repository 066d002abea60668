"""System health and configuration endpoints."""

import logging

from fastapi import APIRouter, Depends

from web.services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint to verify API is running."""
    return {"isAlive": True, "store": type(services.store).__name__}


@router.get("/settings")
async def get_client_settings(services: Services = Depends(get_services)):
    """Tournament rules clients need for rendering."""
    rules = services.config.tournament
    return {
        "max_judges_per_round": rules.max_judges_per_round,
        "prep_time_seconds": rules.prep_time_seconds,
        "code_length": rules.code_length,
    }
