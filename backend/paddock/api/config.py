"""Configuration check API routes."""

from fastapi import APIRouter

from paddock.config_validator import validate
from paddock.schemas import ConfigCheckResponse

router = APIRouter(prefix="/config", tags=["config"])


@router.get("/check", response_model=ConfigCheckResponse)
async def check_config():
    """Validate the running configuration."""
    result = validate()
    return ConfigCheckResponse(valid=result.valid, errors=result.errors, summary=result.summary)
