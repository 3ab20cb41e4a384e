"""Configuration API endpoints"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from legalai.services.config_manager import ConfigManager, mask_key

router = APIRouter()


class ConfigResponse(BaseModel):
    """Effective relay settings, secret masked"""

    configured: bool
    apiKey: str
    url: str
    model: str
    maxTokens: int
    temperature: float


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current relay configuration"""
    groq = ConfigManager.get_instance().get_config().get("groq", {})
    api_key = groq.get("apiKey", "")

    return ConfigResponse(
        configured=bool(api_key),
        apiKey=mask_key(api_key),
        url=groq.get("url", ""),
        model=groq.get("model", ""),
        maxTokens=int(groq.get("maxTokens", 0)),
        temperature=float(groq.get("temperature", 0.0)),
    )
