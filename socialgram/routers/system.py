"""System-level routes for diagnostics."""
from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from ..config import get_settings
from ..security.data_vault import is_vault_configured

router = APIRouter(prefix="/system", tags=["system"])


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
    environment: str
    vault_configured: bool


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app=settings.app_name,
        version=settings.api_version,
        environment=settings.environment,
        vault_configured=is_vault_configured(),
    )


__all__ = ["router"]
