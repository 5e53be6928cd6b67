"""Deployment diagnostics for operators."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from blueprint_engine.api.models import EnvCheckResponse
from blueprint_engine.config import Settings, get_settings

router = APIRouter()


@router.get("/env-check", response_model=EnvCheckResponse)
async def env_check(settings: Settings = Depends(get_settings)) -> EnvCheckResponse:  # noqa: B008
  """Report which required secrets are configured without revealing their values."""
  return EnvCheckResponse(
    OPENAI_API_KEY=bool(settings.openai_api_key),
    BLUEPRINT_PG_DSN=bool(settings.pg_dsn),
    FIREBASE_PROJECT_ID=bool(settings.firebase_project_id),
    FIREBASE_SERVICE_ACCOUNT_JSON_PATH=bool(settings.firebase_service_account_json_path),
  )
